import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from web3 import Web3

from lumina.models.chat_model import FuelStatus
from lumina.services.chain_service import fuel_cost
from lumina.services.chat_service import CONFIG_ERROR_MESSAGE
from lumina.services.container import Services, get_services
from lumina.utils.wallet import normalize_wallet

logger = logging.getLogger("fuel_routes")

router = APIRouter(prefix="/api", tags=["fuel"])


#---- on-chain fuel of a wallet, in ether, with what it can still afford --#
@router.get("/fuel", response_model=FuelStatus)
def fuel_status(
    wallet_address: Optional[str] = Query(None, alias="walletAddress"),
    services: Services = Depends(get_services),
):
    if not wallet_address:
        raise HTTPException(400, "Wallet address required")
    try:
        wallet = normalize_wallet(wallet_address)
    except ValueError as e:
        raise HTTPException(400, str(e))
    if services.ledger is None:
        raise HTTPException(500, CONFIG_ERROR_MESSAGE)

    try:
        balance = services.ledger.get_balance(wallet)
    except Exception as e:
        logger.error(f"Balance read failed for {wallet}: {e}")
        raise HTTPException(500, str(e))

    text_cost = fuel_cost("text", services.settings)
    image_cost = fuel_cost("image", services.settings)
    return FuelStatus(
        wallet_address=wallet,
        balance=str(Web3.from_wei(balance, "ether")),
        text_cost=str(Web3.from_wei(text_cost, "ether")),
        image_cost=str(Web3.from_wei(image_cost, "ether")),
        can_chat=balance >= text_cost,
        can_image=balance >= image_cost,
    )

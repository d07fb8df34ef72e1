# lumina/utils/settings.py
import os
import logging
from decimal import Decimal
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger("settings")
logging.basicConfig(level=logging.INFO)

DEFAULT_RPC_URL = "https://testnet-rpc.monad.xyz"
DEFAULT_IMAGE_SERVICE_URL = "https://image.pollinations.ai/prompt"


class Settings(BaseModel):
    """Runtime configuration, read once from the environment at startup."""

    model_config = ConfigDict(frozen=True)

    google_api_key: Optional[str] = None
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "lumina"

    rpc_url: str = DEFAULT_RPC_URL
    fuel_contract_address: Optional[str] = None
    admin_private_key: Optional[str] = None
    chain_id: Optional[int] = None
    debit_gas_limit: int = 200_000

    text_model: str = "gemini-3-flash-preview"
    image_model: str = "gemini-2.5-flash-image"
    title_model: str = "gemini-3-flash-preview"
    image_service_url: str = DEFAULT_IMAGE_SERVICE_URL

    text_fuel_cost: Decimal = Decimal("0.001")
    image_fuel_cost: Decimal = Decimal("0.003")

    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @property
    def ledger_configured(self) -> bool:
        return bool(self.fuel_contract_address and self.admin_private_key)


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return ["*"]
    return [item.strip() for item in value.split(",") if item.strip()]


def load_settings() -> Settings:
    """Load `.env` (if any) and build Settings from the process environment."""
    load_dotenv()

    text_model = os.getenv("TEXT_MODEL", "gemini-3-flash-preview")
    chain_id = os.getenv("CHAIN_ID")

    settings = Settings(
        google_api_key=os.getenv("GOOGLE_API_KEY") or None,
        mongo_uri=os.getenv("MONGO_URI", "mongodb://localhost:27017"),
        mongo_db=os.getenv("MONGO_DB", "lumina"),
        rpc_url=os.getenv("MONAD_RPC_URL", DEFAULT_RPC_URL),
        fuel_contract_address=os.getenv("LUMINA_FUEL_ADDRESS") or None,
        admin_private_key=os.getenv("ADMIN_PRIVATE_KEY") or None,
        chain_id=int(chain_id) if chain_id else None,
        debit_gas_limit=int(os.getenv("DEBIT_GAS_LIMIT", "200000")),
        text_model=text_model,
        image_model=os.getenv("IMAGE_MODEL", "gemini-2.5-flash-image"),
        title_model=os.getenv("TITLE_MODEL", text_model),
        image_service_url=os.getenv("IMAGE_SERVICE_URL", DEFAULT_IMAGE_SERVICE_URL),
        text_fuel_cost=Decimal(os.getenv("TEXT_FUEL_COST", "0.001")),
        image_fuel_cost=Decimal(os.getenv("IMAGE_FUEL_COST", "0.003")),
        cors_origins=_split_csv(os.getenv("CORS_ORIGINS")),
    )

    if not settings.google_api_key:
        logger.error("GOOGLE_API_KEY is missing. Generation calls will fail.")
    if not settings.ledger_configured:
        logger.error("LUMINA_FUEL_ADDRESS or ADMIN_PRIVATE_KEY is missing. Chat turns will be refused.")
    return settings

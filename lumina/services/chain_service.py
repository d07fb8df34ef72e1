# lumina/services/chain_service.py
import logging
import threading
from contextlib import contextmanager
from decimal import Decimal
from typing import Dict, Iterator, List, Optional

from web3 import Web3

logger = logging.getLogger("chain_service")
logging.basicConfig(level=logging.INFO)

# ---------------- Fuel contract ABI ----------------
FUEL_ABI = [
    {
        "inputs": [{"internalType": "address", "name": "user", "type": "address"}],
        "name": "getBalance",
        "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": [
            {"internalType": "address", "name": "user", "type": "address"},
            {"internalType": "uint256", "name": "amount", "type": "uint256"},
        ],
        "name": "debit",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class FuelDebitError(Exception):
    """Simulation, signing or broadcast of a debit failed."""


def fuel_cost(turn_type: str, settings) -> int:
    """Cost of one turn in wei."""
    if turn_type == "text":
        amount: Decimal = settings.text_fuel_cost
    elif turn_type == "image":
        amount = settings.image_fuel_cost
    else:
        raise ValueError(f"Unknown turn type: {turn_type}")
    return Web3.to_wei(amount, "ether")


# ---------------- Ledger (reader + relayer) ----------------
class FuelLedger:
    def __init__(
        self,
        w3: Web3,
        contract_address: str,
        admin_key: str,
        gas_limit: int = 200_000,
        chain_id: Optional[int] = None,
    ):
        self.w3 = w3
        self.contract = w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=FUEL_ABI,
        )
        self._admin_key = admin_key
        self.gas_limit = gas_limit
        self.chain_id = chain_id
        # one relayer account => one nonce sequence
        self._send_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings) -> "FuelLedger":
        w3 = Web3(Web3.HTTPProvider(settings.rpc_url))
        return cls(
            w3,
            settings.fuel_contract_address,
            settings.admin_private_key,
            gas_limit=settings.debit_gas_limit,
            chain_id=settings.chain_id,
        )

    def get_balance(self, wallet: str) -> int:
        """Read the prepaid fuel of `wallet` from the contract (wei)."""
        return int(self.contract.functions.getBalance(Web3.to_checksum_address(wallet)).call())

    def debit(self, wallet: str, amount: int) -> str:
        """
        Debit `amount` wei of fuel from `wallet`, signed and paid for by the
        relayer key. The call is simulated first so reverts surface before
        anything is broadcast. Returns the transaction hash.
        """
        user = Web3.to_checksum_address(wallet)
        try:
            account = self.w3.eth.account.from_key(self._admin_key)
            fn = self.contract.functions.debit(user, amount)

            with self._send_lock:
                gas_price = self.w3.eth.gas_price
                fn.call({"from": account.address})

                tx_params = {
                    "from": account.address,
                    "nonce": self.w3.eth.get_transaction_count(account.address, "pending"),
                    "gas": self.gas_limit,
                    "gasPrice": gas_price,
                }
                if self.chain_id is not None:
                    tx_params["chainId"] = self.chain_id
                tx = fn.build_transaction(tx_params)

                signed = self.w3.eth.account.sign_transaction(tx, self._admin_key)
                tx_hash = self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            logger.error(f"Relayer debit failed for {user}: {e}")
            raise FuelDebitError(str(e)) from e

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"Debited {amount} wei from {user}. Tx: {tx_hex}")
        return tx_hex


# ---------------- Per-wallet serialization ----------------
class WalletLocks:
    """
    One lock per wallet address (case-insensitive). An entry lives only while
    some turn holds or waits on it.
    """

    def __init__(self):
        self._entries: Dict[str, List] = {}  # key -> [lock, holders]
        self._guard = threading.Lock()

    def active_count(self) -> int:
        with self._guard:
            return len(self._entries)

    @contextmanager
    def hold(self, wallet: str) -> Iterator[None]:
        key = wallet.lower()
        with self._guard:
            entry = self._entries.setdefault(key, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._entries[key]

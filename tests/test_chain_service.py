"""Tests for the fuel ledger reader/relayer with a mocked web3 handle."""
import threading
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from web3 import Web3

from lumina.services.chain_service import (
    FUEL_ABI,
    FuelDebitError,
    FuelLedger,
    WalletLocks,
    fuel_cost,
)
from lumina.utils.settings import Settings

CONTRACT = "0x" + "ef" * 20
USER = "0x" + "ab" * 20
RELAYER = Web3.to_checksum_address("0x" + "99" * 20)
ADMIN_KEY = "0x" + "11" * 32
TX_HASH = bytes.fromhex("12" * 32)


@pytest.fixture
def w3():
    mock = MagicMock()
    mock.eth.account.from_key.return_value.address = RELAYER
    mock.eth.gas_price = 50_000_000_000
    mock.eth.get_transaction_count.return_value = 7
    mock.eth.send_raw_transaction.return_value = TX_HASH
    contract = mock.eth.contract.return_value
    contract.functions.getBalance.return_value.call.return_value = 5 * 10 ** 15
    contract.functions.debit.return_value.build_transaction.return_value = {"to": CONTRACT}
    return mock


@pytest.fixture
def ledger(w3):
    return FuelLedger(w3, CONTRACT, ADMIN_KEY, gas_limit=200_000, chain_id=10143)


def test_fuel_cost_defaults():
    settings = Settings()
    assert fuel_cost("text", settings) == 10 ** 15
    assert fuel_cost("image", settings) == 3 * 10 ** 15


def test_fuel_cost_configurable():
    assert fuel_cost("text", Settings(text_fuel_cost=Decimal("0.01"))) == 10 ** 16


def test_fuel_cost_unknown_type():
    with pytest.raises(ValueError):
        fuel_cost("video", Settings())


def test_contract_bound_with_abi(w3, ledger):
    w3.eth.contract.assert_called_once_with(address=Web3.to_checksum_address(CONTRACT), abi=FUEL_ABI)


def test_get_balance_reads_view(w3, ledger):
    assert ledger.get_balance(USER) == 5 * 10 ** 15
    w3.eth.contract.return_value.functions.getBalance.assert_called_once_with(
        Web3.to_checksum_address(USER)
    )


def test_debit_simulates_signs_and_broadcasts(w3, ledger):
    tx_hash = ledger.debit(USER, 10 ** 15)
    fn = w3.eth.contract.return_value.functions.debit

    fn.assert_called_once_with(Web3.to_checksum_address(USER), 10 ** 15)
    fn.return_value.call.assert_called_once_with({"from": RELAYER})
    fn.return_value.build_transaction.assert_called_once_with({
        "from": RELAYER,
        "nonce": 7,
        "gas": 200_000,
        "gasPrice": 50_000_000_000,
        "chainId": 10143,
    })
    w3.eth.account.sign_transaction.assert_called_once_with({"to": CONTRACT}, ADMIN_KEY)
    w3.eth.send_raw_transaction.assert_called_once_with(
        w3.eth.account.sign_transaction.return_value.raw_transaction
    )
    assert tx_hash == "0x" + "12" * 32


def test_debit_revert_in_simulation_is_not_broadcast(w3, ledger):
    w3.eth.contract.return_value.functions.debit.return_value.call.side_effect = Exception("execution reverted")
    with pytest.raises(FuelDebitError, match="execution reverted"):
        ledger.debit(USER, 10 ** 15)
    w3.eth.send_raw_transaction.assert_not_called()


def test_debit_broadcast_failure_wrapped(w3, ledger):
    w3.eth.send_raw_transaction.side_effect = ValueError("insufficient funds for gas * price + value")
    with pytest.raises(FuelDebitError, match="insufficient funds"):
        ledger.debit(USER, 10 ** 15)


def test_chain_id_left_to_web3_when_unset(w3):
    FuelLedger(w3, CONTRACT, ADMIN_KEY).debit(USER, 1)
    params = w3.eth.contract.return_value.functions.debit.return_value.build_transaction.call_args[0][0]
    assert "chainId" not in params


def test_wallet_locks_case_insensitive():
    locks = WalletLocks()
    upper = Web3.to_checksum_address(USER)
    acquired = []

    def contender():
        with locks.hold(upper):
            acquired.append("upper")

    with locks.hold(USER):
        t = threading.Thread(target=contender)
        t.start()
        t.join(timeout=0.1)
        # the checksum spelling waits on the same lock
        assert acquired == []
        assert locks.active_count() == 1
    t.join()
    assert acquired == ["upper"]


def test_wallet_locks_distinct_wallets_do_not_block():
    locks = WalletLocks()
    with locks.hold(USER):
        with locks.hold("0x" + "cd" * 20):
            assert locks.active_count() == 2


def test_wallet_locks_released_entries_are_dropped():
    locks = WalletLocks()
    for i in range(50):
        with locks.hold("0x" + f"{i:040x}"):
            pass
    assert locks.active_count() == 0

    with pytest.raises(RuntimeError):
        with locks.hold(USER):
            raise RuntimeError("turn failed")
    assert locks.active_count() == 0

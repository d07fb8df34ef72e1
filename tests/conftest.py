from datetime import datetime, timedelta
from decimal import Decimal

import mongomock
import pytest
from fastapi.testclient import TestClient

from lumina.database.conversation_store import ConversationStore
from lumina.main import create_app
from lumina.services.container import Services
from lumina.services.title_service import TitleSummarizer
from lumina.utils.settings import Settings

WALLET = "0x" + "ab" * 20
OTHER_WALLET = "0x" + "cd" * 20
ONE_ETHER = 10 ** 18


class StepClock:
    """Deterministic clock: every call is one second after the previous."""

    def __init__(self):
        self.now = datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        self.now += timedelta(seconds=1)
        return self.now


class FakeLedger:
    def __init__(self, balance=ONE_ETHER):
        self.balances = {}
        self.default_balance = balance
        self.debits = []
        self.balance_reads = []
        self.debit_error = None

    def get_balance(self, wallet):
        self.balance_reads.append(wallet)
        return self.balances.get(wallet, self.default_balance)

    def debit(self, wallet, amount):
        if self.debit_error is not None:
            raise self.debit_error
        self.debits.append((wallet, amount))
        return "0x" + "12" * 32


class FakeGenerator:
    def __init__(self, reply="Hello from the model"):
        self.reply = reply
        self.calls = []
        self.title_prompts = []
        self.title = "Fox Art Session"
        self.title_error = None

    def generate(self, prompt, mode="text"):
        self.calls.append((prompt, mode))
        return self.reply

    def complete_text(self, prompt):
        self.title_prompts.append(prompt)
        if self.title_error is not None:
            raise self.title_error
        return self.title


@pytest.fixture
def settings():
    return Settings(
        google_api_key="test-key",
        fuel_contract_address="0x" + "ef" * 20,
        admin_private_key="0x" + "11" * 32,
        text_fuel_cost=Decimal("0.001"),
        image_fuel_cost=Decimal("0.003"),
    )


@pytest.fixture
def db():
    return mongomock.MongoClient()["lumina_test"]


@pytest.fixture
def store(db):
    return ConversationStore(db, clock=StepClock())


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def services(settings, store, generator, ledger):
    return Services(
        settings=settings,
        store=store,
        generator=generator,
        ledger=ledger,
        titles=TitleSummarizer(store, generator),
    )


@pytest.fixture
def client(services):
    return TestClient(create_app(services=services))

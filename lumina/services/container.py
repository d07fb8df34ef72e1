# lumina/services/container.py
import logging
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from lumina.database.conversation_store import ConversationStore
from lumina.database.mongodb import create_database
from lumina.services.chain_service import FuelLedger, WalletLocks
from lumina.services.llm_services import GenerationClient
from lumina.services.title_service import TitleSummarizer
from lumina.utils.settings import Settings

logger = logging.getLogger("container")


@dataclass
class Services:
    """Handles to every external collaborator, built once per process."""

    settings: Settings
    store: ConversationStore
    generator: GenerationClient
    ledger: Optional[FuelLedger]
    titles: TitleSummarizer
    locks: WalletLocks = field(default_factory=WalletLocks)


def build_services(settings: Settings) -> Services:
    store = ConversationStore(create_database(settings.mongo_uri, settings.mongo_db))
    generator = GenerationClient.from_settings(settings)
    ledger = FuelLedger.from_settings(settings) if settings.ledger_configured else None
    if ledger is None:
        logger.warning("Fuel ledger not configured; chat turns will be refused")
    return Services(
        settings=settings,
        store=store,
        generator=generator,
        ledger=ledger,
        titles=TitleSummarizer(store, generator),
    )


# Dependency for routes---#
def get_services(request: Request) -> Services:
    return request.app.state.services

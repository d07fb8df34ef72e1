# lumina/database/mongodb.py
from pymongo import MongoClient, ASCENDING, DESCENDING
from pymongo.database import Database


def create_database(mongo_uri: str, mongo_db: str) -> Database:
    """Open the shared client and return the typed Database object."""
    client = MongoClient(mongo_uri)
    return client[mongo_db]


# ---------------- Indexes  optimized for sidebar listing and chat replay ----------------
def ensure_indexes(db: Database) -> None:
    db.conversations.create_index([("wallet_address", ASCENDING), ("updated_at", DESCENDING)])
    db.messages.create_index([("conversation_id", ASCENDING), ("created_at", ASCENDING)])
    db.messages.create_index([("wallet_address", ASCENDING)])


def ping(db: Database) -> bool:
    try:
        db.client.admin.command("ping")
        return True
    except Exception:
        return False

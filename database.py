"""
Database Helper Functions

MongoDB access for the restaurant API. One MongoClient is built at process
start and shared by every request.

Collections:
- menu, food, table, order, orderItem, invoice, user
"""

import logging
from typing import Any

from bson import ObjectId
from fastapi.encoders import jsonable_encoder
from pymongo import MongoClient
from pymongo.collection import Collection
from pymongo.database import Database

from settings import Settings

logger = logging.getLogger(__name__)

MENU = "menu"
FOOD = "food"
TABLE = "table"
ORDER = "order"
ORDER_ITEM = "orderItem"
INVOICE = "invoice"
USER = "user"


def connect(settings: Settings) -> MongoClient:
    """Build the shared client. No I/O happens until the first operation."""
    return MongoClient(
        settings.database_url,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.connect_timeout_seconds * 1000,
        # Every operation issued through this client inherits the request deadline
        timeoutMS=settings.request_timeout_seconds * 1000,
    )


def ping(client: MongoClient) -> None:
    """Startup handshake. Raises if the server cannot be reached."""
    client.admin.command("ping")
    logger.info("Successfully connected to mongodb")


def open_collection(db: Database, name: str) -> Collection:
    return db[name]


def to_json(document: Any) -> Any:
    """Make a document (or list of documents) safe to return as JSON."""
    if document is None:
        return None
    return jsonable_encoder(document, custom_encoder={ObjectId: str})

"""MongoDB helpers.

Centralizes creation of Mongo clients so every reader and loader connects
with the same TLS and timeout settings.
"""

from __future__ import annotations

from typing import Any

import certifi
from pymongo import MongoClient
from pymongo.database import Database

from creator_analytics.config import Settings

TIMEOUT_MS = 30000


def get_client(uri: str, tls: bool = True) -> MongoClient[dict[str, Any]]:
    """Return a configured PyMongo MongoClient for the provided URI.

    Args:
        uri: MongoDB connection URI.
        tls: Connect over TLS using the certifi CA bundle.

    Returns:
        Configured MongoClient instance.
    """
    options: dict[str, Any] = {
        "serverSelectionTimeoutMS": TIMEOUT_MS,
        "socketTimeoutMS": TIMEOUT_MS,
        "connectTimeoutMS": TIMEOUT_MS,
    }
    if tls:
        options.update(tls=True, tlsCAFile=certifi.where())
    return MongoClient(uri, **options)


def get_db(settings: Settings) -> Database[dict[str, Any]]:
    """Return the configured database, creating a client for it."""
    return get_client(settings.mongo_uri, settings.mongo_tls)[settings.mongo_db]

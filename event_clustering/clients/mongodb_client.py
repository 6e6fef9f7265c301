"""Singleton accessor for the MongoDB client."""

from __future__ import annotations

from pymongo import MongoClient
from pymongo.database import Database

from ..config import MONGODB_DATABASE, MONGODB_URI

_client: MongoClient | None = None


def get_mongo_client() -> MongoClient:
    """Return a singleton :class:`pymongo.MongoClient`.

    Datetimes come back timezone-aware (UTC) so they compare cleanly with
    ``datetime.now(timezone.utc)``.
    """
    global _client
    if _client is None:
        _client = MongoClient(MONGODB_URI, tz_aware=True)
    return _client


def get_database() -> Database:
    """Return the configured news database."""
    return get_mongo_client()[MONGODB_DATABASE]

__all__ = ["get_mongo_client", "get_database"]

"""Persistence layer: MongoDB collections for articles, events and leases.

Every write that links an article to an event runs inside a multi-document
transaction, so an article is never linked without the matching centroid
update (or vice versa).
"""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from pymongo import ASCENDING, ReturnDocument
from pymongo.client_session import ClientSession
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from ..clients.mongodb_client import get_database
from ..models import STATUS_ACTIVE, STATUS_STALE, Article, Embedding, Event
from ..utils.datetime_utils import get_current_timestamp
from .similarity import update_centroid

logger = logging.getLogger(__name__)

ARTICLES_COLLECTION: str = "articles"
EVENTS_COLLECTION: str = "events"
OUTLETS_COLLECTION: str = "outlets"
LOCKS_COLLECTION: str = "locks"


class ArticleAlreadyClusteredError(RuntimeError):
    """The article was linked to an event by someone else mid-transaction."""


class EventNotFoundError(LookupError):
    """The target event is missing or has no centroid to update."""


def dominant_language(counts: Dict[str, int]) -> Optional[str]:
    """Most frequent language in *counts*; ties go to the first one seen."""
    if not counts:
        return None
    return Counter(counts).most_common(1)[0][0]


class EventStore:
    """Read and write access to the clustering collections."""

    def __init__(self, database: Optional[Database] = None) -> None:
        self._db = database if database is not None else get_database()
        self.articles = self._db[ARTICLES_COLLECTION]
        self.events = self._db[EVENTS_COLLECTION]
        self.outlets = self._db[OUTLETS_COLLECTION]
        self.locks = self._db[LOCKS_COLLECTION]

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def ensure_indexes(self) -> None:
        """Create the indexes the clustering queries rely on."""
        self.articles.create_index("url", unique=True)
        self.articles.create_index([("event_id", ASCENDING), ("fetched_at", ASCENDING)])
        self.articles.create_index("published_at")
        self.events.create_index([("status", ASCENDING), ("last_updated_at", ASCENDING)])
        self.events.create_index("first_seen_at")
        logger.info("Ensured MongoDB indexes")

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def find_unclustered_articles(self, fetched_since: datetime) -> List[Article]:
        """Unclustered articles with an embedding, oldest publication first.

        Articles without ``published_at`` come after every dated one.
        """
        cursor = self.articles.aggregate(
            [
                {
                    "$match": {
                        "event_id": None,
                        "embedding": {"$ne": None},
                        "fetched_at": {"$gte": fetched_since},
                    }
                },
                {"$project": {"title": 1, "url": 1, "outlet_id": 1, "language": 1,
                              "embedding": 1, "published_at": 1, "fetched_at": 1,
                              "event_id": 1,
                              "undated": {"$eq": [{"$ifNull": ["$published_at", None]}, None]}}},
                # A plain sort would put null published_at first
                {"$sort": {"undated": ASCENDING, "published_at": ASCENDING, "_id": ASCENDING}},
            ]
        )
        return [Article.from_document(doc) for doc in cursor]

    def find_active_events(self, updated_since: datetime) -> List[Event]:
        """Active events touched since *updated_since*, in creation order."""
        cursor = self.events.find(
            {"status": STATUS_ACTIVE, "last_updated_at": {"$gte": updated_since}}
        ).sort([("first_seen_at", ASCENDING), ("_id", ASCENDING)])
        return [Event.from_document(doc) for doc in cursor]

    def get_event(self, event_id: str) -> Optional[Event]:
        doc = self.events.find_one({"_id": event_id})
        return Event.from_document(doc) if doc else None

    def get_outlet_languages(self, outlet_ids: Iterable[Optional[str]]) -> Dict[str, str]:
        """Map outlet id to its declared language, for outlets that have one."""
        unique_ids = sorted({oid for oid in outlet_ids if oid})
        if not unique_ids:
            return {}
        cursor = self.outlets.find({"_id": {"$in": unique_ids}}, {"language": 1})
        return {doc["_id"]: doc["language"] for doc in cursor if doc.get("language")}

    def find_event_members(self, event_id: str) -> List[Article]:
        cursor = self.articles.find(
            {"event_id": event_id}, {"embedding": 1, "language": 1, "outlet_id": 1}
        )
        return [Article.from_document(doc) for doc in cursor]

    # ------------------------------------------------------------------
    # Transactional writes
    # ------------------------------------------------------------------
    def _run_in_transaction(self, callback):
        with self._db.client.start_session() as session:
            return session.with_transaction(callback)

    def _link_article(self, session: ClientSession, article_id: str, event_id: str) -> None:
        result = self.articles.update_one(
            {"_id": article_id, "event_id": None},
            {"$set": {"event_id": event_id}},
            session=session,
        )
        if result.matched_count != 1:
            raise ArticleAlreadyClusteredError(
                f"Article {article_id} is missing or already clustered"
            )

    def assign_article_to_event(
        self,
        article_id: str,
        event_id: str,
        embedding: Embedding,
        language: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        """Link an article to an event and fold its embedding into the centroid.

        Returns the event as written. Both writes commit together or not at all.
        """
        timestamp = now or get_current_timestamp()

        def _txn(session: ClientSession) -> Event:
            doc = self.events.find_one({"_id": event_id}, session=session)
            if not doc or not doc.get("centroid_embedding"):
                raise EventNotFoundError(f"Event {event_id} not found or has no centroid")

            event = Event.from_document(doc)
            event.centroid_embedding = update_centroid(
                event.centroid_embedding, embedding, event.article_count
            )
            event.article_count += 1
            event.last_updated_at = timestamp
            if language:
                event.language_counts[language] = event.language_counts.get(language, 0) + 1
                event.language = dominant_language(event.language_counts)

            self._link_article(session, article_id, event_id)
            self.events.update_one(
                {"_id": event_id},
                {
                    "$set": {
                        "centroid_embedding": event.centroid_embedding,
                        "article_count": event.article_count,
                        "last_updated_at": timestamp,
                        "language": event.language,
                        "language_counts": event.language_counts,
                    }
                },
                session=session,
            )
            return event

        return self._run_in_transaction(_txn)

    def create_event_from_article(
        self,
        article_id: str,
        title: str,
        embedding: Embedding,
        language: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Event:
        """Insert a new event seeded by one article and link the article to it."""
        timestamp = now or get_current_timestamp()

        def _txn(session: ClientSession) -> Event:
            event = Event(
                id=uuid4().hex,
                title=title,
                centroid_embedding=list(embedding),
                article_count=1,
                status=STATUS_ACTIVE,
                first_seen_at=timestamp,
                last_updated_at=timestamp,
                language=language,
                language_counts={language: 1} if language else {},
            )
            self.events.insert_one(event.to_document(), session=session)
            self._link_article(session, article_id, event.id)
            return event

        return self._run_in_transaction(_txn)

    # ------------------------------------------------------------------
    # Bulk and repair writes
    # ------------------------------------------------------------------
    def mark_stale_events(self, cutoff: datetime) -> int:
        """Demote active events last updated before *cutoff*; return the count."""
        result = self.events.update_many(
            {"status": STATUS_ACTIVE, "last_updated_at": {"$lt": cutoff}},
            {"$set": {"status": STATUS_STALE}},
        )
        return result.modified_count

    def replace_centroid(
        self,
        event_id: str,
        centroid_embedding: Embedding,
        article_count: int,
        language_counts: Dict[str, int],
        now: Optional[datetime] = None,
    ) -> None:
        self.events.update_one(
            {"_id": event_id},
            {
                "$set": {
                    "centroid_embedding": centroid_embedding,
                    "article_count": article_count,
                    "language_counts": language_counts,
                    "language": dominant_language(language_counts),
                    "last_updated_at": now or get_current_timestamp(),
                }
            },
        )

    def insert_article(self, document: Dict[str, Any]) -> Optional[str]:
        """Insert an article document; ``None`` when its URL is already stored."""
        doc = dict(document)
        doc.setdefault("_id", uuid4().hex)
        doc.setdefault("event_id", None)
        doc.setdefault("fetched_at", get_current_timestamp())
        try:
            result = self.articles.insert_one(doc)
        except DuplicateKeyError:
            logger.debug("Article already exists: %s", doc.get("url"))
            return None
        return result.inserted_id

    # ------------------------------------------------------------------
    # Single-writer lease
    # ------------------------------------------------------------------
    def acquire_lease(
        self, name: str, holder: str, ttl_seconds: int, now: Optional[datetime] = None
    ) -> bool:
        """Take the named lease unless another holder has an unexpired one."""
        timestamp = now or get_current_timestamp()
        try:
            doc = self.locks.find_one_and_update(
                {
                    "_id": name,
                    "$or": [{"expires_at": {"$lt": timestamp}}, {"holder": holder}],
                },
                {
                    "$set": {
                        "holder": holder,
                        "acquired_at": timestamp,
                        "expires_at": timestamp + timedelta(seconds=ttl_seconds),
                    }
                },
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError:
            # Upsert collided with a live lease held by someone else
            return False
        return bool(doc) and doc.get("holder") == holder

    def release_lease(self, name: str, holder: str) -> None:
        self.locks.delete_one({"_id": name, "holder": holder})


def collect_member_embeddings(members: Iterable[Article]) -> Tuple[List[Embedding], Dict[str, int]]:
    """Embeddings and language tallies for an event's member articles."""
    embeddings: List[Embedding] = []
    languages: Dict[str, int] = {}
    for member in members:
        if member.embedding:
            embeddings.append(member.embedding)
        if member.language:
            languages[member.language] = languages.get(member.language, 0) + 1
    return embeddings, languages

__all__ = [
    "EventStore",
    "ArticleAlreadyClusteredError",
    "EventNotFoundError",
    "dominant_language",
    "collect_member_embeddings",
]

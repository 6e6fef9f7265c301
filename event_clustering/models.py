"""Domain models used across the project."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from . import config

# Type alias for 1536-dimensional embedding vectors
Embedding = List[float]

# Event lifecycle states
STATUS_ACTIVE: str = "active"
STATUS_STALE: str = "stale"
STATUS_ARCHIVED: str = "archived"
EVENT_STATUSES = (STATUS_ACTIVE, STATUS_STALE, STATUS_ARCHIVED)


@dataclass(slots=True)
class Article:
    """A stored news article, as seen by the clustering engine."""

    id: str
    title: str = ""
    url: str = ""
    outlet_id: Optional[str] = None
    language: Optional[str] = None
    embedding: Optional[Embedding] = None
    published_at: Optional[datetime] = None
    fetched_at: Optional[datetime] = None
    event_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Article":
        return cls(
            id=doc["_id"],
            title=doc.get("title") or "",
            url=doc.get("url") or "",
            outlet_id=doc.get("outlet_id"),
            language=doc.get("language"),
            embedding=doc.get("embedding"),
            published_at=doc.get("published_at"),
            fetched_at=doc.get("fetched_at"),
            event_id=doc.get("event_id"),
        )


@dataclass(slots=True)
class Event:
    """A group of articles describing the same real-world event."""

    id: str
    title: str
    centroid_embedding: Optional[Embedding]
    article_count: int = 1
    status: str = STATUS_ACTIVE
    first_seen_at: Optional[datetime] = None
    last_updated_at: Optional[datetime] = None
    language: Optional[str] = None
    language_counts: Dict[str, int] = field(default_factory=dict)
    source: str = "rss"

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Event":
        return cls(
            id=doc["_id"],
            title=doc.get("title") or "",
            centroid_embedding=doc.get("centroid_embedding"),
            article_count=int(doc.get("article_count", 1)),
            status=doc.get("status", STATUS_ACTIVE),
            first_seen_at=doc.get("first_seen_at"),
            last_updated_at=doc.get("last_updated_at"),
            language=doc.get("language"),
            language_counts=dict(doc.get("language_counts") or {}),
            source=doc.get("source", "rss"),
        )

    def to_document(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "title": self.title,
            "centroid_embedding": self.centroid_embedding,
            "article_count": self.article_count,
            "status": self.status,
            "first_seen_at": self.first_seen_at,
            "last_updated_at": self.last_updated_at,
            "language": self.language,
            "language_counts": dict(self.language_counts),
            "source": self.source,
        }


@dataclass(slots=True)
class ClusteringConfig:
    """Tunables for one clustering pass.

    Defaults come from the environment (see :mod:`event_clustering.config`).
    """

    same_language_threshold: float = config.SAME_LANGUAGE_THRESHOLD
    cross_language_threshold: float = config.CROSS_LANGUAGE_THRESHOLD
    max_event_age_days: int = config.MAX_EVENT_AGE_DAYS
    candidate_window_hours: int = config.CANDIDATE_WINDOW_HOURS
    language_aware: bool = config.LANGUAGE_AWARE_THRESHOLDS


@dataclass(slots=True)
class ClusteringResult:
    """Outcome of one article's assignment decision."""

    article_id: str
    event_id: str
    similarity: float
    is_new_event: bool


@dataclass(slots=True)
class PassSummary:
    """Aggregate counts handed back to the scheduler."""

    processed: int = 0
    new_events: int = 0
    assigned: int = 0
    skipped: bool = False

    @classmethod
    def from_results(cls, results: List[ClusteringResult]) -> "PassSummary":
        new_events = sum(1 for r in results if r.is_new_event)
        return cls(
            processed=len(results),
            new_events=new_events,
            assigned=len(results) - new_events,
        )


@dataclass(slots=True)
class EmbeddingResult:
    """Vector returned by the embedding provider plus its token usage."""

    embedding: Embedding
    model: str
    token_count: int = 0


__all__ = [
    "Embedding",
    "Article",
    "Event",
    "ClusteringConfig",
    "ClusteringResult",
    "PassSummary",
    "EmbeddingResult",
    "STATUS_ACTIVE",
    "STATUS_STALE",
    "STATUS_ARCHIVED",
    "EVENT_STATUSES",
]

"""Service layer modules grouping business logic by concern.

This module provides convenience re-exports so that callers can simply do for
example `from event_clustering.services import cluster_articles` without having
to know which underlying module provides the symbol.
"""

from .similarity import cosine_similarity, centroid, update_centroid  # noqa: F401
from .embeddings import EmbeddingProvider, prepare_text_for_embedding  # noqa: F401
from .storage import EventStore  # noqa: F401
from .clustering import cluster_articles, mark_stale_events, recluster_event  # noqa: F401
from .ingestion import ingest_article  # noqa: F401

__all__ = [
    "cosine_similarity",
    "centroid",
    "update_centroid",
    "EmbeddingProvider",
    "prepare_text_for_embedding",
    "EventStore",
    "cluster_articles",
    "mark_stale_events",
    "recluster_event",
    "ingest_article",
]

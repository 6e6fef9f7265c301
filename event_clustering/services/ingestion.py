"""Ingestion hand-off: store a processed article with its embedding.

The feed and extraction stages live elsewhere; this is the last step, where an
extracted article gets its vector and lands in the ``articles`` collection for
the next clustering pass. An embedding failure never blocks storage.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from openai import OpenAIError

from ..utils.datetime_utils import get_current_timestamp
from .embeddings import EmbeddingProvider, prepare_text_for_embedding
from .storage import EventStore

# Shorter texts are mostly boilerplate and make poor event anchors
MIN_EMBEDDING_TEXT_CHARS: int = 50

logger = logging.getLogger(__name__)


def ingest_article(
    store: EventStore,
    provider: EmbeddingProvider,
    article: Dict[str, Any],
) -> Dict[str, Any]:
    """Embed and persist one extracted article.

    *article* carries ``url``, ``title`` and ``outlet_id`` plus optional
    ``content``, ``summary``, ``language`` and ``published_at``.

    Returns ``{"article_id": ..., "status": "success" | "duplicate"}``.
    """
    url = article["url"]
    title = article.get("title") or ""

    language: Optional[str] = article.get("language")
    if not language and article.get("outlet_id"):
        language = store.get_outlet_languages([article["outlet_id"]]).get(article["outlet_id"])

    embedding = None
    text = prepare_text_for_embedding(title, article.get("content"), article.get("summary"))
    if len(text) >= MIN_EMBEDDING_TEXT_CHARS:
        try:
            embedding = provider.generate_embedding(text).embedding
        except OpenAIError as exc:
            logger.error("Failed to generate embedding for %s, continuing without: %s", url, exc)
    else:
        logger.warning("Insufficient text for embedding (%d chars): %s", len(text), url)

    document = {
        "url": url,
        "title": title,
        "outlet_id": article.get("outlet_id"),
        "content": article.get("content"),
        "summary": article.get("summary"),
        "language": language,
        "published_at": article.get("published_at"),
        "fetched_at": article.get("fetched_at") or get_current_timestamp(),
        "embedding": embedding,
        "event_id": None,
    }
    article_id = store.insert_article(document)
    if article_id is None:
        return {"article_id": None, "status": "duplicate"}

    logger.info("Stored article %s (%s, has_embedding=%s)", article_id, url, embedding is not None)
    return {"article_id": article_id, "status": "success"}

__all__ = ["ingest_article", "MIN_EMBEDDING_TEXT_CHARS"]

"""Incremental event clustering.

Each pass walks the unclustered articles in publication order and either
assigns each one to the most similar active event (at or above threshold) or
founds a new event with it. The active events are held in a pass-local working
set that is updated after every write, so later articles in the same batch see
centroids moved (or events created) by earlier ones.

Passes assume a single writer. The scheduler entry points in
:mod:`event_clustering.workflows.cluster_pipeline` take a lease to guarantee it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from pymongo.errors import PyMongoError

from ..models import Article, ClusteringConfig, ClusteringResult, Event
from ..utils.datetime_utils import days_ago, get_current_timestamp, hours_ago
from ..utils.text_cleaning import generate_event_title
from .similarity import centroid, cosine_similarity
from .storage import EventStore, collect_member_embeddings

logger = logging.getLogger(__name__)

# Similarity reported for an article that founds its own event
NEW_EVENT_SIMILARITY: float = 1.0


def select_threshold(
    article_language: Optional[str],
    event_language: Optional[str],
    config: ClusteringConfig,
) -> float:
    """Pick the similarity threshold for one article/event comparison.

    Without ``language_aware`` every comparison uses the cross-language
    threshold. With it, a known shared language uses the stricter
    same-language threshold.
    """
    if (
        config.language_aware
        and article_language
        and event_language
        and article_language == event_language
    ):
        return config.same_language_threshold
    return config.cross_language_threshold


def find_best_match(
    embedding: List[float],
    article_language: Optional[str],
    events: List[Event],
    config: ClusteringConfig,
) -> Optional[Tuple[Event, float]]:
    """Return the highest-scoring event at or above its threshold.

    Ties keep the earliest event in *events*. Events without a centroid are
    skipped.
    """
    best: Optional[Tuple[Event, float]] = None
    for event in events:
        if not event.centroid_embedding:
            continue

        similarity = cosine_similarity(embedding, event.centroid_embedding)
        threshold = select_threshold(article_language, event.language, config)
        if similarity < threshold:
            continue
        if best is None or similarity > best[1]:
            best = (event, similarity)
    return best


def cluster_articles(
    store: EventStore,
    config: Optional[ClusteringConfig] = None,
    now: Optional[datetime] = None,
    heartbeat: Optional[Callable[[], None]] = None,
) -> List[ClusteringResult]:
    """Run one clustering pass and return an outcome per processed article.

    A persistence failure propagates after rolling back the failing article's
    transaction; that article stays unclustered for the next pass.

    *heartbeat* is called before each article is written; raising from it
    stops the pass with earlier articles already committed.
    """
    config = config or ClusteringConfig()
    now = now or get_current_timestamp()

    logger.info(
        "Starting clustering pass (same_lang=%.2f, cross_lang=%.2f, max_age_days=%d, language_aware=%s)",
        config.same_language_threshold,
        config.cross_language_threshold,
        config.max_event_age_days,
        config.language_aware,
    )

    articles = store.find_unclustered_articles(hours_ago(config.candidate_window_hours, now))
    logger.info("Found %d unclustered articles", len(articles))
    if not articles:
        return []

    # Pass-local working copy; discarded when the pass returns
    resident: List[Event] = store.find_active_events(days_ago(config.max_event_age_days, now))
    positions: Dict[str, int] = {event.id: idx for idx, event in enumerate(resident)}
    logger.info("Loaded %d active events", len(resident))

    outlet_languages = store.get_outlet_languages(a.outlet_id for a in articles)

    results: List[ClusteringResult] = []
    for article in articles:
        if heartbeat is not None:
            heartbeat()
        language = article.language or outlet_languages.get(article.outlet_id or "")

        match = find_best_match(article.embedding, language, resident, config)
        if match is not None:
            event, similarity = match
            updated = store.assign_article_to_event(
                article.id, event.id, article.embedding, language=language, now=now
            )
            resident[positions[event.id]] = updated
            logger.debug(
                "Article %s assigned to event %s (similarity %.3f)", article.id, event.id, similarity
            )
            results.append(
                ClusteringResult(
                    article_id=article.id,
                    event_id=event.id,
                    similarity=similarity,
                    is_new_event=False,
                )
            )
            continue

        created = store.create_event_from_article(
            article.id,
            _title_for(article),
            article.embedding,
            language=language,
            now=now,
        )
        positions[created.id] = len(resident)
        resident.append(created)
        logger.debug("Article %s founded event %s", article.id, created.id)
        results.append(
            ClusteringResult(
                article_id=article.id,
                event_id=created.id,
                similarity=NEW_EVENT_SIMILARITY,
                is_new_event=True,
            )
        )

    new_events = sum(1 for r in results if r.is_new_event)
    logger.info(
        "Clustering completed: %d processed, %d new events, %d assigned",
        len(results),
        new_events,
        len(results) - new_events,
    )
    return results


def _title_for(article: Article) -> str:
    return generate_event_title(article.title) if article.title else article.id


def mark_stale_events(
    store: EventStore,
    older_than_days: int = 7,
    now: Optional[datetime] = None,
) -> int:
    """Move active events idle for more than *older_than_days* to ``stale``.

    Must not overlap a clustering pass.
    """
    count = store.mark_stale_events(days_ago(older_than_days, now))
    logger.info("Marked %d events as stale (older than %d days)", count, older_than_days)
    return count


def recluster_event(store: EventStore, event_id: str, now: Optional[datetime] = None) -> None:
    """Recompute an event's centroid from scratch over its current members.

    Repair path for drift: uses the true mean rather than the running update,
    and resets the member count. Logs and returns instead of raising, since
    callers invoke it speculatively.
    """
    try:
        if store.get_event(event_id) is None:
            logger.warning("Event %s not found; nothing to recluster", event_id)
            return

        members = store.find_event_members(event_id)
        if not members:
            logger.warning("No articles in event %s to recluster", event_id)
            return

        embeddings, languages = collect_member_embeddings(members)
        if not embeddings:
            logger.warning("No embeddings in articles of event %s", event_id)
            return

        store.replace_centroid(
            event_id,
            centroid(embeddings),
            article_count=len(members),
            language_counts=languages,
            now=now,
        )
    except (PyMongoError, ValueError):
        logger.exception("Failed to recluster event %s", event_id)
        return

    logger.info("Event %s re-clustered (%d articles)", event_id, len(members))

__all__ = [
    "cluster_articles",
    "mark_stale_events",
    "recluster_event",
    "find_best_match",
    "select_threshold",
    "NEW_EVENT_SIMILARITY",
]

"""Scheduler entry points: one clustering pass, one staleness sweep.

Both hold the same lease for their whole run, so a sweep never demotes an
event while a pass is assigning to it and two passes never race on the same
unclustered article. A pass renews the lease between articles and stops if
it was lost.
"""

from __future__ import annotations

import logging
import os
import socket
import time
from contextlib import contextmanager
from typing import Iterator, Optional
from uuid import uuid4

from ..logging_config import logging as _  # noqa: F401  # ensure config applied early
from ..config import CLUSTER_LEASE_NAME, CLUSTER_LEASE_SECONDS, STALE_EVENT_DAYS
from ..models import ClusteringConfig, PassSummary
from ..services.clustering import cluster_articles, mark_stale_events
from ..services.storage import EventStore

logger = logging.getLogger(__name__)


def _holder_id() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid4().hex[:8]}"


class LeaseLostError(RuntimeError):
    """Another worker took the clustering lease while this one held it."""


class Lease:
    """A held clustering lease that can be extended while work continues."""

    def __init__(self, store: EventStore, holder: str, ttl_seconds: int) -> None:
        self.store = store
        self.holder = holder
        self.ttl_seconds = ttl_seconds
        self._renewed_at = time.monotonic()

    def renew(self) -> None:
        """Push the expiry out once a third of the TTL has elapsed.

        Raises :class:`LeaseLostError` if the lease expired and another worker
        took it; the caller must stop writing.
        """
        if time.monotonic() - self._renewed_at < self.ttl_seconds / 3:
            return
        if not self.store.acquire_lease(CLUSTER_LEASE_NAME, self.holder, self.ttl_seconds):
            raise LeaseLostError(f"Clustering lease lost by {self.holder}")
        self._renewed_at = time.monotonic()
        logger.debug("Renewed clustering lease for %s", self.holder)


@contextmanager
def clustering_lease(
    store: EventStore, ttl_seconds: Optional[int] = None
) -> Iterator[Optional[Lease]]:
    """Hold the clustering lease for the ``with`` block.

    Yields ``None`` (and holds nothing) when another worker has it.
    """
    ttl = CLUSTER_LEASE_SECONDS if ttl_seconds is None else ttl_seconds
    holder = _holder_id()
    if not store.acquire_lease(CLUSTER_LEASE_NAME, holder, ttl):
        yield None
        return
    try:
        yield Lease(store, holder, ttl)
    finally:
        store.release_lease(CLUSTER_LEASE_NAME, holder)


def run_clustering_pass(
    store: Optional[EventStore] = None,
    config: Optional[ClusteringConfig] = None,
) -> PassSummary:
    """Run one full clustering pass and return aggregate counts."""
    store = store or EventStore()
    with clustering_lease(store) as lease:
        if lease is None:
            logger.warning("Clustering lease held by another worker; skipping pass")
            return PassSummary(skipped=True)
        results = cluster_articles(store, config, heartbeat=lease.renew)

    summary = PassSummary.from_results(results)
    _log_stats(summary)
    return summary


def run_staleness_sweep(
    store: Optional[EventStore] = None,
    older_than_days: int = STALE_EVENT_DAYS,
) -> int:
    """Demote idle events; returns how many moved to ``stale``."""
    store = store or EventStore()
    with clustering_lease(store) as lease:
        if lease is None:
            logger.warning("Clustering lease held by another worker; skipping staleness sweep")
            return 0
        return mark_stale_events(store, older_than_days)


def run(store: Optional[EventStore] = None) -> PassSummary:
    """Execute the scheduled job once: a clustering pass, then the sweep."""
    store = store or EventStore()
    summary = run_clustering_pass(store)
    if not summary.skipped:
        run_staleness_sweep(store)
    return summary


def _log_stats(summary: PassSummary) -> None:
    logger.info("=== Event Clustering Statistics ===")
    logger.info("Articles processed: %d", summary.processed)
    logger.info("New events created: %d", summary.new_events)
    logger.info("Assigned to existing events: %d", summary.assigned)
    logger.info("===================================")

__all__ = [
    "run",
    "run_clustering_pass",
    "run_staleness_sweep",
    "clustering_lease",
    "Lease",
    "LeaseLostError",
]

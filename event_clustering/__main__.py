"""Command line entry point for scheduled clustering jobs."""

from __future__ import annotations

import argparse
import logging

from .logging_config import logging as _  # noqa: F401  # ensure config applied early
from .config import STALE_EVENT_DAYS
from .models import ClusteringConfig
from .services.clustering import recluster_event
from .services.storage import EventStore
from .workflows.cluster_pipeline import (
    LeaseLostError,
    run,
    run_clustering_pass,
    run_staleness_sweep,
)

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="event_clustering")
    sub = parser.add_subparsers(dest="command", required=True)

    cluster = sub.add_parser("cluster", help="Run one clustering pass")
    cluster.add_argument("--same-language-threshold", type=float, default=None)
    cluster.add_argument("--cross-language-threshold", type=float, default=None)
    cluster.add_argument("--max-event-age-days", type=int, default=None)
    cluster.add_argument(
        "--language-aware",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Use the same-language threshold when article and event languages match",
    )

    sweep = sub.add_parser("sweep", help="Mark idle events as stale")
    sweep.add_argument(
        "--older-than-days",
        type=int,
        default=STALE_EVENT_DAYS,
        help=f"Idle window in days (default: {STALE_EVENT_DAYS})",
    )

    recluster = sub.add_parser("recluster", help="Recompute an event centroid from its members")
    recluster.add_argument("event_id")

    sub.add_parser("run", help="Clustering pass followed by the staleness sweep")
    sub.add_parser("init-db", help="Create MongoDB indexes")
    return parser


def _config_from_args(args: argparse.Namespace) -> ClusteringConfig:
    config = ClusteringConfig()
    if args.same_language_threshold is not None:
        config.same_language_threshold = args.same_language_threshold
    if args.cross_language_threshold is not None:
        config.cross_language_threshold = args.cross_language_threshold
    if args.max_event_age_days is not None:
        config.max_event_age_days = args.max_event_age_days
    if args.language_aware is not None:
        config.language_aware = args.language_aware
    return config


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    store = EventStore()

    if args.command == "cluster":
        try:
            summary = run_clustering_pass(store, _config_from_args(args))
        except LeaseLostError:
            logger.exception("Clustering pass stopped")
            return 1
        return 0 if not summary.skipped else 1
    if args.command == "sweep":
        run_staleness_sweep(store, args.older_than_days)
        return 0
    if args.command == "recluster":
        recluster_event(store, args.event_id)
        return 0
    if args.command == "init-db":
        store.ensure_indexes()
        return 0

    try:
        run(store)
    except LeaseLostError:
        logger.exception("Scheduled run stopped")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Scheduler-facing workflows."""

from .cluster_pipeline import run, run_clustering_pass, run_staleness_sweep  # noqa: F401

__all__ = ["run", "run_clustering_pass", "run_staleness_sweep"]

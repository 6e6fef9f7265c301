"""Top-level package for the event-clustering project.

This package simply exposes the public run() helper so callers can do
`python -m event_clustering run` or `from event_clustering import run; run()`.
"""

from importlib import metadata as _metadata

try:
    __version__: str = _metadata.version("event-clustering")
except _metadata.PackageNotFoundError:  # pragma: no cover – running from source
    __version__ = "0.0.0"

from .workflows.cluster_pipeline import run  # convenience re-export

__all__ = ["run", "__version__"]

"""Process logging setup.

Importing this module configures the root logger once. Library modules only
call ``logging.getLogger(__name__)``.
"""

import logging

from .config import LOG_LEVEL

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

# One INFO line per HTTP request or driver heartbeat drowns the pass statistics
for _noisy in ("httpx", "openai", "pymongo"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

__all__ = ["logging"]

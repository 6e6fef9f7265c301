"""Utility functions for the event clustering project.

Re-exports the text helpers and datetime utilities so that imports like
`from ..utils import generate_event_title` or `from ..utils import get_current_timestamp`
work as expected.
"""

from .text_cleaning import generate_event_title, truncate_text  # noqa: F401
from .datetime_utils import days_ago, get_current_timestamp, hours_ago  # noqa: F401

__all__ = [
    "generate_event_title",
    "truncate_text",
    "get_current_timestamp",
    "days_ago",
    "hours_ago",
]

"""Shared text helpers for event titles and embedding input."""

from __future__ import annotations

import re
from typing import Final

# ---------------------------------------------------------------------------
# Event titles
# ---------------------------------------------------------------------------
MAX_TITLE_CHARS: Final[int] = 200
MIN_TITLE_CUT: Final[int] = 100

_PREFIX_RE = re.compile(r"^(breaking|breaking news|update|exclusive):\s*", re.IGNORECASE)
_PIPE_SUFFIX_RE = re.compile(r"\s*\|\s*[^|]+$")
_DASH_SUFFIX_RE = re.compile(r"\s*-\s*[^-]+$")


def generate_event_title(article_title: str) -> str:
    """Derive an event title from the founding article's headline.

    Strips wire-style prefixes ("Breaking:", "Exclusive:") and a trailing
    "| Outlet" or "- Outlet" suffix, then caps the length at a word boundary.
    Falls back to the untouched headline when nothing is left.
    """
    title = _PREFIX_RE.sub("", article_title)
    title = _PIPE_SUFFIX_RE.sub("", title)
    title = _DASH_SUFFIX_RE.sub("", title)
    title = title.strip()

    if len(title) > MAX_TITLE_CHARS:
        last_space = title.rfind(" ", 0, MAX_TITLE_CHARS + 1)
        cut = last_space if last_space > MIN_TITLE_CUT else MAX_TITLE_CHARS
        title = title[:cut] + "..."

    return title or article_title


# ---------------------------------------------------------------------------
# Embedding input
# ---------------------------------------------------------------------------
_SENTENCE_END_RE = re.compile(r"[.!?](?=\s)|\n")


def _last_sentence_break(text: str, limit: int) -> int:
    """Index of the last sentence or paragraph end before *limit*, or -1.

    A period only ends a sentence when whitespace follows it, so decimals,
    abbreviations and domain names are never split.
    """
    # One extra character lets the lookahead see past the cut
    last = -1
    for match in _SENTENCE_END_RE.finditer(text, 0, limit + 1):
        if match.start() < limit:
            last = match.start()
    return last


def truncate_text(text: str, max_chars: int) -> str:
    """Bound *text* to ``max_chars`` without cutting a word in half.

    Prefers the last sentence or paragraph break when it falls in the final
    20% of the budget, otherwise cuts at the last whitespace.
    """
    if len(text) <= max_chars:
        return text

    truncated = text[:max_chars]
    break_point = _last_sentence_break(text, max_chars)
    if break_point > max_chars * 0.8:
        return truncated[: break_point + 1]

    # Cut point already sits on a word boundary
    if text[max_chars].isspace():
        return truncated.rstrip()

    last_space = max(truncated.rfind(" "), truncated.rfind("\t"))
    if last_space > 0:
        return truncated[:last_space].rstrip()
    # A single unbroken token longer than the budget
    return truncated

__all__ = ["generate_event_title", "truncate_text"]

"""Embedding utilities using the OpenAI API.

:class:`EmbeddingProvider` is built once per process and handed to the
ingestion code that needs vectors. It bounds the number of in-flight provider
calls with a semaphore it owns, truncates input to the model's budget and
retries rate-limited calls with exponential backoff. Any other provider error
propagates immediately.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, List, Optional, Sequence

from openai import RateLimitError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..clients.openai_client import get_openai
from ..models import EmbeddingResult
from ..utils.text_cleaning import truncate_text

# ---------------------------------------------------------------------------
# Local embedding settings
# ---------------------------------------------------------------------------
EMBEDDING_MODEL: str = "text-embedding-3-small"
EMBEDDING_DIMENSIONS: int = 1536
# ~8k tokens at roughly 4 characters per token
MAX_INPUT_CHARS: int = 8000 * 4
MAX_CONCURRENT_REQUESTS: int = 3
# One initial call plus three retries, backing off 1s, 2s, 4s
MAX_ATTEMPTS: int = 4
BATCH_SIZE: int = 10

logger = logging.getLogger(__name__)


class EmbeddingProvider:
    """Rate-limited gateway to the OpenAI embeddings endpoint."""

    def __init__(
        self,
        client: Any = None,
        *,
        model: str = EMBEDDING_MODEL,
        max_concurrency: int = MAX_CONCURRENT_REQUESTS,
        max_attempts: int = MAX_ATTEMPTS,
        max_input_chars: int = MAX_INPUT_CHARS,
        retry_wait: Optional[Callable[..., float]] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self._client = client
        self.model = model
        self.max_attempts = max_attempts
        self.max_input_chars = max_input_chars
        self._gate = threading.BoundedSemaphore(max_concurrency)
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=4)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_openai()
        return self._client

    def _retrying(self) -> Retrying:
        # Retrying keeps per-run state, so each call gets its own controller
        return Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._retry_wait,
            retry=retry_if_exception_type(RateLimitError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _create(self, payload: str | List[str]) -> Any:
        with self._gate:
            return self._retrying()(
                self.client.embeddings.create,
                model=self.model,
                input=payload,
            )

    def generate_embedding(self, text: str) -> EmbeddingResult:
        """Generate a vector embedding for *text* using the configured model."""
        truncated = truncate_text(text, self.max_input_chars)
        logger.debug(
            "Generating embedding (%d chars, %d before truncation)",
            len(truncated),
            len(text),
        )

        response = self._create(truncated)
        embedding = list(response.data[0].embedding)
        usage = getattr(response, "usage", None)
        token_count = int(getattr(usage, "total_tokens", 0) or 0)

        logger.debug("Generated embedding of length %d (%d tokens)", len(embedding), token_count)
        return EmbeddingResult(embedding=embedding, model=self.model, token_count=token_count)

    def generate_embeddings(
        self, texts: Sequence[str], batch_size: int = BATCH_SIZE
    ) -> List[EmbeddingResult]:
        """Embed *texts* in batches, preserving input order.

        Token usage reported per batch is split evenly across its inputs.
        """
        results: List[EmbeddingResult] = []
        for start in range(0, len(texts), batch_size):
            batch = [truncate_text(t, self.max_input_chars) for t in texts[start : start + batch_size]]
            response = self._create(batch)
            usage = getattr(response, "usage", None)
            total_tokens = int(getattr(usage, "total_tokens", 0) or 0)
            per_item = total_tokens // len(batch)

            results.extend(
                EmbeddingResult(embedding=list(d.embedding), model=self.model, token_count=per_item)
                for d in response.data
            )
        return results


def prepare_text_for_embedding(
    title: str,
    content: Optional[str],
    summary: Optional[str],
) -> str:
    """Combine article fields into the text sent to the embedding model.

    The headline leads, followed by the full content or, failing that, the
    feed summary.
    """
    parts: List[str] = []
    if title:
        parts.append(title)
        parts.append("")

    if content:
        parts.append(content)
    elif summary:
        parts.append(summary)

    return "\n".join(parts).strip()

__all__ = [
    "EmbeddingProvider",
    "prepare_text_for_embedding",
    "EMBEDDING_MODEL",
    "EMBEDDING_DIMENSIONS",
]

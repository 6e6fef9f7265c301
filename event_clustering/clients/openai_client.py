"""Process-wide OpenAI client used for embeddings."""

from __future__ import annotations

from openai import OpenAI as _OpenAIClient

from ..config import OPENAI_API_KEY, OPENAI_TIMEOUT_SECONDS

_client: _OpenAIClient | None = None


def get_openai() -> _OpenAIClient:
    """Return the shared :class:`openai.OpenAI` client, creating it on first use.

    The SDK's built-in retries are disabled: rate-limit backoff is handled by
    :class:`event_clustering.services.embeddings.EmbeddingProvider` and every
    other error must reach the caller on the first failure.
    """
    global _client
    if _client is None:
        if not OPENAI_API_KEY:
            raise EnvironmentError("OPENAI_API_KEY is not set in environment variables")
        _client = _OpenAIClient(
            api_key=OPENAI_API_KEY,
            max_retries=0,
            timeout=OPENAI_TIMEOUT_SECONDS,
        )
    return _client

__all__ = ["get_openai"]

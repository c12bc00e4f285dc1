"""Content feedback client.

Wraps the third-party text-generation API that reviews a draft post or poll
question and suggests improvements. The service is advisory: callers show
the suggestion if one arrives and carry on without it otherwise.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Literal

import httpx

from vibesphere.core.settings import settings
from vibesphere.services.errors import InvalidInput, UpstreamError

# Configure logger for this module
logger = logging.getLogger(__name__)

ContentKind = Literal["post", "poll"]

_PROMPTS: dict[str, str] = {
    "poll": (
        "Please review this poll question and provide suggestions to make it more "
        "engaging and effective. Keep your feedback concise, positive, and actionable: "
        '"{content}"'
    ),
    "post": (
        "Please review this social media post and provide suggestions to make it more "
        "engaging and effective. Keep your feedback concise, positive, and actionable: "
        '"{content}"'
    ),
}


@dataclass(frozen=True)
class FeedbackConfig:
    """Immutable configuration for the upstream API."""

    api_url: str
    api_key: str | None
    timeout_seconds: float


def load_feedback_config() -> FeedbackConfig:
    """Build configuration object from global settings."""

    return FeedbackConfig(
        api_url=settings.feedback_api_url,
        api_key=settings.feedback_api_key,
        timeout_seconds=float(settings.feedback_http_timeout_seconds),
    )


def build_prompt(content: str, kind: ContentKind) -> str:
    """Return the review prompt sent upstream for a draft."""
    if kind not in _PROMPTS:
        raise InvalidInput(f"Unsupported content type: {kind!r}")
    return _PROMPTS[kind].format(content=content)


def extract_feedback(payload: Any) -> str:
    """Pull the generated text out of a `generateContent` response body.

    Raises:
        UpstreamError: If the body does not have the expected shape.
    """
    try:
        text = payload["candidates"][0]["content"]["parts"][0]["text"]
    except (KeyError, IndexError, TypeError) as exc:
        raise UpstreamError("Malformed response from feedback service") from exc
    if not isinstance(text, str) or not text.strip():
        raise UpstreamError("Malformed response from feedback service")
    return text


class FeedbackClient:
    """HTTP client wrapper for the text-generation API."""

    def __init__(
        self,
        config: FeedbackConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_feedback_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    async def get_feedback(self, content: str, kind: ContentKind) -> str:
        """Ask the upstream model to review `content`.

        Args:
            content: Draft post body or poll question.
            kind: Either "post" or "poll"; selects the prompt wording.

        Returns:
            The suggestion text.

        Raises:
            InvalidInput: If the content is blank or the kind is unknown.
            UpstreamError: On transport failure, non-2xx status, or a malformed body.
        """
        content = content.strip()
        if not content:
            raise InvalidInput("Please enter some content first.")

        body = {"contents": [{"parts": [{"text": build_prompt(content, kind)}]}]}
        headers = {"Content-Type": "application/json"}
        if self.config.api_key:
            headers["x-goog-api-key"] = self.config.api_key

        client = await self._ensure_client()
        start_time = time.time()
        try:
            response = await client.post(self.config.api_url, json=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Feedback request failed: %s", exc)
            raise UpstreamError(f"Feedback request failed: {exc}") from exc

        elapsed = time.time() - start_time
        logger.debug("Feedback upstream answered %s in %.3fs", response.status_code, elapsed)

        if not response.is_success:
            logger.warning("Feedback upstream responded with %s", response.status_code)
            raise UpstreamError(f"API returned status {response.status_code}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError("Malformed response from feedback service") from exc

        return extract_feedback(payload)

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _FeedbackClientSingleton:
    """Singleton wrapper for FeedbackClient."""

    _instance: FeedbackClient | None = None

    @classmethod
    def get_instance(cls) -> FeedbackClient:
        if cls._instance is None:
            cls._instance = FeedbackClient()
        return cls._instance


def get_feedback_client() -> FeedbackClient:
    """Return a singleton feedback client instance."""
    return _FeedbackClientSingleton.get_instance()

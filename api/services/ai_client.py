from functools import lru_cache
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    before_sleep_log,
)
import logging
import structlog

from api.config import settings

logger = structlog.get_logger()
_std_logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """The text-generation service could not produce an answer."""


class RateLimitedError(GenerationError):
    """HTTP 429 without a quota signal; worth one retry."""


class QuotaExhaustedError(GenerationError):
    """The account's quota is used up; retrying will not help."""


def _is_quota_exhausted(body: str) -> bool:
    lowered = body.lower()
    return "limit: 0" in lowered or "quota" in lowered


class GeminiClient:
    """Thin async client for the Gemini generateContent REST endpoint.

    A rate-limited call is retried once after a fixed backoff; quota
    exhaustion and every other failure are raised straight away.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        retry_backoff: Optional[float] = None,
        max_attempts: int = 2,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.api_url = (api_url or settings.GEMINI_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.AI_TIMEOUT_SECONDS
        self.retry_backoff = (
            retry_backoff if retry_backoff is not None else settings.AI_RETRY_BACKOFF_SECONDS
        )
        self.max_attempts = max_attempts
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=5.0),
                transport=self._transport,
            )
        return self._http_client

    async def aclose(self) -> None:
        if self._http_client is not None and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def generate(self, prompt: str) -> str:
        if not self.is_configured:
            raise GenerationError("GEMINI_API_KEY is not configured")

        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RateLimitedError),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.retry_backoff),
            before_sleep=before_sleep_log(_std_logger, logging.WARNING),
            reraise=True,
        )
        return await retrying(self._generate_once, prompt)

    async def _generate_once(self, prompt: str) -> str:
        url = f"{self.api_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = await self._client().post(
                url, params={"key": self.api_key}, json=payload
            )
        except httpx.TransportError as exc:
            logger.warning("ai_network_error", error=str(exc))
            raise GenerationError(str(exc)) from exc

        if response.status_code == 429:
            if _is_quota_exhausted(response.text):
                logger.error("ai_quota_exhausted", model=self.model)
                raise QuotaExhaustedError(response.text[:500])
            logger.warning("ai_rate_limited", model=self.model)
            raise RateLimitedError(response.text[:500])

        if response.status_code >= 400:
            logger.error(
                "ai_request_failed",
                status_code=response.status_code,
                response=response.text[:500],
            )
            raise GenerationError(f"Gemini returned {response.status_code}")

        try:
            parts = response.json()["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise GenerationError("Malformed Gemini response") from exc

        if not text.strip():
            raise GenerationError("Empty Gemini response")
        return text


@lru_cache()
def get_ai_client() -> GeminiClient:
    """Process-wide client, handed to the chat service as a dependency."""
    return GeminiClient()

"""
Gemini client for question generation.
Gemini API 키를 순환하며 비동기로 문제 생성을 요청합니다.
Sends one prompt per call through google-genai's async API, rotating API keys.
"""

import asyncio
import logging
from typing import Any, Callable

from ..config import Settings, get_settings
from ..errors import ModelResponseError
from ._utils import call_with_retry
from .base import ModelClient
from .credentials import CredentialRotator

logger = logging.getLogger(__name__)


def _default_client_factory(api_key: str) -> Any:
    from google import genai

    return genai.Client(api_key=api_key)


class GeminiClient(ModelClient):
    """Text-generation client backed by a rotating pool of Gemini API keys."""

    def __init__(
        self,
        rotator: CredentialRotator,
        model_name: str = "gemini-2.5-flash",
        timeout_seconds: float = 120.0,
        max_retries: int = 1,
        temperature: float = 0.7,
        client_factory: Callable[[str], Any] | None = None,
    ):
        super().__init__(model_name=model_name)
        self.rotator = rotator
        self.timeout_seconds = timeout_seconds
        self.max_retries = max_retries
        self.temperature = temperature
        self._client_factory = client_factory or _default_client_factory
        self._clients: dict[str, Any] = {}  # lazy init, one per key

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **kwargs) -> "GeminiClient":
        settings = settings or get_settings()
        if settings.GEMINI_API_KEYS:
            logger.info("Loaded %d Gemini API keys", len(settings.GEMINI_API_KEYS))
        else:
            logger.warning("GEMINI_API_KEY not found in environment variables")
        return cls(
            rotator=CredentialRotator(settings.GEMINI_API_KEYS),
            model_name=settings.GEMINI_MODEL,
            timeout_seconds=settings.request_timeout_seconds,
            max_retries=settings.GEMINI_MAX_RETRIES,
            **kwargs,
        )

    def ensure_configured(self) -> None:
        self.rotator.ensure_available()

    def _client_for(self, api_key: str) -> Any:
        client = self._clients.get(api_key)
        if client is None:
            client = self._client_factory(api_key)
            self._clients[api_key] = client
        return client

    async def generate_text(self, prompt: str) -> str:
        return await call_with_retry(
            lambda: self._generate_once(prompt),
            max_retries=self.max_retries,
        )

    async def _generate_once(self, prompt: str) -> str:
        from google.genai import types

        # Key selection happens before the first await.
        client = self._client_for(self.rotator.next_credential())

        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model_name,
                    contents=[prompt],
                    config=types.GenerateContentConfig(temperature=self.temperature),
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise TimeoutError(
                f"Gemini request timed out after {self.timeout_seconds:.1f}s"
            ) from e

        if getattr(response, "usage_metadata", None):
            self._add_tokens(
                getattr(response.usage_metadata, "prompt_token_count", 0),
                getattr(response.usage_metadata, "candidates_token_count", 0),
            )

        if not getattr(response, "candidates", None):
            raise ModelResponseError("No valid response from Gemini API.")

        text = response.text
        if not text:
            reason = getattr(response.candidates[0], "finish_reason", "unknown")
            raise ModelResponseError(
                f"Gemini returned empty response (possibly blocked by safety filters). "
                f"Finish reason: {reason}"
            )

        logger.debug("Gemini raw response length: %d", len(text))
        return text

"""
Round-robin rotation over a pool of model-service credentials.
모델 서비스 API 키를 라운드 로빈으로 순환합니다.
"""

import logging

from ..errors import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialRotator:
    """Hands out credentials in round-robin order.

    next_credential() reads and advances the cursor without awaiting, so on a
    single event loop concurrent batches can never observe the same cursor
    value. A multi-threaded caller would need a lock around it.
    """

    def __init__(self, credentials: list[str]):
        self._credentials = list(credentials)
        self._cursor = 0

    def __len__(self) -> int:
        return len(self._credentials)

    def __bool__(self) -> bool:
        return bool(self._credentials)

    def ensure_available(self) -> None:
        if not self._credentials:
            raise ConfigurationError(
                "Gemini API key not configured. Please set GEMINI_API_KEY in your environment variables."
            )

    def next_credential(self) -> str:
        """Return the next credential, wrapping at the end of the pool."""
        self.ensure_available()
        credential = self._credentials[self._cursor]
        self._cursor = (self._cursor + 1) % len(self._credentials)
        return credential

"""
Configuration module for the exam question forge.
환경 변수 기반 설정과 파이프라인 상수를 정의합니다.
Environment-driven settings plus the tuning constants of both pipelines.
"""

import json
import logging
import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Generation pipeline tuning
BATCH_SIZE = 10
OVERGENERATION_FACTOR = 1.2      # absorbs expected duplicate loss
TOP_UP_FACTOR = 1.5
BATCH_STAGGER_SECONDS = 0.5      # batch i starts after i * stagger
DUPLICATE_THRESHOLD = 0.6        # Jaccard overlap above this is a duplicate
TOP_UP_EXAMPLE_LIMIT = 20
TOP_UP_EXAMPLE_CHARS = 50
MAX_QUESTION_COUNT = 50

# Extraction pipeline tuning
MIN_CROP_SIZE_PX = 10

_PLACEHOLDER_KEY = "your-gemini-api-key-here"


def parse_api_keys(raw: str | None) -> list[str]:
    """Parse a key list given either as a JSON array or comma-separated string."""
    if not raw:
        return []
    raw = raw.strip()
    keys: list[str] = []
    if raw.startswith("[") and raw.endswith("]"):
        try:
            keys = [str(k).strip() for k in json.loads(raw)]
        except json.JSONDecodeError:
            logger.warning("Failed to parse GEMINI_API_KEY as JSON, treating as a single key")
            keys = [raw]
    else:
        keys = [k.strip() for k in raw.split(",")]
    return [k for k in keys if k and k != _PLACEHOLDER_KEY]


class Settings(BaseModel):
    """Application settings loaded from environment variables."""

    # Pool of model-service credentials, rotated round-robin per call
    GEMINI_API_KEYS: list[str] = Field(default_factory=list)
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_REQUEST_TIMEOUT_MS: int = 120_000
    # Attempts per model call (1 = no retry)
    GEMINI_MAX_RETRIES: int = 1

    # Upscale factor used by both raster engines
    PDF_RENDER_SCALE: float = 2.0

    def __init__(self, **kwargs):
        """Load settings from environment variables."""
        defaults = {
            "GEMINI_API_KEYS": parse_api_keys(
                os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
            ),
            "GEMINI_MODEL": os.getenv("GEMINI_MODEL", "gemini-2.5-flash"),
            "GEMINI_REQUEST_TIMEOUT_MS": int(os.getenv("GEMINI_REQUEST_TIMEOUT_MS", "120000")),
            "GEMINI_MAX_RETRIES": int(os.getenv("GEMINI_MAX_RETRIES", "1")),
            "PDF_RENDER_SCALE": float(os.getenv("PDF_RENDER_SCALE", "2.0")),
        }
        defaults.update(kwargs)
        super().__init__(**defaults)

    @property
    def request_timeout_seconds(self) -> float:
        return self.GEMINI_REQUEST_TIMEOUT_MS / 1000


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    load_dotenv()
    return Settings()


def check_api_key() -> bool:
    """Check whether at least one model credential is configured."""
    return bool(get_settings().GEMINI_API_KEYS)

"""
Model clients for the generation pipeline.
"""

from .base import ModelClient
from .credentials import CredentialRotator
from .gemini_client import GeminiClient

__all__ = [
    "ModelClient",
    "CredentialRotator",
    "GeminiClient",
]

"""
Base class for language-model clients.
언어 모델 클라이언트의 기본 인터페이스입니다.
Defines the interface the generation pipeline talks to.
"""

from abc import ABC, abstractmethod


class ModelClient(ABC):
    """Base class for all model clients"""

    def __init__(self, model_name: str):
        """
        Initialize model client.

        Args:
            model_name: Name of the model to use
        """
        self.model_name = model_name
        self.input_tokens = 0
        self.output_tokens = 0

    @abstractmethod
    async def generate_text(self, prompt: str) -> str:
        """
        Send one fully-formed prompt and return the raw reply text.

        Args:
            prompt: Complete prompt text

        Returns:
            Raw model output, not yet parsed
        """
        pass

    def ensure_configured(self) -> None:
        """Raise ConfigurationError if the client cannot make calls. Override in subclass."""
        pass

    def _add_tokens(self, input_t, output_t):
        """Accumulate token counts, treating None as 0."""
        self.input_tokens += input_t or 0
        self.output_tokens += output_t or 0

    def get_token_usage(self) -> tuple[int, int]:
        """
        Get token usage statistics.

        Returns:
            Tuple of (input_tokens, output_tokens)
        """
        return (self.input_tokens, self.output_tokens)

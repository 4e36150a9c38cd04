from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
    """Interface for text generation clients."""

    @abstractmethod
    async def generate_text(self, prompt: str, **kwargs: Any) -> str:
        """Complete a prompt and return the model's text.

        Args:
            prompt: User prompt to send to the model.
            **kwargs: Provider-specific options (e.g., temperature, max_tokens).

        Returns:
            str: The completion text.

        Raises:
            RuntimeError: If the provider call fails or returns no content.
        """
        ...

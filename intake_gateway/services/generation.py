"""Text generation proxy used by the intake chat client."""

from __future__ import annotations

import logging

from intake_gateway.adapters.llm.base import AbstractLLMClient
from intake_gateway.core.errors import LLMAppError, ValidationAppError

logger = logging.getLogger(__name__)


class GenerationService:
    """Validates prompts and forwards them to the configured LLM client.

    Attributes:
        llm: LLM client, or None when no provider is configured.
        max_prompt_chars: Upper bound on accepted prompt length.
    """

    def __init__(self, llm: AbstractLLMClient | None, *, max_prompt_chars: int = 20000) -> None:
        self.llm = llm
        self.max_prompt_chars = max_prompt_chars

    async def complete(self, prompt: str) -> str:
        """Return the model completion for ``prompt``.

        Raises:
            ValidationAppError: If the prompt is blank or too long.
            LLMAppError: If no provider is configured or the provider fails.
        """
        if not prompt or not prompt.strip():
            raise ValidationAppError(code="missing_prompt", message="Prompt is required.")

        if len(prompt) > self.max_prompt_chars:
            raise ValidationAppError(
                code="prompt_too_long",
                message=f"Prompt exceeds the maximum of {self.max_prompt_chars} characters.",
                details={"max_value": self.max_prompt_chars, "actual_value": len(prompt)},
            )

        if self.llm is None:
            raise LLMAppError(
                code="llm_not_configured",
                message="Text generation is not configured on this server.",
            )

        try:
            text = await self.llm.generate_text(prompt)
        except RuntimeError as exc:
            logger.error(
                "generation.failed",
                extra={"error_type": type(exc).__name__, "error_msg": str(exc), "prompt_chars": len(prompt)},
            )
            raise LLMAppError(code="llm_request_failed", message="Text generation failed.") from exc

        logger.info("generation.completed", extra={"prompt_chars": len(prompt), "completion_chars": len(text)})
        return text

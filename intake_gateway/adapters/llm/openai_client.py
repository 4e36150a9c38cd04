"""OpenAI LLM client adapter."""

from typing import Any

from openai import AsyncOpenAI

from intake_gateway.adapters.llm.base import AbstractLLMClient

_PASSTHROUGH_PARAMS = (
    "max_tokens",
    "top_p",
    "frequency_penalty",
    "presence_penalty",
    "seed",
)


class OpenAIClient(AbstractLLMClient):
    """Client for OpenAI (or OpenAI-compatible) chat completions."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout_seconds: float = 45.0,
    ) -> None:
        self.client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        self.model = model

    async def generate_text(self, prompt: str, **kwargs: Any) -> str:
        """Send ``prompt`` as a single user message and return the reply.

        Args:
            prompt: Full prompt assembled by the intake chat client.
            **kwargs: temperature plus a small allow-list of sampling options.

        Returns:
            str: Stripped completion text.

        Raises:
            RuntimeError: If the API call fails or the response is empty.
        """
        request_params: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": kwargs.pop("temperature", 0.7),
        }
        for param in _PASSTHROUGH_PARAMS:
            if param in kwargs:
                request_params[param] = kwargs[param]

        try:
            response = await self.client.chat.completions.create(**request_params)
        except Exception as exc:
            raise RuntimeError(f"OpenAI API error: {str(exc)}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise RuntimeError("LLM returned empty response")
        return content.strip()

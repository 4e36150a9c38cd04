"""LLM adapter layer - abstracts over text generation providers."""

from intake_gateway.adapters.llm.base import AbstractLLMClient
from intake_gateway.adapters.llm.factory import create_llm_client
from intake_gateway.adapters.llm.openai_client import OpenAIClient

__all__ = [
    "AbstractLLMClient",
    "OpenAIClient",
    "create_llm_client",
]

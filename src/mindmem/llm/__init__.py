"""LLM completion clients."""

from .client import DEFAULT_MODEL, GroqLLMClient, LLMClient

__all__ = ["DEFAULT_MODEL", "GroqLLMClient", "LLMClient"]

"""LLM client implementations.

The synthesizer talks to the LLM through the LLMClient Protocol so that it
does not depend on a specific provider.
"""

from typing import Any, Protocol

from groq import AsyncGroq

DEFAULT_MODEL = "llama-3.1-70b-versatile"


class LLMClient(Protocol):
    """Protocol for a hosted chat-completion endpoint."""

    async def complete(self, prompt: str, system: str | None = None) -> str:
        """Complete a prompt and return the text response."""
        ...


class GroqLLMClient:
    """LLMClient implementation that wraps AsyncGroq.

    Example:
        from groq import AsyncGroq
        from mindmem.llm import GroqLLMClient

        groq = AsyncGroq(api_key="...")
        llm = GroqLLMClient(groq, model="llama-3.1-70b-versatile")
        text = await llm.complete("Hello", system="Be brief.")
    """

    def __init__(
        self,
        client: AsyncGroq,
        model: str = DEFAULT_MODEL,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> None:
        """Initialize the Groq LLM client wrapper.

        Args:
            client: The AsyncGroq client instance to wrap.
            model: The model to use for completions.
            temperature: Sampling temperature, provider default if None.
            max_tokens: Completion token cap, provider default if None.
        """
        self._client = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def complete(self, prompt: str, system: str | None = None) -> str:
        """Complete a prompt and return the text response.

        Args:
            prompt: The user prompt to complete.
            system: Optional system prompt to set context.

        Returns:
            The LLM's text response, empty if the model returned no content.
        """
        messages: list[dict[str, Any]] = []

        if system:
            messages.append({"role": "system", "content": system})

        messages.append({"role": "user", "content": prompt})

        kwargs: dict[str, Any] = {"model": self._model, "messages": messages}
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens

        response = await self._client.chat.completions.create(**kwargs)

        return response.choices[0].message.content or ""

    @property
    def model(self) -> str:
        """Return the model being used."""
        return self._model

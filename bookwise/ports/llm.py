"""LLM port: raw text completion used by the AI recommender."""

from abc import ABC, abstractmethod


class LLMPort(ABC):
    """Abstraction over chat-completion backends (Ollama, OpenAI, mock)."""

    @abstractmethod
    async def complete(self, system: str, user: str, max_tokens: int) -> str:
        """Send one system + user exchange and return the reply text."""
        ...

import logging

import httpx

from bookwise.ports.llm import LLMPort

logger = logging.getLogger(__name__)


class OllamaLLMAdapter(LLMPort):
    """LLM adapter using a local Ollama instance."""

    def __init__(self, base_url: str, model: str, timeout: float = 120.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._model = model
        self._timeout = timeout

    async def complete(self, system: str, user: str, max_tokens: int) -> str:
        """Send a non-streaming chat request to Ollama, asking for JSON output."""
        payload = {
            "model": self._model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "format": "json",
            "options": {"num_predict": max_tokens},
        }
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            logger.info("Ollama request: model=%s, max_tokens=%d", self._model, max_tokens)
            resp = await client.post(f"{self._base_url}/api/chat", json=payload)
            resp.raise_for_status()
            result = resp.json()["message"]["content"]
            logger.info("Ollama response: %d chars", len(result))
            return result

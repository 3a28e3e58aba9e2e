import logging

from openai import AsyncOpenAI

from bookwise.ports.llm import LLMPort

logger = logging.getLogger(__name__)


class OpenAILLMAdapter(LLMPort):
    """LLM adapter using OpenAI API (GPT-4o, GPT-4o-mini, etc.)."""

    def __init__(self, api_key: str | None, model: str, timeout: float = 60.0) -> None:
        self._client = AsyncOpenAI(api_key=api_key, timeout=timeout)
        self._model = model

    async def complete(self, system: str, user: str, max_tokens: int) -> str:
        """Send a JSON-mode chat completion request to OpenAI."""
        logger.info("OpenAI request: model=%s, max_tokens=%d", self._model, max_tokens)
        resp = await self._client.chat.completions.create(
            model=self._model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            max_tokens=max_tokens,
            temperature=0.7,
            response_format={"type": "json_object"},
        )
        result = resp.choices[0].message.content or ""
        logger.info("OpenAI response: %d chars", len(result))
        return result

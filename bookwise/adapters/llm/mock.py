import asyncio
import json
import logging
from collections import deque

from bookwise.ports.llm import LLMPort
from bookwise.prompts.templates import estimate_tokens

logger = logging.getLogger(__name__)

EMPTY_REPLY = json.dumps(
    {
        "recommendations": [],
        "similarBooks": [],
        "explanation": "Mock provider: no suggestions available",
    }
)


class MockLLMAdapter(LLMPort):
    """
    Mock LLM adapter for testing and local runs without model access.

    Replies are served from a queue of canned responses; once it is empty
    every call returns an empty (but well-formed) suggestion list. Every
    prompt is recorded in `calls` for inspection.
    """

    def __init__(self, replies: list[str] | None = None, latency: float = 0.0) -> None:
        self._replies = deque(replies or [])
        self._latency = latency
        self.calls: list[dict[str, str]] = []

    def queue(self, reply: str | dict) -> None:
        """Append a reply; dicts are serialised as JSON."""
        self._replies.append(reply if isinstance(reply, str) else json.dumps(reply))

    async def complete(self, system: str, user: str, max_tokens: int) -> str:
        if self._latency:
            await asyncio.sleep(self._latency)
        self.calls.append({"system": system, "user": user})
        logger.info(
            "MockLLM: complete called (%d estimated tokens, max_tokens=%d)",
            estimate_tokens(system + user),
            max_tokens,
        )
        if self._replies:
            return self._replies.popleft()
        return EMPTY_REPLY

"""Completion engine adapters.

``CompletionEngine`` takes an ordered list of ``(role, content)`` pairs and
returns the generated reply text, or ``None`` when the provider produced
nothing usable. ``OpenAICompletionEngine`` talks to OpenAI (or any compatible
gateway) through LangChain's ``ChatOpenAI``.
"""
from __future__ import annotations

import time
from abc import ABC, abstractmethod
from typing import List, Optional, Sequence, Tuple

import structlog
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from api.shared.exceptions import CompletionEngineError

logger = structlog.get_logger(__name__)

_MESSAGE_TYPES = {
    "system": SystemMessage,
    "user": HumanMessage,
    "assistant": AIMessage,
}


class CompletionEngine(ABC):
    """External text-generation service."""

    model: str = "unknown"

    @abstractmethod
    async def complete(self, messages: Sequence[Tuple[str, str]]) -> Optional[str]:
        """Generate a reply for ``messages``, oldest first."""


def to_langchain_messages(messages: Sequence[Tuple[str, str]]) -> List[BaseMessage]:
    converted: List[BaseMessage] = []
    for role, content in messages:
        try:
            message_type = _MESSAGE_TYPES[role]
        except KeyError:
            raise ValueError(f"Unsupported message role: {role!r}") from None
        converted.append(message_type(content=content))
    return converted


def extract_text(message: BaseMessage) -> Optional[str]:
    """Flatten a chat model response into plain text."""
    content = message.content
    if isinstance(content, str):
        text = content
    else:
        parts = []
        for block in content or []:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(str(block.get("text", "")))
        text = "".join(parts)
    return text if text.strip() else None


class OpenAICompletionEngine(CompletionEngine):
    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gpt-4o-mini",
        temperature: float = 0.7,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.temperature = temperature
        self.base_url = base_url
        self.timeout = timeout
        self._llm: Optional[ChatOpenAI] = None

    @property
    def llm(self) -> ChatOpenAI:
        # Built on first use so the app can start without credentials
        if self._llm is None:
            self._llm = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key or None,
                base_url=self.base_url,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._llm

    async def complete(self, messages: Sequence[Tuple[str, str]]) -> Optional[str]:
        lc_messages = to_langchain_messages(messages)
        start = time.time()
        try:
            response = await self.llm.ainvoke(lc_messages)
        except Exception as e:
            logger.error(
                "Completion request failed",
                model=self.model,
                messages=len(lc_messages),
                error=str(e),
            )
            raise CompletionEngineError(self.model, str(e)) from e

        latency_ms = int((time.time() - start) * 1000)
        text = extract_text(response)
        logger.info(
            "Completion received",
            model=self.model,
            messages=len(lc_messages),
            latency_ms=latency_ms,
            empty=text is None,
        )
        return text

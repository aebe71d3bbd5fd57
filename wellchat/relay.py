# wellchat/relay.py
"""Chat relay: admission, user-turn persistence, prompt selection, upstream streaming.

The assistant reply is stored only when the upstream signals a clean `[DONE]`.
It is written by `RelayStream.finish()`, after the caller's stream has closed.
A stream that is cut short (connection drop, EOF without the marker, caller
disconnect) has already delivered its text to the caller but leaves no
assistant record behind.
"""
from __future__ import annotations
import logging
import time
from contextlib import aclosing
from dataclasses import dataclass, field
from typing import AsyncIterator, Callable, Dict, List, Optional, Union

from starlette.concurrency import run_in_threadpool

from wellchat.config import CONTEXT_WINDOW
from wellchat.prompts import PROMPT_TIERS, PromptTier, select_system_prompt
from wellchat.providers import CompletionProvider, UpstreamStream
from wellchat.rate_limit import Admission, RateLimiter
from wellchat.store import MessageStore

logger = logging.getLogger(__name__)

THROTTLE_MESSAGE = "Take a few moments to breathe and think. I'll be right here when you're ready."


def _now_ms() -> int:
    return int(time.time() * 1000)


def _preview(text: str, n: int = 120) -> str:
    return (text[:n] + "...") if len(text) > n else text


@dataclass
class ThrottleNotice:
    message: str = THROTTLE_MESSAGE

    def to_dict(self) -> Dict[str, str]:
        return {"type": "throttle", "message": self.message}


@dataclass
class RelayStream:
    """Deltas for one assistant turn. `iter_text()` may be consumed once."""

    conversation_id: str
    upstream: UpstreamStream
    persist: Callable
    parts: List[str] = field(default_factory=list)
    completed: bool = False

    @property
    def text(self) -> str:
        return "".join(self.parts)

    async def iter_text(self) -> AsyncIterator[str]:
        """Yield deltas in arrival order. Stores nothing; see `finish()`."""
        try:
            async with aclosing(self.upstream.events()) as events:
                async for ev in events:
                    if ev.done:
                        self.completed = True
                        break
                    if ev.delta:
                        self.parts.append(ev.delta)
                        yield ev.delta
        finally:
            await self.upstream.aclose()

    async def finish(self) -> bool:
        """Store the reply once the stream to the caller has closed. Returns whether a record was written."""
        if not self.completed:
            logger.info("Stream for session=%s ended early; %d chars not stored", self.conversation_id, len(self.text))
            return False
        if not self.parts:
            return False
        return await self.persist(self.conversation_id, "assistant", self.text)


RelayResult = Union[ThrottleNotice, RelayStream]


class ChatRelay:
    def __init__(
        self,
        provider: CompletionProvider,
        store: MessageStore,
        limiter: Optional[RateLimiter] = None,
        context_window: int = CONTEXT_WINDOW,
        tiers: List[PromptTier] = PROMPT_TIERS,
        clock: Callable[[], int] = _now_ms,
    ):
        self.provider = provider
        self.store = store
        self.limiter = limiter or RateLimiter()
        self.context_window = context_window
        self.tiers = tiers
        self.clock = clock

    async def _persist(self, conversation_id: str, role: str, content: str) -> bool:
        # Persistence never fails the turn
        try:
            return bool(await run_in_threadpool(self.store.insert, conversation_id, role, content))
        except Exception:
            logger.exception("Message store raised for session=%s role=%s", conversation_id, role)
            return False

    def recent_context(self, messages: List[Dict[str, str]]) -> List[Dict[str, str]]:
        if self.context_window <= 0:
            return []
        return list(messages[-self.context_window:])

    async def relay(
        self,
        conversation_id: str,
        messages: List[Dict[str, str]],
        identity: str,
        now: Optional[int] = None,
    ) -> RelayResult:
        """Run one chat turn.

        Returns a ThrottleNotice when the identity is over its limit, otherwise a
        RelayStream whose upstream connection is already open. Raises
        providers.UpstreamError if the upstream cannot be reached.
        """
        now = self.clock() if now is None else now
        if self.limiter.check_admission(identity, now) is Admission.THROTTLED:
            return ThrottleNotice()

        last = messages[-1] if messages else None
        if last and last.get("role") == "user":
            logger.info("Chat turn session=%s preview=%s", conversation_id, _preview(last.get("content", "")))
            await self._persist(conversation_id, "user", last.get("content", ""))

        system_prompt = select_system_prompt(messages, self.tiers)
        upstream = await self.provider.open_stream(system_prompt, self.recent_context(messages))
        return RelayStream(conversation_id=conversation_id, upstream=upstream, persist=self._persist)

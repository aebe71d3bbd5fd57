# wellchat/providers.py
"""Upstream completion provider.

Speaks the OpenAI-compatible chat-completions protocol with `stream: true` and
hands back decoded `StreamEvent`s. Groq is the default endpoint; any compatible
URL works through GROQ_API_URL.
"""
from __future__ import annotations
import logging
from typing import AsyncIterator, Dict, List, Optional, Protocol

import httpx

from wellchat import config
from wellchat.sse import SSEDecoder, StreamEvent

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The completion API could not be reached or refused the request."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamStream:
    """An open streaming response. Iterate `events()` once, then `aclose()`."""

    def __init__(self, response: httpx.Response):
        self._response = response
        self.completed = False
        self.truncated = False

    async def events(self) -> AsyncIterator[StreamEvent]:
        decoder = SSEDecoder()
        try:
            async for chunk in self._response.aiter_bytes():
                for ev in decoder.feed(chunk):
                    if ev.done:
                        self.completed = True
                        yield ev
                        return
                    yield ev
        except httpx.HTTPError as e:
            # Connection dropped mid-stream; whatever was yielded stays delivered
            logger.warning("Upstream stream interrupted: %s", e)
            self.truncated = True
            return
        for ev in decoder.flush():
            if ev.done:
                self.completed = True
            yield ev
            if ev.done:
                return
        self.truncated = True
        logger.warning("Upstream stream ended without a completion marker")

    async def aclose(self):
        await self._response.aclose()


class CompletionProvider(Protocol):
    async def open_stream(self, system_prompt: str, messages: List[Dict[str, str]]) -> UpstreamStream:
        ...


class GroqCompletionProvider:
    def __init__(
        self,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = config.GROQ_API_KEY if api_key is None else api_key
        self.api_url = api_url or config.GROQ_API_URL
        self.model = model or config.GROQ_MODEL
        self.timeout = config.UPSTREAM_TIMEOUT if timeout is None else timeout
        self._client = client

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
        return self._client

    def build_payload(self, system_prompt: str, messages: List[Dict[str, str]]) -> Dict:
        return {
            "model": self.model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "stream": True,
        }

    async def open_stream(self, system_prompt: str, messages: List[Dict[str, str]]) -> UpstreamStream:
        """Send the request and return once response headers arrive.

        Raises UpstreamError before any body is read if the call cannot be made.
        """
        if not self.api_key:
            raise UpstreamError("GROQ_API_KEY not set")
        client = self._get_client()
        request = client.build_request(
            "POST",
            self.api_url,
            json=self.build_payload(system_prompt, messages),
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self.timeout),
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            raise UpstreamError(f"Upstream request failed: {e}") from e
        if not response.is_success:
            body = await response.aread()
            await response.aclose()
            logger.error("Upstream returned %s: %.200s", response.status_code, body.decode("utf-8", "replace"))
            raise UpstreamError(f"Upstream returned {response.status_code}", status_code=response.status_code)
        return UpstreamStream(response)

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

import json
import os
import tempfile

# Point the app at a throwaway database before wellchat.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="wellchat-tests-")
os.environ["WELLCHAT_DB"] = os.path.join(_DB_DIR, "test.db")
os.environ.setdefault("JWT_SECRET", "test-secret")

import httpx
import pytest

from wellchat.providers import GroqCompletionProvider
from wellchat.sse import StreamEvent


class ScriptedUpstream:
    def __init__(self, events):
        self._events = list(events)
        self.closed = False

    async def events(self):
        for ev in self._events:
            yield ev

    async def aclose(self):
        self.closed = True


class ScriptedProvider:
    """Stands in for the completion API; records every call."""

    def __init__(self, deltas=(), done=True, error=None):
        self.deltas = list(deltas)
        self.done = done
        self.error = error
        self.calls = []
        self.upstream = None

    async def open_stream(self, system_prompt, messages):
        self.calls.append((system_prompt, messages))
        if self.error is not None:
            raise self.error
        events = [StreamEvent(delta=d) for d in self.deltas]
        if self.done:
            events.append(StreamEvent(done=True))
        self.upstream = ScriptedUpstream(events)
        return self.upstream


class RecordingStore:
    def __init__(self, fail=False):
        self.fail = fail
        self.rows = []

    def insert(self, conversation_id, role, content):
        if self.fail:
            raise RuntimeError("store unavailable")
        self.rows.append((conversation_id, role, content))
        return True


def sse_body(*frames):
    """Encode OpenAI-style chunks: strings become content deltas, None becomes [DONE]."""
    out = []
    for f in frames:
        if f is None:
            out.append("data: [DONE]\n\n")
        else:
            out.append("data: " + json.dumps({"choices": [{"delta": {"content": f}}]}) + "\n\n")
    return "".join(out).encode("utf-8")


def mock_provider(chunks, status_code=200, error=None, seen=None):
    """GroqCompletionProvider over an httpx.MockTransport that streams `chunks` (bytes or exceptions)."""

    async def handler(request):
        if seen is not None:
            seen.append(request)

        async def body():
            for c in chunks:
                if isinstance(c, Exception):
                    raise c
                yield c

        if error is not None:
            raise error
        return httpx.Response(status_code, content=body())

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GroqCompletionProvider(api_key="test-key", api_url="https://upstream.test/v1/chat/completions", client=client)


@pytest.fixture
def store():
    return RecordingStore()


@pytest.fixture
def failing_store():
    return RecordingStore(fail=True)


@pytest.fixture
def scripted():
    return ScriptedProvider


@pytest.fixture
def upstream():
    """Factory for a provider backed by a mocked HTTP transport."""
    return mock_provider


@pytest.fixture
def frames():
    return sse_body

# wellchat/sse.py
from __future__ import annotations
import codecs
import json
import logging
from dataclasses import dataclass
from typing import List, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_MARKER = "[DONE]"


@dataclass(frozen=True)
class StreamEvent:
    delta: str = ""
    done: bool = False


DONE = StreamEvent(done=True)


def extract_delta(payload) -> str:
    """Pull choices[0].delta.content out of an OpenAI-style chunk; '' when absent."""
    try:
        content = payload["choices"][0]["delta"].get("content")
    except (KeyError, IndexError, TypeError, AttributeError):
        return ""
    return content if isinstance(content, str) else ""


def parse_line(line: str) -> Optional[StreamEvent]:
    """Turn one line of the upstream stream into an event.

    Returns None for anything that carries no text: comments, blank keep-alives,
    non-data fields, malformed JSON and chunks without a content delta.
    """
    line = line.rstrip("\r")
    if not line.startswith(DATA_PREFIX):
        return None
    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_MARKER:
        return DONE
    if not data:
        return None
    try:
        payload = json.loads(data)
    except ValueError:
        logger.debug("Skipping malformed upstream frame: %.80s", data)
        return None
    delta = extract_delta(payload)
    if not delta:
        return None
    return StreamEvent(delta=delta)


class SSEDecoder:
    """Incremental decoder for `data: ...` framed chunks.

    Bytes may be split anywhere, including inside a line or a multi-byte character;
    the incomplete tail is held back until the next feed.
    """

    def __init__(self):
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[StreamEvent]:
        self._buffer += self._text.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [ev for ev in map(parse_line, lines) if ev is not None]

    def flush(self) -> List[StreamEvent]:
        """Parse whatever is left once the upstream has closed."""
        rest = self._buffer + self._text.decode(b"", final=True)
        self._buffer = ""
        ev = parse_line(rest)
        return [ev] if ev is not None else []

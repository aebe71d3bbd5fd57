import json

from wellchat.sse import DONE, SSEDecoder, StreamEvent, extract_delta, parse_line


def chunk(text):
    return "data: " + json.dumps({"choices": [{"delta": {"content": text}}]}, ensure_ascii=False)


def decode_all(data: bytes, step: int):
    dec = SSEDecoder()
    out = []
    for i in range(0, len(data), step):
        out.extend(dec.feed(data[i:i + step]))
    out.extend(dec.flush())
    return out


def test_parse_line_variants():
    assert parse_line(chunk("Hel")) == StreamEvent(delta="Hel")
    assert parse_line("data: [DONE]") == DONE
    assert parse_line("data:[DONE]\r") == DONE
    assert parse_line(": keep-alive") is None
    assert parse_line("event: message") is None
    assert parse_line("") is None
    assert parse_line("data: {not json") is None
    # role-only first chunk carries no text
    assert parse_line('data: {"choices":[{"delta":{"role":"assistant"}}]}') is None


def test_extract_delta_tolerates_odd_shapes():
    assert extract_delta({"choices": []}) == ""
    assert extract_delta({"choices": [{"delta": {"content": None}}]}) == ""
    assert extract_delta([]) == ""
    assert extract_delta({"choices": [{"delta": {"content": "ok"}}]}) == "ok"


def test_split_reads_give_same_events():
    body = "\n".join([chunk("Hel"), chunk("lo"), chunk(" wor"), chunk("ld"), "data: [DONE]", ""]).encode()
    expected = [StreamEvent(delta=d) for d in ["Hel", "lo", " wor", "ld"]] + [DONE]
    for step in (1, 3, 7, len(body)):
        assert decode_all(body, step) == expected


def test_multibyte_character_split_across_reads():
    body = (chunk("café 😊") + "\n").encode("utf-8")
    events = decode_all(body, 1)
    assert events == [StreamEvent(delta="café 😊")]


def test_partial_line_held_back():
    dec = SSEDecoder()
    line = chunk("Par")
    assert dec.feed(line[:10].encode()) == []
    assert dec.feed(line[10:].encode()) == []
    assert dec.feed(b"\n") == [StreamEvent(delta="Par")]


def test_flush_parses_unterminated_last_line():
    dec = SSEDecoder()
    assert dec.feed(b"data: [DONE]") == []
    assert dec.flush() == [DONE]


def test_malformed_line_between_valid_ones_is_skipped():
    good = "\n".join([chunk("a"), chunk("b"), ""]).encode()
    bad = "\n".join([chunk("a"), "data: {\"choices\": [", chunk("b"), ""]).encode()
    assert decode_all(good, 5) == decode_all(bad, 5)

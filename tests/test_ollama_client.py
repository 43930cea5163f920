import asyncio
import json

import httpx
import pytest

from models.chat_message import ChatMessage
from models.errors import InferenceUnavailableError, StreamInterruptedError

pytestmark = pytest.mark.unit

PROMPT = [ChatMessage.system("sys"), ChatMessage.user("hi")]


def _run(coro):
    return asyncio.run(coro)


async def _collect(stream):
    async with stream:
        return [c async for c in stream]


def test_request_matches_wire_contract(make_ollama_client, record, ndjson):
    captured = []

    def handler(request):
        captured.append(request)
        return httpx.Response(200, content=ndjson(record("ok", True)))

    client = make_ollama_client(handler, model_name="granite3-moe")

    async def scenario():
        return await _collect(await client.chat_stream(PROMPT))

    assert _run(scenario()) == ["ok"]
    request = captured[0]
    assert request.method == "POST"
    assert request.url.path == "/api/chat"
    assert json.loads(request.content) == {
        "model": "granite3-moe",
        "messages": [{"role": "system", "content": "sys"}, {"role": "user", "content": "hi"}],
        "stream": True,
    }


def test_chunks_arrive_in_server_order(make_ollama_client, record, ndjson):
    body = ndjson(record("Hel"), record("lo"), "{broken", record(", "), record("world!", True))
    client = make_ollama_client(lambda r: httpx.Response(200, content=body))

    async def scenario():
        stream = await client.chat_stream(PROMPT)
        chunks = await _collect(stream)
        return stream, chunks

    stream, chunks = _run(scenario())
    assert chunks == ["Hel", "lo", ", ", "world!"]
    assert stream.skipped_records == 1
    assert stream.completed is True


def test_malformed_hook_is_called(make_ollama_client, record, ndjson):
    seen = []
    body = ndjson("nope", record("x", True))
    client = make_ollama_client(lambda r: httpx.Response(200, content=body))

    async def scenario():
        stream = await client.chat_stream(PROMPT, on_malformed=lambda raw, exc: seen.append(raw))
        return await _collect(stream)

    assert _run(scenario()) == ["x"]
    assert seen == [b"nope"]


def test_unreachable_server_fails_before_streaming(make_ollama_client):
    def handler(request):
        raise httpx.ConnectError("connection refused")

    client = make_ollama_client(handler)

    with pytest.raises(InferenceUnavailableError) as info:
        _run(client.chat_stream(PROMPT))
    assert info.value.error.code == "connect"
    assert info.value.error.retryable is True


def test_error_status_fails_before_streaming(make_ollama_client):
    client = make_ollama_client(
        lambda r: httpx.Response(404, json={"error": "model 'granite3-moe' not found"})
    )

    with pytest.raises(InferenceUnavailableError) as info:
        _run(client.chat_stream(PROMPT))
    assert info.value.error.code == "http_status"
    assert info.value.error.details["status_code"] == 404
    assert "not found" in info.value.error.details["server_error"]


def test_mid_stream_failure_reported_after_delivered_chunks(make_ollama_client, record, scripted_stream):
    script = [
        json.dumps(record("partial ")) + "\n",
        json.dumps(record("reply")) + "\n",
        httpx.ReadError("connection reset"),
    ]
    client = make_ollama_client(lambda r: httpx.Response(200, stream=scripted_stream(script)))

    async def scenario():
        received = []
        stream = await client.chat_stream(PROMPT)
        with pytest.raises(StreamInterruptedError) as info:
            async for chunk in stream:
                received.append(chunk)
        return received, info.value

    received, err = _run(scenario())
    assert received == ["partial ", "reply"]
    assert err.error.code == "interrupted"
    assert err.error.details["chunks_delivered"] == 2


def test_stream_without_final_record_is_interrupted(make_ollama_client, record, ndjson):
    client = make_ollama_client(lambda r: httpx.Response(200, content=ndjson(record("a"))))

    async def scenario():
        stream = await client.chat_stream(PROMPT)
        return [c async for c in stream]

    with pytest.raises(StreamInterruptedError):
        _run(scenario())


def test_closing_stream_cancels_reader(make_ollama_client, record, scripted_stream):
    body = scripted_stream([json.dumps(record("tick")) + "\n"], repeat_last=True)
    client = make_ollama_client(
        lambda r: httpx.Response(200, stream=body), channel_capacity=2
    )

    async def scenario():
        stream = await client.chat_stream(PROMPT)
        first = await stream.channel.__anext__()
        await stream.aclose()
        sent_at_close = body.sent
        await asyncio.sleep(0.05)
        return first, sent_at_close

    first, sent_at_close = _run(scenario())
    assert first == "tick"
    assert body.closed is True
    assert body.sent == sent_at_close
    assert body.sent < 20


def test_record_with_invalid_utf8_is_skipped(make_ollama_client, record):
    bad = b'{"model": "m", "message": {"role": "assistant", "content": "bad\xff\xfe"}, "done": false}'
    body = b"\n".join([
        json.dumps(record("ok")).encode("utf-8"),
        bad,
        json.dumps(record("!", True)).encode("utf-8"),
    ]) + b"\n"
    client = make_ollama_client(lambda r: httpx.Response(200, content=body))

    async def scenario():
        stream = await client.chat_stream(PROMPT)
        chunks = await _collect(stream)
        return stream, chunks

    stream, chunks = _run(scenario())
    assert chunks == ["ok", "!"]
    assert stream.skipped_records == 1


def test_records_split_across_network_chunks(make_ollama_client, record, scripted_stream):
    line = json.dumps(record("split")).encode("utf-8") + b"\r\n"
    final = json.dumps(record("", True)).encode("utf-8")
    script = [line[:7], line[7:], final]
    client = make_ollama_client(lambda r: httpx.Response(200, stream=scripted_stream(script)))

    async def scenario():
        return await _collect(await client.chat_stream(PROMPT))

    assert _run(scenario()) == ["split", ""]

import asyncio

import httpx
import pytest

from api.base_client import BaseStreamingClient
from utils.stream_channel import StreamChannel

pytestmark = pytest.mark.unit


def test_items_delivered_in_send_order():
    async def scenario():
        async def produce(ch):
            for i in range(5):
                await ch.send(i)

        async with StreamChannel(capacity=2).start(produce) as channel:
            return [item async for item in channel]

    assert asyncio.run(scenario()) == [0, 1, 2, 3, 4]


def test_producer_error_raised_after_delivered_items():
    async def scenario():
        received = []

        async def produce(ch):
            await ch.send("a")
            await ch.send("b")
            raise RuntimeError("upstream broke")

        channel = StreamChannel(capacity=10).start(produce)
        with pytest.raises(RuntimeError, match="upstream broke"):
            async for item in channel:
                received.append(item)
        return received

    assert asyncio.run(scenario()) == ["a", "b"]


def test_full_channel_suspends_producer():
    async def scenario():
        async def produce(ch):
            for i in range(100):
                await ch.send(i)

        channel = StreamChannel(capacity=3).start(produce)
        await asyncio.sleep(0.01)
        sent_while_idle = channel.sent
        await channel.aclose()
        return sent_while_idle

    assert asyncio.run(scenario()) == 3


def test_aclose_cancels_producer():
    async def scenario():
        cancelled = asyncio.Event()

        async def produce(ch):
            try:
                while await ch.send("x"):
                    pass
            except asyncio.CancelledError:
                cancelled.set()
                raise

        channel = StreamChannel(capacity=1).start(produce)
        await channel.__anext__()
        await channel.aclose()
        return cancelled.is_set(), channel.closed, await channel.send("late")

    was_cancelled, closed, accepted = asyncio.run(scenario())
    assert was_cancelled is True
    assert closed is True
    assert accepted is False


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        StreamChannel(capacity=0)


class _Client(BaseStreamingClient):
    provider = "dummy"


@pytest.fixture
def dummy_client():
    return _Client("http://dummy.test", http_client=httpx.AsyncClient())


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "http://dummy.test")
    response = httpx.Response(code, request=request)
    return httpx.HTTPStatusError("status", request=request, response=response)


@pytest.mark.parametrize(
    "exc, code, retryable",
    [
        (httpx.ConnectError("refused"), "connect", True),
        (httpx.ReadTimeout("slow"), "timeout", True),
        (httpx.ReadError("reset"), "connect", True),
        (ValueError("odd"), "unknown", False),
    ],
)
def test_normalize_transport_errors(dummy_client, exc, code, retryable):
    err = dummy_client._normalize_error(exc)
    assert err.code == code
    assert err.retryable is retryable
    assert err.provider == "dummy"


@pytest.mark.parametrize("status, retryable", [(404, False), (429, True), (503, True)])
def test_normalize_status_errors(dummy_client, status, retryable):
    err = dummy_client._normalize_error(_status_error(status))
    assert err.code == "http_status"
    assert err.retryable is retryable
    assert err.details["status_code"] == status

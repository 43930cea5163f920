import asyncio
import json

import httpx
import pytest

from api.ollama_client import OllamaClient
from context.session import ChatSession
from tools.web.search_client import SearchClient

SEARCH_URL = "https://search.test/html"
OLLAMA_URL = "http://ollama.test"


def _record(content: str, done: bool = False, model: str = "granite3-moe") -> dict:
    return {
        "model": model,
        "message": {"role": "assistant", "content": content},
        "done": done,
    }


def _ndjson(*records) -> bytes:
    lines = []
    for r in records:
        lines.append(r if isinstance(r, str) else json.dumps(r))
    return ("\n".join(lines) + "\n").encode("utf-8")


class ScriptedByteStream(httpx.AsyncByteStream):
    """
    Response body fed line by line from a script.

    Script items: bytes/str are sent as-is, an Exception is raised, an
    asyncio.Event is awaited before continuing.
    """

    def __init__(self, script, repeat_last: bool = False):
        self.script = list(script)
        self.repeat_last = repeat_last
        self.sent = 0
        self.closed = False

    async def __aiter__(self):
        items = self.script
        i = 0
        while i < len(items):
            item = items[i]
            if isinstance(item, asyncio.Event):
                await item.wait()
            elif isinstance(item, Exception):
                raise item
            else:
                self.sent += 1
                yield item.encode("utf-8") if isinstance(item, str) else item
                await asyncio.sleep(0)
            if self.repeat_last and i == len(items) - 1:
                continue
            i += 1

    async def aclose(self):
        self.closed = True


@pytest.fixture
def record():
    return _record


@pytest.fixture
def ndjson():
    return _ndjson


@pytest.fixture
def listing_html():
    """Build a provider listing page with ``n`` result entries."""

    def build(n: int, href_fmt: str = "https://site{i}.test/article") -> str:
        entries = []
        for i in range(n):
            href = href_fmt.format(i=i)
            entries.append(
                f'<div class="result results_links">'
                f'<h2 class="result__title"><a class="result__a" href="{href}">Result <b>{i}</b></a></h2>'
                f'<a class="result__snippet">snippet {i}</a>'
                f"</div>"
            )
        return f"<html><body><div id='links'>{''.join(entries)}</div></body></html>"

    return build


@pytest.fixture
def article_html():
    def build(words: int, extra: str = "") -> str:
        text = " ".join(f"word{i}" for i in range(words))
        return f"<html><body><nav>menu</nav>{extra}<article><p>{text}</p></article></body></html>"

    return build


@pytest.fixture
def make_ollama_client():
    def build(handler, **kwargs) -> OllamaClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return OllamaClient(base_url=OLLAMA_URL, http_client=http_client, **kwargs)

    return build


@pytest.fixture
def make_search_client():
    def build(handler, **kwargs) -> SearchClient:
        http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return SearchClient(base_url=SEARCH_URL, http_client=http_client, **kwargs)

    return build


@pytest.fixture
def make_session(make_ollama_client, make_search_client):
    def build(chat_handler=None, search_handler=None, **kwargs) -> ChatSession:
        def unused(request):
            raise AssertionError(f"unexpected request to {request.url}")

        return ChatSession(
            inference=make_ollama_client(chat_handler or unused),
            search=make_search_client(search_handler or unused),
            window=kwargs.pop("window", None),
            **kwargs,
        )

    return build


@pytest.fixture
def scripted_stream():
    return ScriptedByteStream


@pytest.fixture
def search_url():
    return SEARCH_URL

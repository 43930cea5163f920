"""
ChatSession - Per-session context object behind the assistant's commands.

Owns the conversation window and the client handles, each guarded by its own
asyncio.Lock. Nothing here is module-global: the caller creates a session and
passes it to whatever serves the commands.

Locking discipline for a chat turn:
1. take the window lock, build the prompt, append the user message, release
2. stream the reply with no lock held, so clear_conversation and searches are
   never blocked by a long generation
3. take the window lock again only to store the finished reply
"""

import asyncio
from collections.abc import AsyncIterator

from api.ollama_client import ChatStream, OllamaClient
from config.config import Config
from models.chat_message import ChatMessage
from models.errors import StreamInterruptedError
from models.search_result import SearchMode, SearchQuery, SearchResult
from tools.web.factory import create_search_client_from_env
from tools.web.search_client import SearchClient
from utils.logger import get_logger
from utils.stream_channel import StreamChannel

from .conversation_window import ConversationWindow

logger = get_logger(__name__)

DEFAULT_MAX_RESULTS = 5


class ChatTurn:
    """
    A chat exchange whose stream has been opened.

    Iterating yields text chunks. When the stream ends normally, or is
    interrupted mid-flight, the accumulated reply is stored in the window. If
    the consumer stops early nothing is stored and the reader is cancelled.
    """

    def __init__(self, session: "ChatSession", stream: ChatStream, user_message: ChatMessage):
        self._session = session
        self.stream = stream
        self.user_message = user_message
        self.reply_parts: list[str] = []
        self.finalized = False

    @property
    def reply(self) -> str:
        return "".join(self.reply_parts)

    async def _finish(self) -> None:
        if self.finalized:
            return
        self.finalized = True
        await self._session._finalize(self.reply)

    async def __aiter__(self) -> AsyncIterator[str]:
        try:
            async for chunk in self.stream:
                self.reply_parts.append(chunk)
                yield chunk
        except StreamInterruptedError as e:
            logger.warning(f"Chat stream interrupted: {e}")
            await self._finish()
            raise
        finally:
            await self.stream.aclose()
        await self._finish()

    async def aclose(self) -> None:
        await self.stream.aclose()


class ChatSession:
    """
    One user's chat session: history, inference client and search client.
    """

    def __init__(
        self,
        inference: OllamaClient,
        search: SearchClient,
        window: ConversationWindow | None = None,
        max_results: int = DEFAULT_MAX_RESULTS,
    ):
        self.window = window if window is not None else ConversationWindow()
        self.max_results = max_results
        self._inference = inference
        self._search = search
        self._window_lock = asyncio.Lock()
        self._inference_lock = asyncio.Lock()
        self._search_lock = asyncio.Lock()
        self.skipped_records = 0

    @classmethod
    def from_config(cls, config: Config | None = None) -> "ChatSession":
        """Build a session with clients and window sized from configuration."""
        config = config or Config()
        inference = OllamaClient(
            base_url=config.OLLAMA_BASE_URL,
            model_name=config.OLLAMA_MODEL,
            timeout_s=config.OLLAMA_TIMEOUT_S,
            channel_capacity=config.STREAM_CHANNEL_CAPACITY,
        )
        window = ConversationWindow(
            max_messages=config.HISTORY_MAX_MESSAGES,
            context_messages=config.PROMPT_CONTEXT_MESSAGES,
        )
        return cls(
            inference=inference,
            search=create_search_client_from_env(config),
            window=window,
            max_results=config.SEARCH_MAX_RESULTS,
        )

    def _count_malformed(self, raw, exc: Exception) -> None:
        self.skipped_records += 1

    async def _inference_client(self) -> OllamaClient:
        async with self._inference_lock:
            return self._inference

    async def _search_client(self) -> SearchClient:
        async with self._search_lock:
            return self._search

    # ----- chat -----

    async def start_chat(self, message: str) -> ChatTurn:
        """
        Record the user turn and open the reply stream.

        Raises:
            InferenceUnavailableError: The stream could not be opened. The user
                message stays in the window.
        """
        async with self._window_lock:
            prompt = self.window.build_prompt(message)
            user_message = prompt[-1]
            self.window.append(user_message)

        client = await self._inference_client()
        stream = await client.chat_stream(prompt, on_malformed=self._count_malformed)
        return ChatTurn(self, stream, user_message)

    async def chat_stream(self, message: str) -> AsyncIterator[str]:
        """Stream the reply to ``message`` chunk by chunk."""
        turn = await self.start_chat(message)
        try:
            async for chunk in turn:
                yield chunk
        finally:
            await turn.aclose()

    async def _finalize(self, reply: str) -> None:
        async with self._window_lock:
            self.window.finalize(reply)

    async def clear_conversation(self) -> None:
        async with self._window_lock:
            self.window.clear()

    async def history(self) -> list[ChatMessage]:
        async with self._window_lock:
            return self.window.messages

    # ----- search -----

    def _query(self, query: str, mode: SearchMode, max_results: int | None) -> SearchQuery:
        return SearchQuery(
            query=query,
            max_results=self.max_results if max_results is None else max_results,
            mode=mode,
        )

    async def start_search(
        self,
        query: str,
        mode: SearchMode = SearchMode.FAST,
        max_results: int | None = None,
    ) -> StreamChannel[SearchResult]:
        """
        Submit the query and open the result stream.

        Raises:
            SearchUnavailableError: The provider could not be queried.
        """
        client = await self._search_client()
        return await client.search_stream(self._query(query, mode, max_results))

    async def perform_search(
        self,
        query: str,
        mode: SearchMode = SearchMode.FAST,
        max_results: int | None = None,
    ) -> AsyncIterator[SearchResult]:
        """Stream search results in listing order."""
        async with await self.start_search(query, mode, max_results) as channel:
            async for result in channel:
                yield result

    async def search_enriched(self, query: str, max_results: int | None = None) -> list[SearchResult]:
        """Run the enriched pipeline and return all surviving results at once."""
        client = await self._search_client()
        return await client.search_enriched(self._query(query, SearchMode.ENRICHED, max_results))

    async def aclose(self) -> None:
        await self._inference.aclose()
        await self._search.aclose()

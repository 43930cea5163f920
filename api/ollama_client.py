"""
Streaming client for a locally hosted Ollama-compatible inference server.

Opening the request happens in the caller's task so a dead server is reported
before any chunk is produced. Reading and decoding the body then runs in a
background producer feeding a bounded StreamChannel.
"""

import json
import time

import httpx

from config.config import DEFAULT_OLLAMA_BASE_URL, DEFAULT_OLLAMA_MODEL
from models.chat_message import ChatMessage
from models.errors import InferenceUnavailableError, NormalizedError, StreamInterruptedError
from utils.logger import get_logger
from utils.stream_channel import DEFAULT_CAPACITY, StreamChannel

from .base_client import BaseStreamingClient
from .stream_decoder import InferenceStreamDecoder, MalformedRecordHook, iter_raw_lines

logger = get_logger(__name__)


class ChatStream:
    """
    One streamed reply.

    Iterate it to receive text chunks in server order. Closing it (explicitly
    or by leaving ``async with``) stops the background reader.
    """

    def __init__(self, channel: StreamChannel[str], decoder: InferenceStreamDecoder, model: str):
        self.channel = channel
        self.decoder = decoder
        self.model = model

    @property
    def skipped_records(self) -> int:
        return self.decoder.skipped_records

    @property
    def completed(self) -> bool:
        return self.decoder.done

    def __aiter__(self):
        return self.channel.__aiter__()

    async def aclose(self) -> None:
        await self.channel.aclose()

    async def __aenter__(self) -> "ChatStream":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


class OllamaClient(BaseStreamingClient):
    """
    Client for the inference server's ``/api/chat`` endpoint.
    """

    provider = "ollama"

    def __init__(
        self,
        base_url: str = DEFAULT_OLLAMA_BASE_URL,
        model_name: str = DEFAULT_OLLAMA_MODEL,
        timeout_s: float = 300.0,
        channel_capacity: int = DEFAULT_CAPACITY,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize the Ollama client.

        Args:
            base_url: Inference server root (default: http://localhost:11434)
            model_name: Model requested for every chat (default: granite3-moe)
            timeout_s: Read timeout for a streamed reply
            channel_capacity: Chunks buffered before the reader waits for the consumer
            http_client: Optional injected AsyncClient
        """
        super().__init__(base_url, timeout_s=timeout_s, http_client=http_client)
        self.model_name = model_name
        self.channel_capacity = channel_capacity

    @property
    def chat_url(self) -> str:
        return f"{self.base_url}/api/chat"

    def build_payload(self, messages: list[ChatMessage], model: str | None = None) -> dict:
        return {
            "model": model or self.model_name,
            "messages": [m.to_wire() for m in messages],
            "stream": True,
        }

    async def chat_stream(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        on_malformed: MalformedRecordHook | None = None,
    ) -> ChatStream:
        """
        Start a streamed chat completion.

        Args:
            messages: Full prompt (system message first)
            model: Override the configured model for this call
            on_malformed: Called with (raw_record, exception) for every skipped record

        Returns:
            ChatStream yielding text chunks

        Raises:
            InferenceUnavailableError: The server could not be reached or
                answered with a non-success status. Nothing has been streamed.
        """
        payload = self.build_payload(messages, model=model)
        request = self.http.build_request("POST", self.chat_url, json=payload)

        logger.info(
            f"Opening chat stream ({len(messages)} messages, model={payload['model']})",
            extra={"extra_fields": {"model": payload["model"], "message_count": len(messages)}},
        )

        try:
            response = await self.http.send(request, stream=True)
        except httpx.HTTPError as e:
            error = self._normalize_error(e)
            logger.error(f"Inference request failed to start: {error.message}")
            raise InferenceUnavailableError(error) from e

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            error = self._normalize_error(e)
            body = await self._read_error_body(response)
            if body:
                error.details["server_error"] = body
            await response.aclose()
            logger.error(f"Inference server rejected chat request: {error.message} {body}".strip())
            raise InferenceUnavailableError(error) from e

        decoder = InferenceStreamDecoder(on_malformed=on_malformed)
        channel: StreamChannel[str] = StreamChannel(self.channel_capacity, name="chat")
        started = time.time()

        async def produce(ch: StreamChannel[str]) -> None:
            try:
                async for chunk in decoder.iter_chunks(iter_raw_lines(response.aiter_bytes())):
                    if not await ch.send(chunk):
                        logger.info("Chat consumer detached; stopping reader")
                        return
            except httpx.HTTPError as e:
                cause = self._normalize_error(e)
                raise StreamInterruptedError(
                    NormalizedError(
                        code="interrupted",
                        message=f"Chat stream interrupted after {ch.sent} chunks: {cause.message}",
                        provider=self.provider,
                        retryable=True,
                        details={**cause.details, "chunks_delivered": ch.sent},
                    )
                ) from e
            finally:
                await response.aclose()

            if not decoder.done:
                raise StreamInterruptedError(
                    NormalizedError(
                        code="interrupted",
                        message="Chat stream ended before the final record",
                        provider=self.provider,
                        retryable=True,
                        details={"chunks_delivered": ch.sent},
                    )
                )

            logger.info(
                "Chat stream completed",
                extra={
                    "extra_fields": {
                        "chunks": ch.sent,
                        "records": decoder.records,
                        "skipped_records": decoder.skipped_records,
                        "latency_ms": int((time.time() - started) * 1000),
                    }
                },
            )

        channel.start(produce)
        return ChatStream(channel, decoder, payload["model"])

    @staticmethod
    async def _read_error_body(response: httpx.Response) -> str:
        try:
            raw = await response.aread()
        except httpx.HTTPError:
            return ""
        try:
            data = json.loads(raw)
        except ValueError:
            return raw.decode("utf-8", "replace")[:200]
        if isinstance(data, dict) and "error" in data:
            return str(data["error"])
        return raw.decode("utf-8", "replace")[:200]

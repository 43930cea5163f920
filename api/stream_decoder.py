"""
Incremental decoder for the inference server's streamed chat response.

The server answers ``POST /api/chat`` with newline-delimited JSON records:

    {"model": "...", "message": {"role": "assistant", "content": "Hel"}, "done": false}
    ...
    {"model": "...", "message": {"role": "assistant", "content": "!"}, "done": true}

Fragments of non-final records are emitted as soon as they arrive. The final
record's fragment is flushed through the buffer and ends the stream. Records
that cannot be decoded are skipped so one corrupt line does not kill an
otherwise healthy reply.
"""

from collections.abc import AsyncIterable, AsyncIterator, Callable

from pydantic import BaseModel, ValidationError

from utils.logger import get_logger

logger = get_logger(__name__)

MalformedRecordHook = Callable[[bytes | str, Exception], None]


class RecordMessage(BaseModel):
    role: str = "assistant"
    content: str = ""


class InferenceRecord(BaseModel):
    model: str = ""
    message: RecordMessage
    done: bool = False


class InferenceStreamDecoder:
    """
    State machine over inference records.

    Attributes:
        done: True once the final record has been seen
        skipped_records: Number of records dropped as undecodable
    """

    def __init__(self, on_malformed: MalformedRecordHook | None = None):
        self._buffer: list[str] = []
        self._on_malformed = on_malformed
        self.done = False
        self.records = 0
        self.skipped_records = 0

    @property
    def buffered(self) -> str:
        return "".join(self._buffer)

    def _skip(self, raw: bytes | str, exc: Exception) -> None:
        self.skipped_records += 1
        preview = raw[:120] if isinstance(raw, str) else raw[:120].decode("utf-8", "replace")
        logger.warning(
            f"Skipping undecodable inference record: {exc.__class__.__name__}",
            extra={
                "extra_fields": {
                    "skipped_records": self.skipped_records,
                    "record_preview": preview,
                }
            },
        )
        if self._on_malformed is not None:
            self._on_malformed(raw, exc)

    def decode(self, raw: bytes | str) -> str | None:
        """
        Feed one record and return the chunk to emit, if any.

        Blank lines and records arriving after the final one return None.
        """
        if self.done:
            return None

        if isinstance(raw, bytes):
            try:
                text = raw.decode("utf-8")
            except UnicodeDecodeError as e:
                self._skip(raw, e)
                return None
        else:
            text = raw

        if not text.strip():
            return None

        try:
            record = InferenceRecord.model_validate_json(text)
        except ValidationError as e:
            self._skip(raw, e)
            return None

        self.records += 1
        if not record.done:
            return record.message.content

        self._buffer.append(record.message.content)
        final = self.buffered
        self._buffer.clear()
        self.done = True
        return final

    async def iter_chunks(self, records: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
        """Decode an async stream of records, stopping after the final one."""
        async for raw in records:
            chunk = self.decode(raw)
            if chunk is not None:
                yield chunk
            if self.done:
                break


async def iter_raw_lines(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """
    Split a byte stream into undecoded lines.

    Records are handed to the decoder as bytes so invalid UTF-8 is detected
    per record instead of being replaced during text decoding.
    """
    pending = b""
    async for chunk in chunks:
        pending += chunk
        *lines, pending = pending.split(b"\n")
        for line in lines:
            yield line.rstrip(b"\r")
    if pending:
        yield pending.rstrip(b"\r")

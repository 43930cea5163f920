"""Chat streaming endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from context.session import ChatSession
from models.errors import StreamInterruptedError, TransportError
from server.dependencies import get_session
from server.schemas.requests import ChatStreamRequest
from server.utils import NDJSON_HEADERS, NDJSON_MEDIA_TYPE, error_event, to_ndjson, upstream_unavailable
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["Chat"])

CHUNK_EVENT = "chat-response"
DONE_EVENT = "chat-done"


@router.post("/chat/stream")
async def chat_stream(
    request: ChatStreamRequest,
    session: ChatSession = Depends(get_session),
):
    """
    Stream the assistant's reply as NDJSON events.

    One ``chat-response`` event per chunk, then ``chat-done``. If the stream
    breaks mid-flight a single ``error`` event ends the response. If the
    inference server cannot be reached the request fails with 502 before
    anything is streamed.
    """
    try:
        turn = await session.start_chat(request.message)
    except TransportError as exc:
        raise upstream_unavailable(exc.error) from exc

    async def event_stream():
        try:
            async for chunk in turn:
                yield to_ndjson({"event": CHUNK_EVENT, "data": chunk})
            yield to_ndjson({
                "event": DONE_EVENT,
                "length": len(turn.reply),
                "skipped_records": turn.stream.skipped_records,
            })
        except StreamInterruptedError as exc:
            yield error_event(exc.error)
        except Exception as exc:
            logger.error(f"Chat stream failed: {exc}", exc_info=True)
            yield to_ndjson({"event": "error", "message": str(exc)})
        finally:
            await turn.aclose()

    return StreamingResponse(event_stream(), media_type=NDJSON_MEDIA_TYPE, headers=NDJSON_HEADERS)

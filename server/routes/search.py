"""Search endpoints: streamed results and the collected enriched list."""

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse

from context.session import ChatSession
from models.errors import AssistantError, TransportError
from models.search_result import SearchMode
from server.dependencies import get_session
from server.schemas.requests import SearchRequest
from server.schemas.responses import EnrichedSearchResponseDTO, SearchResultDTO
from server.utils import NDJSON_HEADERS, NDJSON_MEDIA_TYPE, error_event, to_ndjson, upstream_unavailable
from utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/v1", tags=["Search"])

RESULT_EVENT = "search-result"
DONE_EVENT = "search-done"


@router.post("/search")
async def perform_search(
    request: SearchRequest,
    session: ChatSession = Depends(get_session),
):
    """Stream results as NDJSON ``search-result`` events, then ``search-done``."""
    try:
        channel = await session.start_search(request.query, request.mode, request.max_results)
    except TransportError as exc:
        raise upstream_unavailable(exc.error) from exc

    async def event_stream():
        count = 0
        try:
            async for result in channel:
                count += 1
                yield to_ndjson({
                    "event": RESULT_EVENT,
                    "data": SearchResultDTO.from_search_result(result).model_dump(),
                })
            yield to_ndjson({"event": DONE_EVENT, "mode": request.mode.value, "count": count})
        except AssistantError as exc:
            yield error_event(exc.error)
        except Exception as exc:
            logger.error(f"Search stream failed: {exc}", exc_info=True)
            yield to_ndjson({"event": "error", "message": str(exc)})
        finally:
            await channel.aclose()

    return StreamingResponse(event_stream(), media_type=NDJSON_MEDIA_TYPE, headers=NDJSON_HEADERS)


@router.post("/search/enriched", response_model=EnrichedSearchResponseDTO)
async def search_enriched(
    request: SearchRequest,
    session: ChatSession = Depends(get_session),
):
    """Run the enriched pipeline and return every surviving result at once."""
    try:
        results = await session.search_enriched(request.query, request.max_results)
    except TransportError as exc:
        raise upstream_unavailable(exc.error) from exc

    return EnrichedSearchResponseDTO(
        query=request.query,
        results=[SearchResultDTO.from_search_result(r) for r in results],
        count=len(results),
    )

"""Shared utilities for FastAPI routes."""

import json

from fastapi import HTTPException, status

from server.schemas.responses import ErrorDTO

NDJSON_MEDIA_TYPE = "application/x-ndjson"
NDJSON_HEADERS = {
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


def to_ndjson(event: dict) -> str:
    """Serialize one stream event as NDJSON."""
    return json.dumps(event, ensure_ascii=False) + "\n"


def error_event(err) -> str:
    """NDJSON line reporting a failure after streaming has started."""
    return to_ndjson({"event": "error", "error": ErrorDTO.from_normalized_error(err).model_dump()})


def upstream_unavailable(err) -> HTTPException:
    """502 for a transport failure that happened before anything was streamed."""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail=ErrorDTO.from_normalized_error(err).model_dump(),
    )

"""Pydantic request models for FastAPI endpoints."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from models.search_result import SearchMode

MAX_SEARCH_RESULTS = 25


class ChatStreamRequest(BaseModel):
    message: str = Field(..., min_length=1)

    @field_validator("message")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    mode: SearchMode = SearchMode.FAST
    max_results: Optional[int] = Field(None, ge=1, le=MAX_SEARCH_RESULTS)

    @field_validator("query")
    @classmethod
    def reject_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("query must not be blank")
        return value

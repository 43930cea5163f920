"""Pydantic response models (DTOs) for FastAPI endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ErrorDTO(BaseModel):
    code: str
    message: str
    provider: str
    retryable: bool
    details: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_normalized_error(cls, err):
        return cls(
            code=err.code,
            message=err.message,
            provider=err.provider,
            retryable=err.retryable,
            details=err.details,
        )


class SearchResultDTO(BaseModel):
    url: str
    title: str
    summary: str = ""
    reading_time: int = 0
    favicon_url: str | None = None
    is_paywall: bool = False

    @classmethod
    def from_search_result(cls, result):
        return cls(**result.to_dict())


class EnrichedSearchResponseDTO(BaseModel):
    query: str
    results: list[SearchResultDTO]
    count: int


class MessageDTO(BaseModel):
    role: str
    content: str

    @classmethod
    def from_chat_message(cls, message):
        return cls(role=message.role, content=message.content)


class ConversationDTO(BaseModel):
    messages: list[MessageDTO]
    count: int
    max_messages: int


class ClearResponseDTO(BaseModel):
    status: str = "cleared"


class HealthResponseDTO(BaseModel):
    status: str
    timestamp: str
    version: str = "1.0.0"

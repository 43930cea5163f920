from dataclasses import dataclass, field
from typing import Any, Literal

from .search_result import SearchResult

Role = Literal["system", "user", "assistant"]

VALID_ROLES = {"system", "user", "assistant"}


@dataclass(frozen=True)
class MessageMetadata:
    """Structured annotations attached to a stored message."""

    context_check: str | None = None
    facts_check: str | None = None
    search_check: str | None = None
    reasoning: str | None = None
    learning: str | None = None
    search_results: list[SearchResult] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "context_check": self.context_check,
            "facts_check": self.facts_check,
            "search_check": self.search_check,
            "reasoning": self.reasoning,
            "learning": self.learning,
            "search_results": (
                [r.to_dict() for r in self.search_results]
                if self.search_results is not None
                else None
            ),
        }


@dataclass(frozen=True)
class ChatMessage:
    role: Role
    content: str
    metadata: MessageMetadata | None = field(default=None, compare=False)

    def __post_init__(self):
        if self.role not in VALID_ROLES:
            raise ValueError(f"Invalid role '{self.role}'. Must be one of: {sorted(VALID_ROLES)}")

    @classmethod
    def system(cls, content: str) -> "ChatMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ChatMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ChatMessage":
        # Assistant replies carry an empty annotation envelope
        return cls(role="assistant", content=content, metadata=MessageMetadata())

    def to_wire(self) -> dict[str, str]:
        """Message as sent to the inference server (metadata stays local)."""
        return {"role": self.role, "content": self.content}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

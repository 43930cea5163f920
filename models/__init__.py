"""
Models package for chat messages, search results and errors.
"""

from .chat_message import ChatMessage, MessageMetadata
from .errors import (
    InferenceUnavailableError,
    NormalizedError,
    SearchUnavailableError,
    StreamInterruptedError,
    TransportError,
)
from .search_result import SearchMode, SearchQuery, SearchResult

__all__ = [
    "ChatMessage",
    "InferenceUnavailableError",
    "MessageMetadata",
    "NormalizedError",
    "SearchMode",
    "SearchQuery",
    "SearchResult",
    "SearchUnavailableError",
    "StreamInterruptedError",
    "TransportError",
]

"""Web search tools for the assistant."""

from .content_extractor import ContentExtractor, ExtractedContent
from .contracts import SearchAnchor, SearchRunStats
from .factory import create_search_client_from_env
from .search_client import SearchClient

__all__ = [
    "ContentExtractor",
    "ExtractedContent",
    "SearchAnchor",
    "SearchClient",
    "SearchRunStats",
    "create_search_client_from_env",
]

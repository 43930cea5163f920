"""Factory for building the search client from environment configuration."""

from config.config import Config
from utils.logger import get_logger

from .content_extractor import ContentExtractor
from .search_client import SearchClient

logger = get_logger(__name__)


def create_search_client_from_env(config: Config | None = None) -> SearchClient:
    """
    Create a SearchClient from environment variables.

    Environment variables:
        SEARCH_BASE_URL: Provider HTML endpoint (default: https://duckduckgo.com/html)
        SEARCH_LOCALE: ``kl`` form value (default: us-en)
        SEARCH_TIMEOUT_S: Per-request timeout in seconds (default: 30)
        STREAM_CHANNEL_CAPACITY: Results buffered per stream (default: 100)

    Returns:
        Configured SearchClient instance
    """
    config = config or Config()

    logger.info(f"Using search provider at {config.SEARCH_BASE_URL} (locale={config.SEARCH_LOCALE})")

    return SearchClient(
        base_url=config.SEARCH_BASE_URL,
        locale=config.SEARCH_LOCALE,
        timeout_s=config.SEARCH_TIMEOUT_S,
        channel_capacity=config.STREAM_CHANNEL_CAPACITY,
        extractor=ContentExtractor(),
    )

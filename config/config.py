import os
from dotenv import load_dotenv
from pathlib import Path
from urllib.parse import urlparse

DEFAULT_OLLAMA_BASE_URL = "http://localhost:11434"
DEFAULT_OLLAMA_MODEL = "granite3-moe"
DEFAULT_SEARCH_BASE_URL = "https://duckduckgo.com/html"
DEFAULT_SEARCH_LOCALE = "us-en"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return float(raw)


class Config:
    """Configuration management for the assistant backend."""

    def __init__(self):
        """Initialize configuration with environment variables."""
        # Load environment variables from .env file if it exists
        env_path = Path(__file__).parent.parent / '.env'
        if env_path.exists():
            load_dotenv(dotenv_path=env_path)

        # Inference server
        self.OLLAMA_BASE_URL = os.getenv('OLLAMA_BASE_URL', DEFAULT_OLLAMA_BASE_URL).rstrip('/')
        self.OLLAMA_MODEL = os.getenv('OLLAMA_MODEL', DEFAULT_OLLAMA_MODEL)
        self.OLLAMA_TIMEOUT_S = _env_float('OLLAMA_TIMEOUT_S', 300.0)

        # Search provider
        self.SEARCH_BASE_URL = os.getenv('SEARCH_BASE_URL', DEFAULT_SEARCH_BASE_URL)
        self.SEARCH_LOCALE = os.getenv('SEARCH_LOCALE', DEFAULT_SEARCH_LOCALE)
        self.SEARCH_TIMEOUT_S = _env_float('SEARCH_TIMEOUT_S', 30.0)
        self.SEARCH_MAX_RESULTS = _env_int('SEARCH_MAX_RESULTS', 5)

        # Streaming and conversation window
        self.STREAM_CHANNEL_CAPACITY = _env_int('STREAM_CHANNEL_CAPACITY', 100)
        self.HISTORY_MAX_MESSAGES = _env_int('HISTORY_MAX_MESSAGES', 10)
        self.PROMPT_CONTEXT_MESSAGES = _env_int('PROMPT_CONTEXT_MESSAGES', 5)

    def validate(self) -> bool:
        """
        Validate that the configuration is usable.

        Returns:
            bool: True if configuration is valid, False otherwise
        """
        for name in ('OLLAMA_BASE_URL', 'SEARCH_BASE_URL'):
            parsed = urlparse(getattr(self, name))
            if parsed.scheme not in ('http', 'https') or not parsed.netloc:
                print(f"Error: {name} must be an absolute http(s) URL, got '{getattr(self, name)}'")
                return False

        for name in (
            'SEARCH_MAX_RESULTS',
            'STREAM_CHANNEL_CAPACITY',
            'HISTORY_MAX_MESSAGES',
            'PROMPT_CONTEXT_MESSAGES',
        ):
            if getattr(self, name) < 1:
                print(f"Error: {name} must be at least 1.")
                return False

        if self.OLLAMA_TIMEOUT_S <= 0 or self.SEARCH_TIMEOUT_S <= 0:
            print("Error: timeouts must be positive.")
            return False

        return True

    def get_model_info(self) -> str:
        """
        Get information about the configured inference model.

        Returns:
            str: Formatted string with model information
        """
        return f"Ollama ({self.OLLAMA_MODEL} @ {self.OLLAMA_BASE_URL})"

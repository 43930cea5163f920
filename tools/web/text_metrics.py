"""Derived fields for enriched search results."""

from urllib.parse import urlparse

SUMMARY_WORDS = 50
WORDS_PER_MINUTE = 100


def reading_time(text: str) -> int:
    """Minutes to read ``text``: whole hundreds of words, never less than 1."""
    return max(1, len(text.split()) // WORDS_PER_MINUTE)


def summarize(text: str, max_words: int = SUMMARY_WORDS) -> str:
    """First ``max_words`` words joined by single spaces, with ``...`` if cut."""
    words = text.split()
    summary = " ".join(words[:max_words])
    if len(words) > max_words:
        return summary + "..."
    return summary


def favicon_url(url: str) -> str | None:
    """``{scheme}://{host}/favicon.ico`` for an absolute URL, else None."""
    try:
        parsed = urlparse(url)
        host = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not host:
        return None
    return f"{parsed.scheme}://{host}/favicon.ico"

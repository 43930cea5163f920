"""
Paywall detection and best-effort article text extraction.

Pure and synchronous. Parsing is CPU-bound, so async callers run it through
``asyncio.to_thread`` to keep the event loop free for network I/O.
"""

from dataclasses import dataclass

from bs4 import BeautifulSoup
from soupsieve import SelectorSyntaxError

from utils.logger import get_logger

logger = get_logger(__name__)

PAYWALL_SELECTORS = (
    ".paywall",
    "#paywall",
    ".subscribe-wall",
    ".subscription-required",
    ".paid-content",
)

CONTENT_SELECTORS = (
    "article",
    ".article-content",
    ".post-content",
    "main",
    "[role='main']",
    ".content",
)

NON_TEXT_TAGS = ("script", "style", "noscript", "template")


@dataclass(frozen=True)
class ExtractedContent:
    text: str
    is_paywall: bool = False
    matched_selector: str | None = None

    @property
    def word_count(self) -> int:
        return len(self.text.split())


def _joined_text(element) -> str:
    return " ".join(element.get_text(" ").split())


class ContentExtractor:
    """
    Classify a fetched page and pull out its main text.

    Selector lists are tried in order. A selector that fails to compile counts
    as "no match" and the next one is tried.
    """

    def __init__(
        self,
        paywall_selectors: tuple[str, ...] = PAYWALL_SELECTORS,
        content_selectors: tuple[str, ...] = CONTENT_SELECTORS,
        parser: str = "html.parser",
    ):
        self.paywall_selectors = tuple(paywall_selectors)
        self.content_selectors = tuple(content_selectors)
        self.parser = parser

    def _select_first(self, soup: BeautifulSoup, selector: str):
        try:
            return soup.select_one(selector)
        except (SelectorSyntaxError, NotImplementedError) as e:
            logger.debug(f"Selector '{selector}' did not compile, treating as no match: {e}")
            return None

    def find_paywall(self, soup: BeautifulSoup) -> str | None:
        """Return the first paywall selector matching the page, if any."""
        for selector in self.paywall_selectors:
            if self._select_first(soup, selector) is not None:
                return selector
        return None

    def extract(self, html: str) -> ExtractedContent:
        """
        Analyze one page body.

        Args:
            html: Raw HTML of the fetched page

        Returns:
            ExtractedContent; ``is_paywall`` pages carry no text
        """
        soup = BeautifulSoup(html, self.parser)

        paywall = self.find_paywall(soup)
        if paywall is not None:
            logger.debug(f"Paywall detected via '{paywall}'")
            return ExtractedContent(text="", is_paywall=True, matched_selector=paywall)

        for tag in soup(NON_TEXT_TAGS):
            tag.decompose()

        for selector in self.content_selectors:
            element = self._select_first(soup, selector)
            if element is not None:
                return ExtractedContent(text=_joined_text(element), matched_selector=selector)

        # Fallback: whole body, or the whole document when there is no body
        body = soup.body
        return ExtractedContent(text=_joined_text(body if body is not None else soup))

    def extract_text(self, html: str) -> str | None:
        """Article text, or None when the page is paywalled."""
        content = self.extract(html)
        if content.is_paywall:
            return None
        return content.text

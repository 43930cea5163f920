"""Parse the search provider's HTML result listing into anchors."""

from urllib.parse import parse_qs, urlparse

from bs4 import BeautifulSoup

from .contracts import SearchAnchor

RESULT_SELECTOR = ".result"
LINK_SELECTOR = ".result__a"

_REDIRECT_PATHS = ("/l/", "/l")


def resolve_result_url(href: str) -> str:
    """
    Turn a listing href into the target URL.

    Provider redirect links (``//duckduckgo.com/l/?uddg=<target>``) are
    unwrapped and protocol-relative links get ``https:``. Anything else is
    returned unchanged.
    """
    href = href.strip()
    if href.startswith("//"):
        href = "https:" + href

    parsed = urlparse(href)
    if parsed.path in _REDIRECT_PATHS and parsed.netloc.endswith("duckduckgo.com"):
        target = parse_qs(parsed.query).get("uddg")
        if target and target[0]:
            return target[0]
    return href


def parse_result_anchors(
    html: str,
    max_results: int,
    result_selector: str = RESULT_SELECTOR,
    link_selector: str = LINK_SELECTOR,
) -> list[SearchAnchor]:
    """
    Extract up to ``max_results`` anchors in document order.

    The bound applies to result containers, as the listing is walked; a
    container without a usable link is dropped without being replaced.
    """
    soup = BeautifulSoup(html, "html.parser")
    anchors: list[SearchAnchor] = []

    for position, container in enumerate(soup.select(result_selector, limit=max_results)):
        link = container.select_one(link_selector)
        if link is None:
            continue
        href = link.get("href")
        if not href:
            continue
        title = " ".join(link.get_text().split())
        anchors.append(SearchAnchor(url=resolve_result_url(href), title=title, position=position))

    return anchors

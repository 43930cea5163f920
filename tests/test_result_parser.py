import pytest

from tools.web.result_parser import parse_result_anchors, resolve_result_url

pytestmark = pytest.mark.unit


def test_anchors_in_document_order_bounded(listing_html):
    anchors = parse_result_anchors(listing_html(5), max_results=3)
    assert [a.url for a in anchors] == [f"https://site{i}.test/article" for i in range(3)]
    assert [a.title for a in anchors] == ["Result 0", "Result 1", "Result 2"]
    assert [a.position for a in anchors] == [0, 1, 2]


def test_entries_without_link_are_skipped():
    html = (
        "<div class='result'><span>ad</span></div>"
        "<div class='result'><a class='result__a'>no href</a></div>"
        "<div class='result'><a class='result__a' href='https://ok.test/'>OK</a></div>"
    )
    anchors = parse_result_anchors(html, max_results=5)
    assert [(a.url, a.title) for a in anchors] == [("https://ok.test/", "OK")]


def test_empty_listing():
    assert parse_result_anchors("<html><body>No results.</body></html>", max_results=5) == []


@pytest.mark.parametrize(
    "href, expected",
    [
        (
            "//duckduckgo.com/l/?uddg=https%3A%2F%2Fexample.com%2Fpage%3Fa%3D1&rut=abc",
            "https://example.com/page?a=1",
        ),
        ("//cdn.example.com/x", "https://cdn.example.com/x"),
        ("https://example.com/direct", "https://example.com/direct"),
        ("https://duckduckgo.com/l/?kh=1", "https://duckduckgo.com/l/?kh=1"),
    ],
)
def test_resolve_result_url(href, expected):
    assert resolve_result_url(href) == expected


def test_title_keeps_text_nodes_joined():
    html = (
        "<div class='result'><a class='result__a' href='https://a.test/'>"
        "Foo<b>bar</b>\n   baz</a></div>"
    )
    anchors = parse_result_anchors(html, max_results=1)
    assert anchors[0].title == "Foobar baz"

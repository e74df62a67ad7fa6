"""Tests for docs.fetch_page_content and docs.fetch_doc_entries.

The fetch collaborator is replaced with AsyncMock objects, so no request
ever leaves the process.
"""

import asyncio
import logging
from unittest.mock import AsyncMock, call, patch

import httpx
import pytest

from djdocs.services.docs import fetch_doc_entries, fetch_page_content

_DEV = "https://docs.djangoproject.com/en/dev"
_PAGE_URL = f"{_DEV}/topics/db/models/"


def _page(title=None, prev=None, next_=None, body="<p>Content</p>"):
    """Return a minimal Django docs page with an optional Browse navigation."""
    nav = ""
    if prev or next_:
        links = ""
        if prev:
            links += f'<a rel="prev" href="{prev}">Previous</a>'
        if next_:
            links += f'<a rel="next" href="{next_}">Next</a>'
        nav = f'<nav aria-labelledby="browse-header">{links}</nav>'
    heading = f"<h1>{title}</h1>" if title is not None else ""
    return (
        f'<html><body>{nav}{heading}<div id="docs-content">{body}</div></body></html>'
    )


def _fetch_page(html: str, url: str = _PAGE_URL):
    with patch("djdocs.services.docs.fetch_url", new=AsyncMock(return_value=html)) as mock:
        result = asyncio.run(fetch_page_content(url))
    mock.assert_awaited_once_with(url)
    return result


# ---------------------------------------------------------------------------
# fetch_page_content
# ---------------------------------------------------------------------------


class TestFetchPageContent:
    def test_browse_navigation_links_are_resolved(self):
        html = """
        <html><body>
          <nav aria-labelledby="browse-header">
            <a rel="prev" href="../intro/">Previous</a>
            <a rel="next" href="../queries/">Next</a>
          </nav>
          <h1>Models ¶</h1>
          <div id="docs-content">
            <p>This is the content</p>
            <a href="/en/dev/ref/models/fields/">Relative link</a>
          </div>
        </body></html>
        """
        page = _fetch_page(html)

        assert page.title == "Models"
        assert "This is the content" in page.content
        assert f"({_DEV}/ref/models/fields/)" in page.content
        assert page.prev_url == f"{_DEV}/topics/db/intro/"
        assert page.next_url == f"{_DEV}/topics/db/queries/"

    def test_falls_back_to_horizontal_navigation(self):
        html = """
        <html><body>
          <nav aria-labelledby="browse-header"></nav>
          <nav class="browse-horizontal" aria-labelledby="browse-horizontal-header">
            <div class="left"><a rel="prev" href="../fallback-prev/">Previous</a></div>
            <div class="right"><a rel="next" href="../fallback-next/">Next</a></div>
          </nav>
          <h1>Test Page</h1>
          <div id="docs-content"><p>Content</p></div>
        </body></html>
        """
        page = _fetch_page(html)

        assert page.prev_url == f"{_DEV}/topics/db/fallback-prev/"
        assert page.next_url == f"{_DEV}/topics/db/fallback-next/"

    def test_fallback_is_used_per_direction(self):
        html = """
        <html><body>
          <nav aria-labelledby="browse-header"><a rel="prev" href="../primary/">P</a></nav>
          <nav class="browse-horizontal" aria-labelledby="browse-horizontal-header">
            <div class="left"><a rel="prev" href="../ignored/">P</a></div>
            <div class="right"><a rel="next" href="../secondary/">N</a></div>
          </nav>
          <h1>Mixed</h1>
        </body></html>
        """
        page = _fetch_page(html)

        assert page.prev_url == f"{_DEV}/topics/db/primary/"
        assert page.next_url == f"{_DEV}/topics/db/secondary/"

    def test_fallback_requires_left_and_right_blocks(self):
        html = """
        <html><body>
          <nav class="browse-horizontal" aria-labelledby="browse-horizontal-header">
            <div class="right"><a rel="prev" href="../wrong-side/">P</a></div>
          </nav>
          <h1>Sides</h1>
        </body></html>
        """
        page = _fetch_page(html)

        assert page.prev_url is None
        assert page.next_url is None

    def test_missing_navigation_gives_none(self):
        page = _fetch_page(_page("First Page"))

        assert page.prev_url is None
        assert page.next_url is None

    def test_absolute_navigation_hrefs_are_kept(self):
        page = _fetch_page(_page("Abs", next_=f"{_DEV}/topics/db/queries/"))
        assert page.next_url == f"{_DEV}/topics/db/queries/"

    def test_missing_h1_uses_untitled(self):
        page = _fetch_page(_page())
        assert page.title == "Untitled"

    def test_h1_with_only_pilcrow_uses_untitled(self):
        page = _fetch_page(_page("¶"))
        assert page.title == "Untitled"

    def test_headerlink_anchor_is_removed_from_title(self):
        html = (
            '<html><body><h1>Models<a class="headerlink" href="#models">¶</a></h1>'
            '<div id="docs-content"><p>Text</p></div></body></html>'
        )
        page = _fetch_page(html)
        assert page.title == "Models"

    def test_first_h1_is_used(self):
        html = "<html><body><h1>  First  </h1><h1>Second</h1></body></html>"
        assert _fetch_page(html).title == "First"

    def test_body_class_fallback(self):
        html = '<html><body><h1>Test</h1><div class="body"><p>Body content</p></div></body></html>'
        assert _fetch_page(html).content == "Body content"

    def test_article_fallback(self):
        html = "<html><body><h1>Test</h1><article><p>Article content</p></article></body></html>"
        assert _fetch_page(html).content == "Article content"

    def test_empty_container_falls_through_to_next_selector(self):
        html = (
            '<html><body><h1>Test</h1><div id="docs-content">  \n </div>'
            '<div class="body"><p>Body content</p></div></body></html>'
        )
        assert _fetch_page(html).content == "Body content"

    def test_every_empty_container_is_skipped(self):
        html = (
            '<html><body><h1>Test</h1><div id="docs-content"></div>'
            '<div class="body"> </div><article><p>Article content</p></article></body></html>'
        )
        assert _fetch_page(html).content == "Article content"

    def test_docs_content_wins_over_other_containers(self):
        html = (
            "<html><body><article><p>Article</p></article>"
            '<div class="body"><p>Body</p></div>'
            '<div id="docs-content"><p>Docs</p></div></body></html>'
        )
        assert _fetch_page(html).content == "Docs"

    def test_missing_content_container_gives_empty_content(self):
        page = _fetch_page("<html><body><h1>Empty Page</h1></body></html>")

        assert page.content == ""
        assert page.title == "Empty Page"

    def test_pilcrows_are_stripped_from_content(self):
        page = _fetch_page(_page("Models", body="<h2>Fields ¶</h2><p>Content ¶</p>"))

        assert "¶" not in page.content
        assert "## Fields" in page.content

    def test_relative_images_are_resolved(self):
        page = _fetch_page(_page("Img", body='<p><img src="../../_images/a.png" alt="a"></p>'))
        assert f"{_DEV}/topics/_images/a.png" in page.content

    def test_fetch_errors_propagate(self):
        request = httpx.Request("GET", _PAGE_URL)
        error = httpx.ConnectError("Network error", request=request)
        with patch("djdocs.services.docs.fetch_url", new=AsyncMock(side_effect=error)):
            with pytest.raises(httpx.ConnectError, match="Network error"):
                asyncio.run(fetch_page_content(_PAGE_URL))


# ---------------------------------------------------------------------------
# fetch_doc_entries
# ---------------------------------------------------------------------------


def _build(sitemap_urls, pages):
    """Run fetch_doc_entries with a mocked sitemap and a mocked page fetch.

    *pages* is passed as the ``side_effect`` of the fetch mock: a list of
    HTML strings and/or exceptions, one per candidate URL.
    """
    fetch_mock = AsyncMock(side_effect=pages)
    with (
        patch("djdocs.services.docs.fetch_sitemap", new=AsyncMock(return_value=sitemap_urls)),
        patch("djdocs.services.docs.fetch_url", new=fetch_mock),
    ):
        entries = asyncio.run(fetch_doc_entries())
    return entries, fetch_mock


class TestFetchDocEntries:
    def test_fetches_every_candidate_in_order(self):
        urls = [f"{_DEV}/topics/db/models/", f"{_DEV}/topics/db/queries/", f"{_DEV}/topics/db/"]
        entries, fetch_mock = _build(
            urls + [f"{_DEV}/other/"],
            [_page("Models"), _page("Queries"), _page("Database")],
        )

        assert [e.title for e in entries] == ["Models", "Queries", "Database"]
        assert fetch_mock.await_count == 3
        assert fetch_mock.await_args_list == [call(url) for url in urls]

    def test_non_matching_urls_are_never_fetched(self):
        entries, fetch_mock = _build(
            [f"{_DEV}/intro/tutorial01/", f"{_DEV}/topics/x/y/z/", f"{_DEV}/ref/x/"],
            [],
        )
        assert entries == []
        fetch_mock.assert_not_awaited()

    def test_empty_sitemap(self):
        entries, fetch_mock = _build([], [])
        assert entries == []
        fetch_mock.assert_not_awaited()

    def test_duplicate_sitemap_url_is_fetched_once(self):
        models = f"{_DEV}/topics/db/models/"
        queries = f"{_DEV}/topics/db/queries/"
        entries, fetch_mock = _build([models, models, queries], [_page("Models"), _page("Queries")])

        assert [e.url for e in entries] == [models, queries]
        assert fetch_mock.await_args_list == [call(models), call(queries)]

    def test_parent_links_follow_sections(self):
        urls = [f"{_DEV}/topics/db/", f"{_DEV}/topics/db/models/"]
        entries, _ = _build(urls, [_page("Database"), _page("Models")])

        assert entries[0].parent is None
        assert entries[1].parent is entries[0]

    def test_parent_missing_from_corpus_is_none(self):
        entries, _ = _build([f"{_DEV}/topics/db/models/"], [_page("Models")])
        assert entries[0].parent is None

    def test_ref_parent_is_outside_the_corpus(self):
        # /ref/contrib/ is never a candidate, so its children have no parent
        urls = [f"{_DEV}/ref/contrib/admin/", f"{_DEV}/ref/contrib/admin/actions/"]
        entries, _ = _build(urls, [_page("Admin"), _page("Actions")])

        assert entries[0].parent is None
        assert entries[1].parent is None

    def test_previous_and_next_links(self):
        urls = [f"{_DEV}/topics/db/models/", f"{_DEV}/topics/db/queries/"]
        entries, _ = _build(
            urls,
            [_page("Models", next_="../queries/"), _page("Queries", prev="../models/")],
        )

        assert entries[0].next is entries[1]
        assert entries[1].previous is entries[0]
        assert entries[0].previous is None
        assert entries[1].next is None

    def test_links_outside_the_corpus_are_none(self):
        entries, _ = _build(
            [f"{_DEV}/topics/db/models/"],
            [_page("Models", prev="../intro/", next_="../queries/")],
        )

        assert entries[0].previous is None
        assert entries[0].next is None

    def test_chain_of_three_pages(self):
        urls = [f"{_DEV}/topics/a/", f"{_DEV}/topics/b/", f"{_DEV}/topics/c/"]
        entries, _ = _build(
            urls,
            [
                _page("A", next_="../b/"),
                _page("B", prev="../a/", next_="../c/"),
                _page("C", prev="../b/"),
            ],
        )
        a, b, c = entries

        assert a.next is b
        assert b.previous is a
        assert b.next is c
        assert c.previous is b
        assert a.previous is None and c.next is None
        assert all(e.parent is None for e in entries)

    def test_failed_page_is_dropped_and_logged(self, caplog):
        urls = [f"{_DEV}/topics/db/models/", f"{_DEV}/topics/db/queries/"]
        request = httpx.Request("GET", urls[0])
        with caplog.at_level(logging.WARNING, logger="djdocs.services.docs"):
            entries, fetch_mock = _build(
                urls,
                [httpx.ConnectError("Network error", request=request), _page("Queries")],
            )

        assert len(entries) == 1
        assert entries[0].title == "Queries"
        assert entries[0].url == urls[1]
        assert fetch_mock.await_count == 2
        assert any(urls[0] in record.getMessage() for record in caplog.records)

    def test_link_to_failed_page_is_none(self):
        urls = [f"{_DEV}/topics/a/", f"{_DEV}/topics/b/"]
        entries, _ = _build(urls, [RuntimeError("boom"), _page("B", prev="../a/")])

        assert len(entries) == 1
        assert entries[0].previous is None

    def test_no_dangling_references(self):
        urls = [
            f"{_DEV}/topics/db/",
            f"{_DEV}/topics/db/models/",
            f"{_DEV}/topics/db/queries/",
            f"{_DEV}/topics/http/",
        ]
        entries, _ = _build(
            urls,
            [
                _page("Database", next_="../db/models/"),
                _page("Models", prev="../", next_="../queries/"),
                ValueError("bad page"),
                _page("HTTP", prev="../db/queries/", next_="../forms/"),
            ],
        )
        corpus = {id(e) for e in entries}

        for entry in entries:
            for linked in (entry.parent, entry.previous, entry.next):
                assert linked is None or id(linked) in corpus

    def test_sitemap_failure_propagates(self):
        request = httpx.Request("GET", "https://docs.djangoproject.com/sitemap-en.xml")
        error = httpx.ConnectError("Network error", request=request)
        with patch("djdocs.services.docs.fetch_sitemap", new=AsyncMock(side_effect=error)):
            with pytest.raises(httpx.ConnectError):
                asyncio.run(fetch_doc_entries())

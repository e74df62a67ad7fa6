"""Page fetcher and corpus builder for the Django documentation."""

import logging
from typing import List, NamedTuple, Optional, Tuple
from urllib.parse import urljoin

from bs4 import BeautifulSoup

from djdocs.constants import SITEMAP_URL, UNTITLED
from djdocs.models.entry import DocEntry, RawEntry
from djdocs.services.fetcher import fetch_url
from djdocs.services.html_to_markdown import (
    remove_header_links,
    resolve_relative_urls,
    strip_pilcrows,
    to_markdown,
)
from djdocs.services.linker import link_entries
from djdocs.services.sitemap import fetch_sitemap
from djdocs.services.url_filters import filter_docs_urls, get_section_parent_url

logger = logging.getLogger(__name__)

_BROWSE_NAV = 'nav[aria-labelledby="browse-header"]'
_FALLBACK_NAV = 'nav.browse-horizontal[aria-labelledby="browse-horizontal-header"]'

# Tried in order; the first non-empty one holds the page body
_CONTENT_SELECTORS = ("#docs-content", ".body", "article")


class PageContent(NamedTuple):
    title: str
    content: str
    prev_url: Optional[str]
    next_url: Optional[str]


def _select_href(soup: BeautifulSoup, selector: str) -> Optional[str]:
    link = soup.select_one(selector)
    if link is None:
        return None
    href = link.get("href")
    return str(href) if href else None


def _extract_browse_links(soup: BeautifulSoup) -> Tuple[Optional[str], Optional[str]]:
    """Return the raw (prev, next) hrefs from the page's Browse navigation.

    Each direction missing from the sidebar navigation is read from the
    horizontal navigation at the bottom of the page instead.
    """
    prev_href = _select_href(soup, f'{_BROWSE_NAV} a[rel="prev"]')
    next_href = _select_href(soup, f'{_BROWSE_NAV} a[rel="next"]')

    if not prev_href:
        prev_href = _select_href(soup, f'{_FALLBACK_NAV} .left a[rel="prev"]')
    if not next_href:
        next_href = _select_href(soup, f'{_FALLBACK_NAV} .right a[rel="next"]')

    return prev_href, next_href


def _content_html(soup: BeautifulSoup) -> str:
    for selector in _CONTENT_SELECTORS:
        node = soup.select_one(selector)
        if node is None:
            continue
        inner = node.decode_contents()
        if inner.strip():
            return inner
    return ""


async def fetch_page_content(url: str) -> PageContent:
    """Fetch one documentation page and extract its title, body and neighbours.

    Fetch errors propagate to the caller.  Missing markup never does: no
    navigation gives ``None`` links, no ``<h1>`` gives ``"Untitled"`` and no
    content container gives an empty body.
    """
    html = await fetch_url(url)
    soup = BeautifulSoup(html, "lxml")

    # Navigation is read before the tree is modified below
    prev_href, next_href = _extract_browse_links(soup)
    prev_url = urljoin(url, prev_href) if prev_href else None
    next_url = urljoin(url, next_href) if next_href else None
    logger.debug("Browse links for %s: prev=%s next=%s", url, prev_url, next_url)

    remove_header_links(soup)
    resolve_relative_urls(soup, url)

    h1 = soup.find("h1")
    title = strip_pilcrows(h1.get_text()) if h1 else ""
    content = strip_pilcrows(to_markdown(_content_html(soup)))

    return PageContent(
        title=title or UNTITLED,
        content=content,
        prev_url=prev_url,
        next_url=next_url,
    )


async def fetch_doc_entries(sitemap_url: str = SITEMAP_URL) -> List[DocEntry]:
    """Build the linked documentation corpus from the sitemap.

    Pages are fetched one after the other in sitemap order.  A page that
    fails is logged and left out; a sitemap failure aborts the build.
    """
    all_urls = await fetch_sitemap(sitemap_url)
    urls = filter_docs_urls(all_urls)
    logger.info("Building corpus from %d of %d sitemap URLs", len(urls), len(all_urls))

    raw_entries: List[RawEntry] = []
    seen: set = set()
    for url in urls:
        # A URL listed twice is fetched once, keeping entry URLs unique
        if url in seen:
            logger.debug("Skipping duplicate sitemap URL %s", url)
            continue
        seen.add(url)

        try:
            page = await fetch_page_content(url)
        except Exception as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            continue

        raw_entries.append(
            RawEntry(
                url=url,
                title=page.title,
                content=page.content,
                parent_url=get_section_parent_url(url),
                prev_url=page.prev_url,
                next_url=page.next_url,
            )
        )

    entries = link_entries(raw_entries)
    logger.info("Corpus built: %d pages, %d failed", len(entries), len(seen) - len(entries))
    return entries

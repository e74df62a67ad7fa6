"""HTML clean-up and Markdown conversion for Django documentation pages."""

from urllib.parse import urljoin

from bs4 import BeautifulSoup
from markdownify import markdownify

from djdocs.constants import PILCROW

# (tag, attribute) pairs rewritten to absolute URLs
_URL_ATTRS = (("a", "href"), ("img", "src"))


def remove_header_links(soup: BeautifulSoup) -> None:
    """Drop the ``¶`` self-link anchors Sphinx appends to every heading."""
    for anchor in soup.select("a.headerlink"):
        anchor.decompose()


def resolve_relative_urls(soup: BeautifulSoup, base_url: str) -> None:
    """Rewrite relative ``href``/``src`` attributes in place against *base_url*.

    In-page fragment links (``#section``) are left as they are.
    """
    for tag_name, attr in _URL_ATTRS:
        for tag in soup.find_all(tag_name, attrs={attr: True}):
            value = str(tag[attr]).strip()
            if not value or value.startswith("#"):
                continue
            tag[attr] = urljoin(base_url, value)


def strip_pilcrows(text: str) -> str:
    """Remove every pilcrow from *text* and trim the result."""
    return text.replace(PILCROW, "").strip()


def to_markdown(html: str) -> str:
    """Convert an HTML fragment to Markdown."""
    if not html:
        return ""
    return markdownify(
        html,
        heading_style="ATX",
        bullets="-",
    ).strip()

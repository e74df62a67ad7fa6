"""Sitemap reader: the flat list of page URLs advertised by the docs site."""

import logging
from typing import List

from lxml import etree

from djdocs.constants import SITEMAP_URL
from djdocs.services.fetcher import fetch_url

logger = logging.getLogger(__name__)


def _parse_sitemap(xml_text: str) -> List[str]:
    """Return the ``<loc>`` text of every ``<url>`` element, in document order.

    Values are returned exactly as written (no trimming).  The parser runs in
    recovery mode so a truncated or malformed document still yields the
    ``<loc>`` elements that precede the damage.
    """
    if not xml_text.strip():
        return []

    parser = etree.XMLParser(recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_text.encode("utf-8"), parser)
    except etree.XMLSyntaxError as exc:
        logger.warning("Failed to parse sitemap XML: %s", exc)
        return []

    if root is None:
        logger.warning("Sitemap XML contained no usable elements")
        return []

    urls: List[str] = []
    # "{*}" matches the sitemap namespace as well as no namespace at all
    for url_elem in root.iter("{*}url"):
        for loc in url_elem.iterchildren("{*}loc"):
            urls.append("".join(loc.itertext()))
    return urls


async def fetch_sitemap(sitemap_url: str = SITEMAP_URL) -> List[str]:
    """Fetch *sitemap_url* and return the listed page URLs.

    Fetch errors propagate unchanged; there is no retry.
    """
    xml_text = await fetch_url(sitemap_url)
    urls = _parse_sitemap(xml_text)
    logger.info("Sitemap %s lists %d URLs", sitemap_url, len(urls))
    return urls

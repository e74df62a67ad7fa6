"""Cache-backed access to the corpus: loading, searching and lookup."""

import logging
from typing import List, Optional

from djdocs.constants import SITEMAP_URL
from djdocs.models.entry import DocEntry
from djdocs.services.cache import KeyValueStore, read_cache, write_cache
from djdocs.services.docs import fetch_doc_entries

logger = logging.getLogger(__name__)


async def load_doc_entries(
    store: KeyValueStore,
    version: str,
    force: bool = False,
    sitemap_url: str = SITEMAP_URL,
) -> List[DocEntry]:
    """Return the corpus for *version*, building and caching it when needed.

    A cached, non-empty corpus is returned as is unless *force* is set.
    """
    if not force:
        cached = read_cache(store, version)
        if cached:
            return cached

    logger.info("Fetching documentation for version %s", version)
    entries = await fetch_doc_entries(sitemap_url)
    write_cache(store, version, entries)
    logger.info("Loaded %d documentation pages for version %s", len(entries), version)
    return entries


def search_entries(entries: List[DocEntry], query: str) -> List[DocEntry]:
    """Return the entries matching every term of *query*, in corpus order.

    Terms are matched case-insensitively against the title, the parent's
    title and the URL.
    """
    terms = query.lower().split()
    if not terms:
        return list(entries)

    results = []
    for entry in entries:
        haystack = " ".join(
            (entry.title, entry.parent.title if entry.parent else "", entry.url)
        ).lower()
        if all(term in haystack for term in terms):
            results.append(entry)
    return results


def find_entry(entries: List[DocEntry], url: str) -> Optional[DocEntry]:
    """Return the entry for *url*, ignoring a missing or extra trailing slash."""
    wanted = url.rstrip("/")
    for entry in entries:
        if entry.url.rstrip("/") == wanted:
            return entry
    return None

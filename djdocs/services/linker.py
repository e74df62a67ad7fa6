"""Linking pass: turns raw per-page records into the connected page graph."""

from typing import Dict, List, Optional, Sequence

from djdocs.models.entry import DocEntry, RawEntry


def _lookup(entry_by_url: Dict[str, DocEntry], url: Optional[str]) -> Optional[DocEntry]:
    return entry_by_url.get(url) if url else None


def link_entries(raw_entries: Sequence[RawEntry]) -> List[DocEntry]:
    """Build one :class:`DocEntry` per record and resolve its links by URL.

    A link whose target URL is not among *raw_entries* becomes ``None``; no
    entry is ever synthesised for it.  Output order follows input order.
    """
    entries = [DocEntry(url=raw.url, title=raw.title, content=raw.content) for raw in raw_entries]
    entry_by_url = {entry.url: entry for entry in entries}

    for entry, raw in zip(entries, raw_entries):
        entry.parent = _lookup(entry_by_url, raw.parent_url)
        entry.previous = _lookup(entry_by_url, raw.prev_url)
        entry.next = _lookup(entry_by_url, raw.next_url)

    return entries

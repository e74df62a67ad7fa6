from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from djdocs.models.entry import DocEntry


class EntryLink(BaseModel):
    url: str
    title: str

    @classmethod
    def from_entry(cls, entry: Optional[DocEntry]) -> Optional["EntryLink"]:
        if entry is None:
            return None
        return cls(url=entry.url, title=entry.title)


class EntryListItem(BaseModel):
    url: str
    title: str
    subtitle: str
    """Title of the section parent, empty for top-level pages."""


class EntryListResponse(BaseModel):
    version: str
    total: int
    entries: List[EntryListItem]


class EntryDetail(BaseModel):
    url: str
    title: str
    content: str
    markdown: str
    """``# title`` heading followed by the page body, ready for display."""
    parent: Optional[EntryLink] = None
    previous: Optional[EntryLink] = None
    next: Optional[EntryLink] = None


class VersionsResponse(BaseModel):
    versions: List[str]
    default: str


class RefreshResponse(BaseModel):
    version: str
    pages: int
    last_refresh: Optional[datetime] = None


class CacheStatusResponse(BaseModel):
    version: str
    cached: bool
    age_ms: Optional[int] = None
    last_refresh: Optional[datetime] = None
    stale: bool

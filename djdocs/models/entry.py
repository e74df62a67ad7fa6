from dataclasses import dataclass, field
from typing import NamedTuple, Optional


class RawEntry(NamedTuple):
    """One fetched (or cached) page whose links are still plain URLs."""

    url: str
    title: str
    content: str
    parent_url: Optional[str] = None
    prev_url: Optional[str] = None
    next_url: Optional[str] = None


@dataclass(eq=False)
class DocEntry:
    """A page of the linked documentation corpus.

    ``parent``, ``previous`` and ``next`` always point at entries of the same
    corpus.  They are left out of ``repr`` because the graph has cycles.
    """

    url: str
    title: str
    content: str
    parent: Optional["DocEntry"] = field(default=None, repr=False)
    previous: Optional["DocEntry"] = field(default=None, repr=False)
    next: Optional["DocEntry"] = field(default=None, repr=False)

    def to_raw(self) -> RawEntry:
        """Return this entry with its links replaced by their URLs."""
        return RawEntry(
            url=self.url,
            title=self.title,
            content=self.content,
            parent_url=self.parent.url if self.parent else None,
            prev_url=self.previous.url if self.previous else None,
            next_url=self.next.url if self.next else None,
        )

"""Classification of documentation URLs into sections and section parents."""

from typing import Iterable, List, Optional
from urllib.parse import urlsplit

from djdocs.constants import SECTION_KEYWORDS, URL_PATTERNS


def classify_url(url: str) -> Optional[str]:
    """Return the name of the URL pattern *url* matches, or *None*.

    The patterns are mutually exclusive, so at most one name applies.
    """
    for name, pattern in URL_PATTERNS.items():
        if pattern.fullmatch(url):
            return name
    return None


def filter_docs_urls(urls: Iterable[str]) -> List[str]:
    """Keep the URLs that match any documentation pattern, in input order.

    The Django sitemap lists thousands of pages across every version and
    section; only the ``topics`` and ``ref`` pages at the depths defined in
    :data:`~djdocs.constants.URL_PATTERNS` make it into the corpus.
    """
    return [url for url in urls if classify_url(url) is not None]


def filter_urls_by_section(urls: Iterable[str], section: str) -> List[str]:
    """Keep the URLs matching the single pattern named *section*, in input order.

    Raises:
        KeyError: if *section* is not a key of ``URL_PATTERNS``.
    """
    pattern = URL_PATTERNS[section]
    return [url for url in urls if pattern.fullmatch(url)]


def get_section_parent_url(url: str) -> Optional[str]:
    """Return the top-level page of the section *url* belongs to.

    All pages below a section share one parent, e.g. both
    ``/ref/class-based-views/base/`` and ``/ref/class-based-views/mixins/``
    have ``/ref/class-based-views/``.  A page that is itself at the top of its
    section, or that is outside ``ref``/``topics``, has no parent.

    When both keywords occur in the path the first one wins, so
    ``/ref/topics/nested/`` maps to ``/ref/topics/``.  Scheme, host, query and
    fragment are carried over unchanged.
    """
    parts = urlsplit(url)
    segments = [segment for segment in parts.path.split("/") if segment]

    section_index = next(
        (i for i, segment in enumerate(segments) if segment in SECTION_KEYWORDS), None
    )
    if section_index is None:
        return None

    if len(segments) - section_index - 1 <= 1:
        return None

    parent_path = "/" + "/".join(segments[: section_index + 2]) + "/"

    # Rebuild from the original string: urlunsplit drops an empty "?" or "#"
    cut = min((i for i in (url.find("?"), url.find("#")) if i != -1), default=len(url))
    before = url[:cut]
    if not before.endswith(parts.path):
        # urlsplit stripped whitespace or control characters; fall back to it
        return parts._replace(path=parent_path).geturl()
    return before[: len(before) - len(parts.path)] + parent_path + url[cut:]

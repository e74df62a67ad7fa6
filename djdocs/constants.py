"""Fixed locations, URL patterns and documentation versions for docs.djangoproject.com."""

import re
from typing import Literal, Tuple

DJANGO_DOCS_BASE_URL = "https://docs.djangoproject.com"
SITEMAP_URL = f"{DJANGO_DOCS_BASE_URL}/sitemap-en.xml"

_DEV_PREFIX = re.escape(DJANGO_DOCS_BASE_URL) + r"/en/dev"

# Ordered: classify_url reports the first matching name.  Always match with
# fullmatch: "$" alone also accepts a trailing newline.
URL_PATTERNS = {
    # e.g. https://docs.djangoproject.com/en/dev/topics/http/
    "topics": re.compile(rf"^{_DEV_PREFIX}/topics/[^/]+/?$"),
    # e.g. https://docs.djangoproject.com/en/dev/topics/http/sessions/
    "topicsSub": re.compile(rf"^{_DEV_PREFIX}/topics/[^/]+/[^/]+/?$"),
    # ref pages start one level deeper, e.g. /en/dev/ref/contrib/admin/
    "ref": re.compile(rf"^{_DEV_PREFIX}/ref/[^/]+/[^/]+/?$"),
    # e.g. https://docs.djangoproject.com/en/dev/ref/contrib/admin/actions/
    "refSub": re.compile(rf"^{_DEV_PREFIX}/ref/[^/]+/[^/]+/[^/]+/?$"),
}

SectionName = Literal["topics", "topicsSub", "ref", "refSub"]

# Path segments that open a documentation section.
SECTION_KEYWORDS = ("ref", "topics")

DJANGO_VERSIONS: Tuple[str, ...] = ("6.0", "dev", "5.1", "5.0", "4.2")
DjangoVersion = Literal["6.0", "dev", "5.1", "5.0", "4.2"]
DEFAULT_VERSION: DjangoVersion = "6.0"

UNTITLED = "Untitled"
PILCROW = "¶"

SEVEN_DAYS_MS = 7 * 24 * 60 * 60 * 1000

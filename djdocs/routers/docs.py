import logging
from typing import List

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from djdocs.config import settings
from djdocs.constants import DEFAULT_VERSION, DJANGO_VERSIONS, DjangoVersion
from djdocs.models.api import (
    CacheStatusResponse,
    EntryDetail,
    EntryLink,
    EntryListItem,
    EntryListResponse,
    RefreshResponse,
    VersionsResponse,
)
from djdocs.models.entry import DocEntry
from djdocs.services.cache import (
    FileStore,
    KeyValueStore,
    get_cache_age,
    get_last_refresh_date,
    should_refresh,
)
from djdocs.services.library import find_entry, load_doc_entries, search_entries

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address)
router = APIRouter()


def get_store() -> KeyValueStore:
    return FileStore(settings.CACHE_DIR)


async def _load(store: KeyValueStore, version: str, force: bool = False) -> List[DocEntry]:
    """Load the corpus and map build failures to HTTP errors."""
    try:
        return await load_doc_entries(store, version, force=force, sitemap_url=settings.SITEMAP_URL)
    except ValueError as exc:
        logger.warning("Invalid sitemap URL %s – %s", settings.SITEMAP_URL, exc)
        raise HTTPException(status_code=500, detail=str(exc))
    except (httpx.HTTPError, RuntimeError) as exc:
        logger.error("Error fetching sitemap %s: %s", settings.SITEMAP_URL, exc)
        raise HTTPException(status_code=502, detail="Failed to load documentation.")


def _to_detail(entry: DocEntry) -> EntryDetail:
    return EntryDetail(
        url=entry.url,
        title=entry.title,
        content=entry.content,
        markdown=f"# {entry.title}\n\n{entry.content}",
        parent=EntryLink.from_entry(entry.parent),
        previous=EntryLink.from_entry(entry.previous),
        next=EntryLink.from_entry(entry.next),
    )


@router.get("/versions", response_model=VersionsResponse, summary="Supported documentation versions")
async def list_versions() -> VersionsResponse:
    return VersionsResponse(versions=list(DJANGO_VERSIONS), default=DEFAULT_VERSION)


@router.get(
    "/docs/{version}/entries",
    response_model=EntryListResponse,
    summary="List or search documentation pages",
    description=(
        "Returns every page of the corpus for *version*, or only those whose "
        "title, section title or URL contain all terms of `q`.  The corpus is "
        "built from the sitemap on first use and cached afterwards."
    ),
)
async def list_entries(
    version: DjangoVersion,
    q: str = Query(default="", description="Search terms."),
    store: KeyValueStore = Depends(get_store),
) -> EntryListResponse:
    entries = await _load(store, version)
    matches = search_entries(entries, q)
    return EntryListResponse(
        version=version,
        total=len(matches),
        entries=[
            EntryListItem(
                url=entry.url,
                title=entry.title,
                subtitle=entry.parent.title if entry.parent else "",
            )
            for entry in matches
        ],
    )


@router.get("/docs/{version}/entry", response_model=EntryDetail, summary="Show one documentation page")
async def get_entry(
    version: DjangoVersion,
    url: str = Query(..., description="Absolute URL of the page."),
    store: KeyValueStore = Depends(get_store),
) -> EntryDetail:
    entries = await _load(store, version)
    entry = find_entry(entries, url)
    if entry is None:
        raise HTTPException(status_code=404, detail="Page not found in the documentation corpus.")
    return _to_detail(entry)


@router.post(
    "/docs/{version}/refresh",
    response_model=RefreshResponse,
    summary="Rebuild the corpus from the sitemap",
)
@limiter.limit("2/minute")
async def refresh(
    request: Request,
    version: DjangoVersion,
    store: KeyValueStore = Depends(get_store),
) -> RefreshResponse:
    """Fetch every page again and replace the cached corpus for *version*."""
    logger.info("Refresh requested", extra={"version": version})
    entries = await _load(store, version, force=True)
    return RefreshResponse(
        version=version,
        pages=len(entries),
        last_refresh=get_last_refresh_date(store, version),
    )


@router.get("/docs/{version}/status", response_model=CacheStatusResponse, summary="Cache status")
async def cache_status(
    version: DjangoVersion,
    store: KeyValueStore = Depends(get_store),
) -> CacheStatusResponse:
    age = get_cache_age(store, version)
    return CacheStatusResponse(
        version=version,
        cached=age is not None,
        age_ms=age,
        last_refresh=get_last_refresh_date(store, version),
        stale=should_refresh(store, version, max_age_ms=settings.CACHE_MAX_AGE_MS),
    )

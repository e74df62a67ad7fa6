from urllib.parse import urlparse

import httpx

from djdocs.config import settings

MAX_CONTENT_SIZE = 20 * 1024 * 1024  # 20 MB, the English sitemap alone is several MB
MAX_REDIRECTS = 10
ALLOWED_SCHEMES = {"http", "https"}


def _validate_url(url: str) -> None:
    """Raise ValueError if *url* is not an absolute http(s) URL."""
    parsed = urlparse(url)

    if parsed.scheme not in ALLOWED_SCHEMES:
        raise ValueError(f"Scheme '{parsed.scheme}' is not allowed. Use http or https.")

    if not parsed.hostname:
        raise ValueError("URL must have a valid hostname.")


async def fetch_url(url: str) -> str:
    """Fetch *url* with a bare GET and return the response body as a string.

    No retries and no custom headers; the only limits are the configured
    timeout, the redirect cap and the body size cap.

    Raises:
        ValueError: if the URL is not an absolute http(s) URL.
        httpx.HTTPError: on network or HTTP errors (including too many redirects).
        RuntimeError: if the response body exceeds MAX_CONTENT_SIZE.
    """
    _validate_url(url)

    async with httpx.AsyncClient(
        follow_redirects=True,
        max_redirects=MAX_REDIRECTS,
        timeout=settings.FETCH_TIMEOUT,
    ) as client:
        async with client.stream("GET", url) as response:
            response.raise_for_status()

            content_length = response.headers.get("content-length")
            if content_length and int(content_length) > MAX_CONTENT_SIZE:
                raise RuntimeError("Response body exceeds the maximum allowed size.")

            chunks = []
            total = 0
            async for chunk in response.aiter_bytes():
                total += len(chunk)
                if total > MAX_CONTENT_SIZE:
                    raise RuntimeError("Response body exceeds the maximum allowed size.")
                chunks.append(chunk)

            return b"".join(chunks).decode(errors="replace")

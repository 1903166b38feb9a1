# streaming.py
"""Proxies the media behind a redeemed token to the caller as a file download."""
import logging
import re
from typing import Tuple

import httpx
from fastapi.responses import StreamingResponse

import models
from config import DOWNLOAD_FILE_EXTENSION, DOWNLOAD_USER_AGENT, UPSTREAM_TIMEOUT_SECONDS
from errors import UpstreamFetchFailed

# --- Source URL rewriting ---
GOOGLE_DRIVE_ID_PATTERNS = (
    re.compile(r"/d/([a-zA-Z0-9_-]+)"),
    re.compile(r"[?&]id=([a-zA-Z0-9_-]+)"),
)


def _google_drive_direct(url: str):
    if "drive.google.com" not in url:
        return None
    for pattern in GOOGLE_DRIVE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return f"https://drive.google.com/uc?export=download&id={match.group(1)}&confirm=t"
    return None


# Each rewriter returns a direct-download URL, or None if it does not apply.
URL_REWRITERS = (_google_drive_direct,)


def resolve_stream_url(url: str) -> str:
    """Turns share/view links into URLs that return the file bytes."""
    for rewrite in URL_REWRITERS:
        direct = rewrite(url)
        if direct:
            logging.info(f"Rewrote stream URL to direct download form: {direct}")
            return direct
    return url


# --- Filenames ---
def sanitize_title(title: str) -> str:
    """Filesystem-safe rendering of a display title. Idempotent."""
    safe = re.sub(r"[^A-Za-z0-9_\- ]", "_", title)
    safe = re.sub(r"\s+", "_", safe)
    safe = re.sub(r"_+", "_", safe).strip("_")
    return safe or "download"


def download_filename(title: str) -> str:
    return f"{sanitize_title(title)}{DOWNLOAD_FILE_EXTENSION}"


# --- Upstream fetch ---
def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=UPSTREAM_TIMEOUT_SECONDS, follow_redirects=True)


async def open_upstream(url: str) -> Tuple[httpx.AsyncClient, httpx.Response]:
    """Starts a streamed GET against the origin.

    The caller owns the returned client and response and must close both.
    """
    client = _build_client()
    try:
        request = client.build_request("GET", url, headers={"User-Agent": DOWNLOAD_USER_AGENT})
        response = await client.send(request, stream=True)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        await client.aclose()
        logging.error(f"Upstream request to {url} failed: {e}")
        raise UpstreamFetchFailed(f"Failed to fetch video: {e}") from e

    if not response.is_success:
        await response.aclose()
        await client.aclose()
        logging.error(f"Failed to fetch video from {url}: {response.status_code} {response.reason_phrase}")
        raise UpstreamFetchFailed(f"Failed to fetch video: {response.reason_phrase or response.status_code}")
    return client, response


async def stream_download(record: models.TokenRecord) -> StreamingResponse:
    url = resolve_stream_url(record.stream_url)
    client, upstream = await open_upstream(url)

    async def stream_generator():
        try:
            async for chunk in upstream.aiter_bytes():
                yield chunk
        finally:
            await upstream.aclose()
            await client.aclose()

    filename = download_filename(record.title)
    headers = {
        "Content-Type": upstream.headers.get("Content-Type") or "video/mp4",
        "Content-Disposition": f'attachment; filename="{filename}"',
        "Cache-Control": "no-cache, no-store, must-revalidate",
        "Pragma": "no-cache",
        "Expires": "0",
    }
    # aiter_bytes decodes transfer encodings, so the origin length only holds for identity bodies
    content_length = upstream.headers.get("Content-Length")
    if content_length and not upstream.headers.get("Content-Encoding"):
        headers["Content-Length"] = content_length

    logging.info(f"Streaming {url} as '{filename}' ({content_length or 'unknown'} bytes)")
    return StreamingResponse(stream_generator(), status_code=200, headers=headers)

import asyncio
from dataclasses import dataclass
from typing import Mapping, Optional

import azure.functions as func
import requests
from requests.structures import CaseInsensitiveDict

from src.shared.config import get_settings
from src.specs.common.errors import FetchError


@dataclass(frozen=True)
class FetchResult:
    ok: bool
    status: int
    headers: CaseInsensitiveDict
    body: bytes


def fetch_sync(url: str, timeout: Optional[float] = None) -> FetchResult:
    settings = get_settings()
    request_headers = {"User-Agent": settings.user_agent} if settings.user_agent else None
    try:
        r = requests.get(url, headers=request_headers, timeout=timeout or settings.fetch_timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Fetch failed for {url}: {exc}", details={"url": url}) from exc
    headers = CaseInsensitiveDict(r.headers)
    # requests has already undone any transfer compression on r.content.
    headers.pop("Content-Encoding", None)
    return FetchResult(
        ok=r.ok,
        status=r.status_code,
        headers=headers,
        body=r.content,
    )


async def fetch(url: str, timeout: Optional[float] = None) -> FetchResult:
    """Fetch ``url`` without blocking the event loop."""
    return await asyncio.to_thread(fetch_sync, url, timeout)


def build_response(body: bytes, headers: Mapping[str, str]) -> func.HttpResponse:
    return func.HttpResponse(
        body=body,
        status_code=200,
        headers=dict(headers),
        mimetype=headers.get("Content-Type"),
    )

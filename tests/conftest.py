from __future__ import annotations

from io import BytesIO
from typing import Callable, Dict, Optional

import pytest
import requests
from PIL import Image
from requests.structures import CaseInsensitiveDict

from src.shared import http_client
from src.shared.config import reset_settings

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def solid(width: int, height: int, color=RED) -> Image.Image:
    return Image.new("RGBA", (width, height), color)


def patterned(width: int, height: int) -> Image.Image:
    """Opaque image where every pixel is distinct, so misplacement shows up."""
    img = Image.new("RGBA", (width, height))
    for y in range(height):
        for x in range(width):
            img.putpixel((x, y), (x * 20 % 256, y * 20 % 256, (x + y) * 7 % 256, 255))
    return img


def encoded(img: Image.Image, fmt: str = "PNG") -> bytes:
    buf = BytesIO()
    (img.convert("RGB") if fmt == "JPEG" else img).save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    for name in ("IMAGEPIPE_FETCH_TIMEOUT", "IMAGEPIPE_DEFAULT_OUTPUT_FORMAT", "IMAGEPIPE_USER_AGENT"):
        monkeypatch.delenv(name, raising=False)
    reset_settings()
    yield
    reset_settings()


class FakeRemote:
    """Stands in for the network: maps URLs to canned responses."""

    def __init__(self) -> None:
        self.routes: Dict[str, requests.Response] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: list = []

    def serve(
        self,
        url: str,
        body: bytes,
        status: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        r = requests.Response()
        r.status_code = status
        r._content = body
        r.url = url
        r.headers = CaseInsensitiveDict(headers or {})
        self.routes[url] = r

    def fail(self, url: str, exc: Exception) -> None:
        self.errors[url] = exc

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if url in self.errors:
            raise self.errors[url]
        if url not in self.routes:
            raise requests.ConnectionError(f"no route to {url}")
        return self.routes[url]


@pytest.fixture
def remote(monkeypatch) -> FakeRemote:
    fake = FakeRemote()
    monkeypatch.setattr(http_client.requests, "get", fake.get)
    return fake


@pytest.fixture
def png_source() -> Callable[..., bytes]:
    def make(width: int = 8, height: int = 6, color=RED) -> bytes:
        return encoded(solid(width, height, color), "PNG")

    return make

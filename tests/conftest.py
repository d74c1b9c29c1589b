"""Shared test fixtures for pytest."""

import io

import httpx
import pytest

from fuzzysearch.api.client import FuzzySearch
from fuzzysearch.api.models import ClientConfig
from tests.factories import API_KEY


@pytest.fixture
def client_config():
    return ClientConfig(api_key=API_KEY, base_url="https://api.test")


@pytest.fixture
def make_api(client_config):
    """Build a FuzzySearch client backed by an httpx.MockTransport.

    Returns a factory taking a handler ``(httpx.Request) -> httpx.Response``
    and returning ``(api, requests)`` where ``requests`` records every
    request the transport saw.
    """

    def _make(handler, **kwargs):
        requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return handler(request)

        http = httpx.AsyncClient(transport=httpx.MockTransport(_record))
        api = FuzzySearch(client_config, client=http, **kwargs)
        return api, requests

    return _make


@pytest.fixture
def png_bytes():
    """Encode a small image with Pillow and return the PNG bytes."""
    from PIL import Image

    def _png(width=64, height=64, color=(128, 128, 128), pixels=None):
        img = Image.new("L" if pixels else "RGB", (width, height), color=0 if pixels else color)
        if pixels:
            img.putdata(pixels)
        buf = io.BytesIO()
        img.save(buf, format="PNG")
        return buf.getvalue()

    return _png

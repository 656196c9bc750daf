"""
Pytest fixtures for layerforge tests.

Remote sources are served by an ``httpx.MockTransport``; no test touches the
network.
"""

import base64
import io
import time
from urllib.parse import quote

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from layerforge.fetch import SourceCache

SVG_DOCUMENT = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="100" height="50" viewBox="0 0 100 50">'
    '<defs><linearGradient id="g"><stop offset="0" stop-color="#ffffff"/></linearGradient></defs>'
    '<rect id="bg" class="panel" x="0" y="0" width="100" height="50" fill="url(#g)"/>'
    '<circle id="dot" class="accent" cx="50" cy="25" r="10" '
    'style="fill:#ff0000;stroke:#000000" stroke-width="2"/>'
    '<script>alert(1)</script>'
    '</svg>'
)


def png_data(color=(255, 0, 0, 255), size=(4, 4)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGBA', size, color).save(buffer, format='PNG')
    return buffer.getvalue()


class AssetServer:
    """Request handler for httpx.MockTransport serving a fixed set of assets."""

    def __init__(self, assets: dict[str, tuple[bytes, str]]):
        self.assets = assets
        self.requests: list[str] = []
        self.delay = 0.0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(str(request.url))
        if self.delay:
            time.sleep(self.delay)
        if request.url.host == 'unreachable.test':
            raise httpx.ConnectError('Connection refused', request=request)
        asset = self.assets.get(str(request.url))
        if asset is None:
            return httpx.Response(404, request=request)
        data, content_type = asset
        return httpx.Response(200, content=data, headers={'content-type': content_type}, request=request)

    def count(self, url: str) -> int:
        return self.requests.count(url)


@pytest.fixture
def png_bytes() -> bytes:
    """A 4x4 opaque red PNG."""
    return png_data()


@pytest.fixture
def png_data_uri(png_bytes) -> str:
    return 'data:image/png;base64,' + base64.b64encode(png_bytes).decode('ascii')


@pytest.fixture
def svg_document() -> str:
    return SVG_DOCUMENT


@pytest.fixture
def svg_data_uri() -> str:
    return 'data:image/svg+xml;utf8,' + quote(SVG_DOCUMENT)


@pytest.fixture
def asset_server(png_bytes) -> AssetServer:
    return AssetServer({
        'https://assets.test/red.png': (png_bytes, 'image/png'),
        'https://assets.test/blue.png': (png_data((0, 0, 255, 255)), 'image/png'),
        'https://assets.test/logo.svg': (SVG_DOCUMENT.encode('utf-8'), 'image/svg+xml'),
        'https://assets.test/broken.png': (b'definitely not a png', 'image/png'),
    })


@pytest.fixture
def sources(asset_server):
    """A fresh SourceCache whose HTTP client talks to the asset server."""
    client = httpx.Client(transport=httpx.MockTransport(asset_server))
    yield SourceCache(client=client)
    client.close()


@pytest.fixture
def api_client():
    """FastAPI test client for the rendering API."""
    from layerforge.app import create_api_app

    with TestClient(create_api_app()) as client:
        yield client

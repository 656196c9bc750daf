"""Tests for source loading and the shared fetch cache."""

import asyncio
import base64
import threading
import time

import httpx
import pytest

from layerforge.config import settings
from layerforge.exceptions import SourceFetchError
from layerforge.fetch import (
    FetchedSource,
    SourceCache,
    load_data_uri,
    load_path,
    load_source,
    source_scheme,
    verify_image,
)


def _fetched(size):
    return FetchedSource('mem', b'x' * size, 'image/png')


class TestSourceScheme:
    """Tests for source classification."""

    @pytest.mark.parametrize("src,scheme", [
        ('data:image/png;base64,AAAA', 'data'),
        ('https://example.com/a.png', 'http'),
        ('HTTP://example.com/a.png', 'http'),
        ('images/a.png', 'path'),
        ('/abs/a.png', 'path'),
        ('javascript:alert(1)', 'unsupported'),
        ('file:///etc/passwd', 'unsupported'),
        ('ftp://host/a.png', 'unsupported'),
    ])
    def test_scheme(self, src, scheme):
        """Only data URIs, http(s) URLs and plain paths are loadable."""
        assert source_scheme(src) == scheme


class TestLoaders:
    """Tests for the individual loaders."""

    def test_base64_data_uri(self, png_bytes, png_data_uri):
        """Base64 payloads are decoded."""
        fetched = load_data_uri(png_data_uri, 'image')
        assert fetched.data == png_bytes
        assert fetched.content_type == 'image/png'

    def test_plain_data_uri(self):
        """Non-base64 payloads are URL decoded."""
        fetched = load_data_uri('data:image/svg+xml;utf8,%3Csvg%2F%3E', 'vector')
        assert fetched.text() == '<svg/>'
        assert fetched.is_svg

    @pytest.mark.parametrize("src,kind", [
        ('data:image/png;base64', 'image'),
        ('data:image/png;base64,***', 'image'),
        ('data:text/html,<b>hi</b>', 'image'),
        ('data:image/png;base64,AAAA', 'vector'),
    ])
    def test_rejected_data_uris(self, src, kind):
        """Malformed payloads and wrong content types are rejected."""
        with pytest.raises(SourceFetchError):
            load_data_uri(src, kind)

    def test_unsupported_scheme(self):
        """Script URLs never load."""
        with pytest.raises(SourceFetchError, match='unsupported source scheme'):
            load_source('javascript:alert(1)', 'image')

    @pytest.mark.parametrize("src", ['', '   ', None])
    def test_empty_source(self, src):
        """Empty sources are an error."""
        with pytest.raises(SourceFetchError):
            load_source(src, 'image')

    def test_verify_image(self, png_bytes):
        """Valid rasters pass, garbage does not."""
        assert verify_image(FetchedSource('a', png_bytes, 'image/png')).content_type == 'image/png'
        with pytest.raises(SourceFetchError, match='not a valid image'):
            verify_image(FetchedSource('b', b'garbage', 'image/png'))

    def test_verify_corrects_content_type(self, png_bytes):
        """The detected format wins over a wrong declared type."""
        fetched = verify_image(FetchedSource('a', png_bytes, 'application/octet-stream'))
        assert fetched.content_type == 'image/png'

    def test_data_uri_round_trip(self, png_bytes):
        """as_data_uri embeds the payload as base64."""
        uri = FetchedSource('a', png_bytes, 'image/png').as_data_uri()
        assert uri == 'data:image/png;base64,' + base64.b64encode(png_bytes).decode('ascii')


class TestLoadPath:
    """Tests for local file loading."""

    def test_loads_below_root(self, tmp_path, png_bytes):
        """Files below the asset root load with their content type."""
        (tmp_path / 'img').mkdir()
        (tmp_path / 'img' / 'a.png').write_bytes(png_bytes)
        fetched = load_path('img/a.png', 'image', root=tmp_path)
        assert fetched.data == png_bytes
        assert fetched.content_type == 'image/png'

    def test_outside_root(self, tmp_path):
        """Paths escaping the root are rejected."""
        with pytest.raises(SourceFetchError, match='outside asset root'):
            load_path('../secret.png', 'image', root=tmp_path)

    def test_extension_by_kind(self, tmp_path, png_bytes):
        """Vector sources must be .svg files."""
        (tmp_path / 'a.png').write_bytes(png_bytes)
        with pytest.raises(SourceFetchError, match='unsupported file type'):
            load_path('a.png', 'vector', root=tmp_path)

    def test_missing_file(self, tmp_path):
        """A missing file is a fetch error."""
        with pytest.raises(SourceFetchError):
            load_path('nope.svg', 'vector', root=tmp_path)

    def test_default_root_from_settings(self, tmp_path, monkeypatch, svg_document):
        """Without an explicit root the configured asset root is used."""
        (tmp_path / 'logo.svg').write_text(svg_document)
        monkeypatch.setattr(settings, 'ASSET_ROOT', str(tmp_path))
        assert load_source('logo.svg', 'vector').is_svg


class TestSourceCache:
    """Tests for the memoizing cache."""

    def test_fetches_once(self, sources, asset_server):
        """Repeated fetches of one source hit the network once."""
        first = sources.fetch('https://assets.test/red.png', 'image')
        second = sources.fetch('https://assets.test/red.png', 'image')
        assert first is second
        assert asset_server.count('https://assets.test/red.png') == 1
        stats = sources.stats
        assert (stats['hits'], stats['misses'], stats['entry_count']) == (1, 1, 1)
        assert stats['total_bytes'] == first.size

    def test_kinds_are_cached_separately(self, sources, asset_server):
        """The cache key includes the source kind."""
        sources.fetch('https://assets.test/logo.svg', 'image')
        sources.fetch('https://assets.test/logo.svg', 'vector')
        assert asset_server.count('https://assets.test/logo.svg') == 2

    def test_failure_is_cached(self, sources, asset_server):
        """A failed fetch is not retried within the failure TTL."""
        for _ in range(2):
            with pytest.raises(SourceFetchError):
                sources.fetch('https://assets.test/missing.png', 'image')
        assert asset_server.count('https://assets.test/missing.png') == 1
        assert sources.stats['failure_count'] == 1

    def test_failure_expires(self, asset_server):
        """With a zero TTL failures are retried."""
        client = httpx.Client(transport=httpx.MockTransport(asset_server))
        cache = SourceCache(failure_ttl_seconds=0, client=client)
        for _ in range(2):
            with pytest.raises(SourceFetchError):
                cache.fetch('https://unreachable.test/a.png', 'image')
        assert asset_server.count('https://unreachable.test/a.png') == 2

    def test_peek(self, sources):
        """peek never loads."""
        assert sources.peek('https://assets.test/red.png', 'image') is None
        sources.fetch('https://assets.test/red.png', 'image')
        entry = sources.peek('https://assets.test/red.png', 'image')
        assert entry is not None
        assert not entry.is_failure

    def test_peek_honours_failure_ttl(self, asset_server, png_bytes):
        """peek reports a failure only while it is fresh."""
        client = httpx.Client(transport=httpx.MockTransport(asset_server))
        cache = SourceCache(failure_ttl_seconds=0.2, client=client)
        url = 'https://assets.test/late.png'
        with pytest.raises(SourceFetchError):
            cache.fetch(url, 'image')
        assert cache.peek(url, 'image').is_failure

        asset_server.assets[url] = (png_bytes, 'image/png')
        time.sleep(0.3)
        assert cache.peek(url, 'image') is None
        assert cache.stats['failure_count'] == 0
        assert cache.fetch(url, 'image').data == png_bytes

    def test_invalidate_source(self, sources, asset_server):
        """Invalidation forces the next fetch to reload."""
        sources.fetch('https://assets.test/red.png', 'image')
        assert sources.invalidate_source('https://assets.test/red.png') == 1
        assert sources.stats['total_bytes'] == 0
        sources.fetch('https://assets.test/red.png', 'image')
        assert asset_server.count('https://assets.test/red.png') == 2

    def test_clear(self, sources):
        """clear drops every entry."""
        sources.fetch('https://assets.test/red.png', 'image')
        sources.clear()
        assert sources.stats['entry_count'] == 0

    def test_byte_budget_evicts_oldest(self):
        """Adding past the budget evicts the oldest entries."""
        cache = SourceCache(max_total_bytes=100)
        cache.get('a', lambda: _fetched(60))
        cache.get('b', lambda: _fetched(30))
        cache.get('c', lambda: _fetched(30))
        assert cache.stats['entry_count'] == 2
        assert cache.stats['total_bytes'] == 60
        calls = []
        cache.get('a', lambda: calls.append('a') or _fetched(60))
        assert calls == ['a']

    def test_oversized_entry_not_cached(self):
        """A payload larger than the whole budget is returned but not kept."""
        cache = SourceCache(max_total_bytes=10)
        value = cache.get('big', lambda: _fetched(50))
        assert value.size == 50
        assert cache.stats['entry_count'] == 0

    def test_loader_errors_are_wrapped(self):
        """Unexpected loader exceptions surface as SourceFetchError."""
        cache = SourceCache()

        def explode():
            raise ValueError('boom')

        with pytest.raises(SourceFetchError, match='boom'):
            cache.get('k', explode)

    def test_single_flight_across_threads(self, sources, asset_server):
        """Concurrent fetches of one source share a single request."""
        asset_server.delay = 0.2
        results = []
        errors = []

        def worker():
            try:
                results.append(sources.fetch('https://assets.test/blue.png', 'image'))
            except SourceFetchError as e:
                errors.append(e)

        threads = [threading.Thread(target=worker) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(results) == 5
        assert all(result is results[0] for result in results)
        assert asset_server.count('https://assets.test/blue.png') == 1
        assert sources.stats['inflight_count'] == 0


class TestAsyncFetch:
    """Tests for the async entry points."""

    @pytest.mark.asyncio
    async def test_afetch(self, sources):
        """afetch returns the same payload as fetch."""
        fetched = await sources.afetch('https://assets.test/logo.svg', 'vector')
        assert fetched.is_svg
        assert sources.fetch('https://assets.test/logo.svg', 'vector') is fetched

    @pytest.mark.asyncio
    async def test_gathered_fetches_share_one_request(self, sources, asset_server):
        """Concurrent async fetches of one source share a single request."""
        asset_server.delay = 0.1
        results = await asyncio.gather(*(
            sources.afetch('https://assets.test/red.png', 'image') for _ in range(4)
        ))
        assert all(result is results[0] for result in results)
        assert asset_server.count('https://assets.test/red.png') == 1

    @pytest.mark.asyncio
    async def test_afetch_failure(self, sources):
        """Async failures raise SourceFetchError."""
        with pytest.raises(SourceFetchError):
            await sources.afetch('https://unreachable.test/a.png', 'image')

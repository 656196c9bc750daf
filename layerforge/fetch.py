"""Source fetching and the shared fetch cache.

Image and vector-source layers reference external content by a source
string: a data URI, an http(s) URL or a local path. Loading goes through
one process-wide ``SourceCache``:

1. ``fetch(src, kind)`` looks up ``"{kind}:{src}"``
2. A hit returns the cached payload; a recent failure re-raises its error
3. A miss either joins the single in-flight load for that key or starts it
4. Successful payloads stay until evicted by the byte budget or invalidated;
   failures expire after ``FAILURE_TTL`` seconds

The cache is the only mutable state shared between render passes.
"""

import asyncio
import base64
import binascii
import logging
import threading
import time
from concurrent.futures import Future
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Any, Callable, Literal, Optional
from urllib.parse import unquote

import httpx
from PIL import Image as PILImage

from layerforge.config import settings
from layerforge.exceptions import SourceFetchError

logger = logging.getLogger(__name__)

SourceKind = Literal['image', 'vector']

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.webp', '.bmp', '.svg')
VECTOR_EXTENSIONS = ('.svg',)

_CONTENT_TYPES = {
    '.png': 'image/png',
    '.jpg': 'image/jpeg',
    '.jpeg': 'image/jpeg',
    '.gif': 'image/gif',
    '.webp': 'image/webp',
    '.bmp': 'image/bmp',
    '.svg': 'image/svg+xml',
}


@dataclass(frozen=True)
class FetchedSource:
    """Raw payload of a loaded source."""

    source: str
    data: bytes
    content_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def is_svg(self) -> bool:
        return self.content_type.startswith('image/svg')

    def text(self) -> str:
        return self.data.decode('utf-8', errors='replace')

    def as_data_uri(self) -> str:
        encoded = base64.b64encode(self.data).decode('ascii')
        return f'data:{self.content_type};base64,{encoded}'


@dataclass
class CacheEntry:
    """A cached payload or a cached failure."""

    value: Optional[FetchedSource]
    error: Optional[SourceFetchError] = None
    created_at: float = field(default_factory=time.time)
    size: int = 0

    def __post_init__(self):
        self.size = self.value.size if self.value is not None else 0

    @property
    def is_failure(self) -> bool:
        return self.error is not None


# =============================================================================
# Loaders
# =============================================================================

def source_scheme(src: str) -> str:
    """Classify a source string: 'data', 'http', 'path' or 'unsupported'."""
    lowered = src.strip().lower()
    if lowered.startswith('data:'):
        return 'data'
    if lowered.startswith(('http://', 'https://')):
        return 'http'
    head = lowered.split('/', 1)[0]
    # Anything with a scheme (javascript:, ftp:, file:) is rejected; C:\ paths are too
    if ':' in head:
        return 'unsupported'
    return 'path'


def load_data_uri(src: str, kind: SourceKind) -> FetchedSource:
    header, sep, payload = src.partition(',')
    if not sep:
        raise SourceFetchError(src, 'malformed data URI')
    meta = header[5:].split(';')
    content_type = (meta[0] or 'text/plain').strip().lower()
    if kind == 'vector' and content_type != 'image/svg+xml':
        raise SourceFetchError(src, f'unexpected content type {content_type}')
    if kind == 'image' and not content_type.startswith('image/'):
        raise SourceFetchError(src, f'unexpected content type {content_type}')
    if 'base64' in meta[1:]:
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            raise SourceFetchError(src, 'invalid base64 payload')
    else:
        data = unquote(payload).encode('utf-8')
    return FetchedSource(src, data, content_type)


def load_http(src: str, kind: SourceKind, client: httpx.Client) -> FetchedSource:
    try:
        response = client.get(src)
        response.raise_for_status()
    except httpx.HTTPError as e:
        raise SourceFetchError(src, str(e) or e.__class__.__name__)
    content_type = response.headers.get('content-type', '').split(';')[0].strip().lower()
    if not content_type:
        content_type = 'image/svg+xml' if kind == 'vector' else 'application/octet-stream'
    return FetchedSource(src, response.content, content_type)


def load_path(src: str, kind: SourceKind, root: Optional[Path] = None) -> FetchedSource:
    """Load a local file below ``root`` (default ``settings.ASSET_ROOT``)."""
    root = Path(root or settings.ASSET_ROOT).resolve()
    path = Path(src)
    if not path.is_absolute():
        path = root / path
    path = path.resolve()
    if root != path and root not in path.parents:
        raise SourceFetchError(src, 'path outside asset root')

    suffix = path.suffix.lower()
    allowed = VECTOR_EXTENSIONS if kind == 'vector' else IMAGE_EXTENSIONS
    if suffix not in allowed:
        raise SourceFetchError(src, f'unsupported file type {suffix or "(none)"}')
    try:
        data = path.read_bytes()
    except OSError as e:
        raise SourceFetchError(src, e.strerror or str(e))
    return FetchedSource(src, data, _CONTENT_TYPES[suffix])


def verify_image(fetched: FetchedSource) -> FetchedSource:
    """Check a raster payload with Pillow; SVG payloads pass through."""
    if fetched.is_svg:
        return fetched
    try:
        with PILImage.open(BytesIO(fetched.data)) as img:
            img.verify()
            content_type = PILImage.MIME.get(img.format or '', fetched.content_type)
    except Exception as e:
        raise SourceFetchError(fetched.source, f'not a valid image ({e.__class__.__name__})')
    if content_type == fetched.content_type:
        return fetched
    return FetchedSource(fetched.source, fetched.data, content_type)


def load_source(src: str, kind: SourceKind, client: Optional[httpx.Client] = None) -> FetchedSource:
    """
    Load a source of the given kind.

    Raises:
        SourceFetchError: for empty or disallowed sources and load failures
    """
    if not isinstance(src, str) or not src.strip():
        raise SourceFetchError(str(src), 'no source')
    src = src.strip()
    scheme = source_scheme(src)
    if scheme == 'data':
        fetched = load_data_uri(src, kind)
    elif scheme == 'http':
        fetched = load_http(src, kind, client or default_client())
    elif scheme == 'path':
        fetched = load_path(src, kind)
    else:
        raise SourceFetchError(src, 'unsupported source scheme')

    if kind == 'image':
        fetched = verify_image(fetched)
    logger.debug(f"Loaded {kind} source ({fetched.size} bytes, {fetched.content_type})")
    return fetched


_default_client: Optional[httpx.Client] = None
_client_lock = threading.Lock()


def default_client() -> httpx.Client:
    """Process-wide HTTP client configured from settings."""
    global _default_client
    with _client_lock:
        if _default_client is None:
            _default_client = httpx.Client(
                timeout=settings.FETCH_TIMEOUT,
                headers={'User-Agent': settings.USER_AGENT},
                follow_redirects=True,
            )
        return _default_client


# =============================================================================
# Cache
# =============================================================================

class SourceCache:
    """Thread-safe memoizing cache with at most one in-flight load per key."""

    def __init__(
        self,
        max_total_bytes: Optional[int] = None,
        failure_ttl_seconds: Optional[float] = None,
        client: Optional[httpx.Client] = None,
    ):
        self._entries: dict[str, CacheEntry] = {}
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()
        self._total_bytes = 0
        self._max_total_bytes = max_total_bytes if max_total_bytes is not None else settings.CACHE_MAX_BYTES
        self._failure_ttl = failure_ttl_seconds if failure_ttl_seconds is not None else settings.FAILURE_TTL
        self._hits = 0
        self._misses = 0
        self.client = client

    @staticmethod
    def key_for(src: str, kind: SourceKind) -> str:
        return f'{kind}:{src}'

    def _evict_if_needed(self, new_size: int) -> None:
        """Evict oldest entries if adding new_size would exceed max."""
        # Must be called with lock held
        while self._total_bytes + new_size > self._max_total_bytes and self._entries:
            oldest_key = min(self._entries, key=lambda k: self._entries[k].created_at)
            entry = self._entries.pop(oldest_key)
            self._total_bytes -= entry.size

    def _store(self, key: str, entry: CacheEntry) -> None:
        # Must be called with lock held
        previous = self._entries.pop(key, None)
        if previous is not None:
            self._total_bytes -= previous.size
        if entry.size > self._max_total_bytes:
            logger.debug(f"Not caching {key}: {entry.size} bytes exceeds budget")
            return
        self._evict_if_needed(entry.size)
        self._entries[key] = entry
        self._total_bytes += entry.size

    def get(self, key: str, loader: Callable[[], FetchedSource]) -> FetchedSource:
        """
        Return the cached value for ``key``, loading it at most once.

        Concurrent callers for the same key wait for the single in-flight
        load. A failed load is cached for the failure TTL and re-raised.

        Raises:
            SourceFetchError: when the load fails (now or within the TTL)
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                if not entry.is_failure:
                    self._hits += 1
                    return entry.value
                if time.time() - entry.created_at < self._failure_ttl:
                    self._hits += 1
                    raise entry.error
                self._entries.pop(key)

            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future
                self._misses += 1

        if not owner:
            return future.result()

        try:
            value = loader()
        except Exception as e:
            error = e if isinstance(e, SourceFetchError) else SourceFetchError(key, str(e))
            logger.warning(f"Source load failed: {error}")
            with self._lock:
                self._store(key, CacheEntry(value=None, error=error))
                self._inflight.pop(key, None)
            future.set_exception(error)
            raise error

        with self._lock:
            self._store(key, CacheEntry(value=value))
            self._inflight.pop(key, None)
        future.set_result(value)
        return value

    async def aget(self, key: str, loader: Callable[[], FetchedSource]) -> FetchedSource:
        """Async variant of ``get``; the load runs in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.get, key, loader)

    def fetch(self, src: str, kind: SourceKind) -> FetchedSource:
        return self.get(self.key_for(src, kind), lambda: load_source(src, kind, self.client))

    async def afetch(self, src: str, kind: SourceKind) -> FetchedSource:
        return await self.aget(self.key_for(src, kind), lambda: load_source(src, kind, self.client))

    def peek(self, src: str, kind: SourceKind) -> Optional[CacheEntry]:
        """Cached entry without loading (None when absent or an expired failure)."""
        key = self.key_for(src, kind)
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.is_failure and time.time() - entry.created_at >= self._failure_ttl:
                self._entries.pop(key)
                return None
            return entry

    def invalidate(self, key: str) -> bool:
        """Remove one entry; returns whether it existed."""
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is not None:
                self._total_bytes -= entry.size
            return entry is not None

    def invalidate_source(self, src: str) -> int:
        """Remove every entry loaded from ``src``; returns how many were removed."""
        return sum(self.invalidate(self.key_for(src, kind)) for kind in ('image', 'vector'))

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self._total_bytes = 0

    @property
    def stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            return {
                "total_bytes": self._total_bytes,
                "max_bytes": self._max_total_bytes,
                "entry_count": len(self._entries),
                "failure_count": sum(1 for e in self._entries.values() if e.is_failure),
                "inflight_count": len(self._inflight),
                "hits": self._hits,
                "misses": self._misses,
                "usage_percent": (
                    self._total_bytes / self._max_total_bytes * 100
                    if self._max_total_bytes > 0
                    else 0
                ),
            }


# Global instance
source_cache = SourceCache()

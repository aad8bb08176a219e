"""
Image resolution service.

Resolves a stored image reference (relative path, absolute URL, data URI or
the URL of a compressed ``.webp`` variant) to raw bytes over HTTP.
"""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import unquote_to_bytes, urljoin, urlsplit, urlunsplit

import requests

from ..config import DEFAULT_ORIGINAL_EXTENSIONS
from ..exceptions import ExportCancelledError

logger = logging.getLogger(__name__)

# OpenSSL messages seen when an https request hits a plaintext endpoint.
TLS_RECORD_ERROR_MARKERS = (
    "packet length too long",
    "record too long",
    "wrong version number",
    "record layer failure",
)


def decode_data_uri(uri: str) -> Optional[bytes]:
    """

    Decodes a ``data:`` URI.

    Returns None when the URI is malformed.

    """
    header, sep, payload = uri.partition(",")
    if not sep or not header.lower().startswith("data:"):
        return None
    try:
        if header.lower().endswith(";base64"):
            return base64.b64decode(payload, validate=False)
        return unquote_to_bytes(payload)
    except (binascii.Error, ValueError) as exc:
        logger.debug(f"Malformed data URI: {exc}")
        return None


def is_tls_record_error(exc: BaseException) -> bool:
    """True if exc looks like TLS spoken to a plaintext server."""
    if not isinstance(exc, requests.exceptions.SSLError):
        return False
    message = str(exc).lower()
    return any(marker in message for marker in TLS_RECORD_ERROR_MARKERS)


def original_candidates(url: str, extensions: Sequence[str] = DEFAULT_ORIGINAL_EXTENSIONS) -> List[str]:
    """
    List fetch candidates for an image URL, best fidelity first.

    For a ``.webp`` path the ``<stem>_original.<ext>`` siblings come first,
    one per extension, followed by the URL itself.

    Args:
        url: Absolute image URL
        extensions: Extension candidates for the original asset

    Returns:
        Ordered list of URLs to try
    """
    parts = urlsplit(url)
    path = parts.path
    slash = path.rfind("/")
    filename = path[slash + 1:]
    stem, dot, ext = filename.rpartition(".")
    if not dot or ext.lower() != "webp" or not stem:
        return [url]
    directory = path[:slash + 1]
    candidates = []
    for candidate_ext in extensions:
        candidate_path = f"{directory}{stem}_original.{candidate_ext}"
        candidates.append(urlunsplit(parts._replace(path=candidate_path)))
    candidates.append(url)
    return candidates


class ImageResolver:
    """
    Fetches image bytes for one export.

    Results are memoized per instance, so an image referenced twice is fetched
    once. A resolver is meant to live for a single export call.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        timeout: float = 10.0,
        original_extensions: Sequence[str] = DEFAULT_ORIGINAL_EXTENSIONS,
        cancel_event: Optional[threading.Event] = None,
    ):
        """
        Initialize image resolver.

        Args:
            session: requests Session used for fetching (a new one if None)
            timeout: Per-request timeout in seconds
            original_extensions: Extension candidates for ``_original`` assets
            cancel_event: Event that aborts pending fetches when set
        """
        self._owns_session = session is None
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.original_extensions = tuple(original_extensions)
        self.cancel_event = cancel_event
        self._cache: Dict[str, Optional[bytes]] = {}
        self._lock = threading.Lock()

    def close(self) -> None:
        """Close the HTTP session if this resolver created it."""
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "ImageResolver":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ExportCancelledError("Export cancelled", "image fetch abandoned")

    @staticmethod
    def absolute_url(url: str, origin: Optional[str]) -> str:
        """Resolve url against origin (unchanged when already absolute)."""
        if origin and not urlsplit(url).scheme:
            return urljoin(origin if origin.endswith("/") else origin + "/", url)
        return url

    def _headers(self, cookie: Optional[str]) -> Dict[str, str]:
        headers = {
            "Cache-Control": "no-cache",
            "Pragma": "no-cache",
        }
        if cookie:
            headers["Cookie"] = cookie
        return headers

    def _get(self, url: str, cookie: Optional[str]) -> Optional[bytes]:
        self._check_cancelled()
        response = self.session.get(url, headers=self._headers(cookie), timeout=self.timeout)
        self._check_cancelled()
        if not 200 <= response.status_code < 300:
            logger.debug(f"Image candidate {url} answered {response.status_code}")
            return None
        data = response.content
        return data or None

    def fetch_candidate(self, url: str, cookie: Optional[str]) -> Optional[bytes]:
        """
        Fetch one candidate URL, retrying once over http on a TLS record error.

        Args:
            url: Absolute candidate URL
            cookie: Cookie header value to forward

        Returns:
            Body bytes or None
        """
        try:
            return self._get(url, cookie)
        except ExportCancelledError:
            raise
        except requests.exceptions.RequestException as exc:
            if url.startswith("https:") and is_tls_record_error(exc):
                plain = "http:" + url[len("https:"):]
                logger.info(f"TLS record error for {url}; retrying over http")
                try:
                    return self._get(plain, cookie)
                except ExportCancelledError:
                    raise
                except requests.exceptions.RequestException as retry_exc:
                    logger.debug(f"Plain http retry failed for {plain}: {retry_exc}")
                    return None
            logger.debug(f"Image candidate {url} failed: {exc}")
            return None

    def resolve(self, url: Optional[str], origin: Optional[str] = None, cookie: Optional[str] = None) -> Optional[bytes]:
        """
        Resolve an image reference to bytes.

        Args:
            url: Stored image reference
            origin: Base URL used for relative references
            cookie: Caller's Cookie header value

        Returns:
            Image bytes, or None when every candidate fails
        """
        if not url or not isinstance(url, str):
            return None
        url = url.strip()
        if url.lower().startswith("data:"):
            return decode_data_uri(url)

        try:
            absolute = self.absolute_url(url, origin)
            scheme = urlsplit(absolute).scheme.lower()
            candidates = original_candidates(absolute, self.original_extensions)
        except ValueError as exc:
            logger.warning(f"Malformed image URL {url[:80]!r}: {exc}")
            return None

        with self._lock:
            if absolute in self._cache:
                return self._cache[absolute]

        if scheme not in ("http", "https"):
            logger.warning(f"Unsupported image URL scheme: {absolute}")
            result = None
        else:
            result = None
            for candidate in candidates:
                result = self.fetch_candidate(candidate, cookie)
                if result is not None:
                    if candidate != absolute:
                        logger.debug(f"Using original asset {candidate}")
                    break
            if result is None:
                logger.warning(f"Image could not be fetched: {absolute}")

        with self._lock:
            self._cache[absolute] = result
        return result

    def prefetch(
        self,
        urls: Iterable[str],
        origin: Optional[str] = None,
        cookie: Optional[str] = None,
        max_workers: int = 4,
    ) -> None:
        """
        Fetch several images concurrently into the memo cache.

        Layout still reads images in document order through resolve(), so the
        resulting pages are identical to sequential fetching.

        Args:
            urls: Image references in document order
            origin: Base URL used for relative references
            cookie: Caller's Cookie header value
            max_workers: Thread pool size
        """
        pending = []
        seen = set()
        for url in urls:
            if not url or not isinstance(url, str) or url.strip().lower().startswith("data:"):
                continue
            if url in seen:
                continue
            seen.add(url)
            pending.append(url)
        if not pending:
            return
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            futures = [pool.submit(self.resolve, url, origin, cookie) for url in pending]
            for future in futures:
                # re-raises ExportCancelledError from the worker
                future.result()

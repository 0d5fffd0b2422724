"""Template body loaders: filesystem, remote URL, and in-memory strings.

Loaders surface raw errors (``OSError``, ``httpx.HTTPError``). The engine
converts them into TemplateErrors with the template name attached.
"""

import threading
from pathlib import Path
from typing import Protocol

import httpx

from staticweave.logging import get_logger

DEFAULT_REMOTE_TIMEOUT = 10.0


def is_url(path: str) -> bool:
    """True for http(s) URLs."""
    return path.startswith("http://") or path.startswith("https://")


class TemplateReader(Protocol):
    """Reads a template body from the filesystem."""

    def read(self, path: Path) -> bytes:
        """Return file contents; raise OSError on failure."""
        ...


class TemplateFetcher(Protocol):
    """Fetches a template body from a URL."""

    def fetch(self, url: str) -> bytes:
        """Return response body; raise httpx.HTTPError on failure."""
        ...


class FileLoader:
    """Reads template files from disk."""

    def read(self, path: Path) -> bytes:
        return Path(path).read_bytes()


class RemoteLoader:
    """Fetches templates over HTTP with httpx.

    The client is created lazily and shared between threads; httpx.Client
    is thread-safe.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_REMOTE_TIMEOUT,
        headers: dict[str, str] | None = None,
        follow_redirects: bool = True,
        client: httpx.Client | None = None,
    ):
        """Initialize remote loader.

        Args:
            timeout: Per-request timeout in seconds
            headers: Extra request headers
            follow_redirects: Follow 3xx responses
            client: Pre-built client (e.g. with a mock transport in tests)
        """
        self.timeout = timeout
        self._headers = headers or {}
        self._follow_redirects = follow_redirects
        self._client = client
        self._owns_client = client is None
        self._lock = threading.Lock()
        self._logger = get_logger("loaders")

    def _get_client(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client(
                    timeout=self.timeout,
                    headers=self._headers,
                    follow_redirects=self._follow_redirects,
                )
            return self._client

    def fetch(self, url: str) -> bytes:
        """GET ``url`` and return the body.

        Raises:
            httpx.TimeoutException: If the request exceeds the timeout
            httpx.HTTPStatusError: On a non-2xx response
            httpx.HTTPError: On any other transport failure
        """
        self._logger.debug("Fetching remote template", url=url)
        response = self._get_client().get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    def close(self) -> None:
        """Close the underlying client if this loader created it."""
        with self._lock:
            if self._client is not None and self._owns_client:
                self._client.close()
                self._client = None

    def __enter__(self) -> "RemoteLoader":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class StringLoader:
    """Named in-memory template bodies."""

    def __init__(self, templates: dict[str, str] | None = None) -> None:
        self._templates: dict[str, str] = dict(templates or {})
        self._lock = threading.Lock()

    def register(self, name: str, body: str) -> None:
        with self._lock:
            self._templates[name] = body

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._templates.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._templates

    def load(self, name: str) -> str:
        """Return the registered body.

        Raises:
            KeyError: If nothing is registered under ``name``
        """
        return self._templates[name]

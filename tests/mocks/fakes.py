"""Fake clock and loaders."""

import threading
from pathlib import Path

import httpx

from staticweave.template.loaders import FileLoader


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class CountingFileLoader(FileLoader):
    """FileLoader that counts reads per path.

    ``delay`` holds each read open so concurrent callers pile up on a cold key.
    """

    def __init__(self, delay: float = 0.0) -> None:
        self.calls: dict[Path, int] = {}
        self.delay = delay
        self._lock = threading.Lock()

    @property
    def total_calls(self) -> int:
        return sum(self.calls.values())

    def read(self, path: Path) -> bytes:
        with self._lock:
            self.calls[path] = self.calls.get(path, 0) + 1
        if self.delay:
            threading.Event().wait(self.delay)
        return super().read(path)


class FakeRemoteLoader:
    """In-memory URL fetcher.

    Unknown URLs fail like an unreachable host; ``error`` is raised for every URL.
    """

    def __init__(
        self,
        pages: dict[str, bytes] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.pages = dict(pages or {})
        self.error = error
        self.calls: list[str] = []
        self.timeout = 2.5

    def fetch(self, url: str) -> bytes:
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        if url not in self.pages:
            raise httpx.ConnectError(f"Unreachable: {url}")
        return self.pages[url]

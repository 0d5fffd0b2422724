"""Test fakes for staticweave.

Provides fake collaborators for engine tests:
- FakeClock: Manually advanced monotonic clock
- CountingFileLoader: FileLoader recording reads per path
- FakeRemoteLoader: In-memory URL fetcher
"""

from .fakes import CountingFileLoader, FakeClock, FakeRemoteLoader

__all__ = ["FakeClock", "CountingFileLoader", "FakeRemoteLoader"]

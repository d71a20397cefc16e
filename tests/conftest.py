import asyncio
import sys
from pathlib import Path
from typing import Dict, List, Optional, Union

import pytest

# Ensure root path is available for imports
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from app.core.errors import UpstreamError  # noqa: E402
from app.models import Episode, SubmissionResult, TorrentFile, TorrentState, TorrentStatus  # noqa: E402
from app.services.base import CatalogSource, DebridClient  # noqa: E402


class FakeClock:
    """Simulated time: sleep() advances now() instantly."""

    def __init__(self, start: float = 1000.0):
        self.current = start
        self.sleeps: List[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += seconds

    def advance(self, seconds: float) -> None:
        self.current += seconds


class FakeDebrid(DebridClient):
    """
    Scripted debrid service. `statuses` is consumed one entry per poll (the last
    entry repeats); an exception entry is raised instead of returned.
    `links` maps file id, or (torrent id, file id), -> url or exception.
    `submissions` overrides `submission` per magnet.
    """

    def __init__(self):
        self.submission = SubmissionResult(success=True, torrent_id=42)
        self.submissions: Dict[str, SubmissionResult] = {}
        self.statuses: List[Union[TorrentStatus, Exception]] = [TorrentStatus(state=TorrentState.DOWNLOADED)]
        self.links: Dict[Union[int, str, tuple], Union[str, Exception]] = {}
        self.submit_calls: List[str] = []
        self.status_calls = 0
        self.link_calls: List[Union[int, str]] = []
        self.closed = False

    async def submit_magnet(self, magnet, api_key):
        self.submit_calls.append(magnet)
        # let concurrent resolutions interleave like a real network call
        await asyncio.sleep(0)
        if magnet in self.submissions:
            return self.submissions[magnet]
        if isinstance(self.submission, Exception):
            raise self.submission
        return self.submission

    async def get_status(self, torrent_id, api_key):
        index = min(self.status_calls, len(self.statuses) - 1)
        self.status_calls += 1
        status = self.statuses[index]
        if isinstance(status, Exception):
            raise status
        return status

    async def get_direct_link(self, torrent_id, file_id, api_key):
        self.link_calls.append(file_id)
        link = self.links.get((torrent_id, file_id), self.links.get(file_id, UpstreamError("no link")))
        if isinstance(link, Exception):
            raise link
        return link

    @property
    def total_calls(self) -> int:
        return len(self.submit_calls) + self.status_calls + len(self.link_calls)

    async def aclose(self):
        self.closed = True


class FakeCatalog(CatalogSource):
    def __init__(self, episodes: Optional[List[Episode]] = None, error: Optional[Exception] = None):
        self.episodes = episodes or []
        self.error = error
        self.calls = 0

    async def list_episodes(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.episodes)

    async def aclose(self):
        pass


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_debrid() -> FakeDebrid:
    return FakeDebrid()


@pytest.fixture
def make_episode():
    def _make(id="1", magnet: Optional[str] = "magnet:?xt=urn:btih:AAA", **kwargs) -> Episode:
        data = {
            "title": "Romance Dawn 01",
            "arc_title": "Romance Dawn",
            "part": 1,
            "manga": "1-7",
            "released": "2014-03-16T00:00:00Z",
        }
        data.update(kwargs)
        return Episode(id=str(id), magnet=magnet, **data)
    return _make


@pytest.fixture
def make_catalog():
    def _make(episodes=None, error=None) -> FakeCatalog:
        return FakeCatalog(episodes, error)
    return _make


@pytest.fixture
def make_files():
    def _make(*entries) -> List[TorrentFile]:
        return [TorrentFile(id=i + 1, name=name, size=size) for i, (name, size) in enumerate(entries)]
    return _make

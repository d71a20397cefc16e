from abc import ABC, abstractmethod
from typing import List, Optional, Union

from app.models import Episode, SubmissionResult, TorrentStatus

class DebridClient(ABC):
    """
    Abstract Base Class for Debrid Providers (TorBox for now).
    Implementations raise UpstreamError on transport or protocol failures.
    """

    @abstractmethod
    async def submit_magnet(self, magnet: str, api_key: str) -> SubmissionResult:
        """Adds a magnet to the service and returns its torrent id."""
        pass

    @abstractmethod
    async def get_status(self, torrent_id: Union[int, str], api_key: str) -> TorrentStatus:
        """Current state, progress and file list of a submitted torrent."""
        pass

    @abstractmethod
    async def get_direct_link(self, torrent_id: Union[int, str], file_id: Union[int, str], api_key: str) -> str:
        pass


class CatalogSource(ABC):
    """
    Read-only episode source. Must never raise for an unreachable upstream;
    returning an empty or fallback list is acceptable.
    """

    @abstractmethod
    async def list_episodes(self) -> List[Episode]:
        pass

    async def get_episode(self, episode_id: str) -> Optional[Episode]:
        for episode in await self.list_episodes():
            if str(episode.id) == str(episode_id):
                return episode
        return None

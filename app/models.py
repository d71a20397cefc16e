from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# --- Catalog ---

class Episode(BaseModel):
    id: str
    title: str
    arc_title: str
    part: Optional[int] = None
    manga: Optional[str] = None
    released: Optional[datetime] = None
    magnet: Optional[str] = None  # magnet link or torrent reference

    @property
    def display_name(self) -> str:
        if self.part is None:
            return self.arc_title or self.title
        return f"{self.arc_title} - Part {self.part}"


# --- TorBox ---

class TorrentState(str, Enum):
    QUEUED = "queued"
    DOWNLOADING = "downloading"
    DOWNLOADED = "downloaded"
    CACHED = "cached"
    ERROR = "error"
    UNKNOWN = "unknown"

    @classmethod
    def from_upstream(cls, raw: Optional[str], progress: float = 0.0) -> "TorrentState":
        """
        Maps TorBox's free-form `download_state` onto the states we act on.
        TorBox reports things like 'metaDL', 'stalled (no seeds)' or 'paused'
        while a torrent is still in flight.
        """
        if not raw:
            return cls.UNKNOWN
        value = raw.strip().lower()
        for state in cls:
            if value == state.value:
                return state
        if value.startswith("queued"):
            return cls.QUEUED
        if value in ("completed", "uploading", "seeding"):
            return cls.DOWNLOADED
        if value.startswith("error") or value == "failed":
            return cls.ERROR
        if progress < 100:
            return cls.DOWNLOADING
        return cls.UNKNOWN


class TorrentFile(BaseModel):
    id: Union[int, str]
    name: str
    size: int = 0


class TorrentStatus(BaseModel):
    state: TorrentState = TorrentState.UNKNOWN
    progress: float = 0.0
    finished: bool = False
    files: List[TorrentFile] = []

    @property
    def is_ready(self) -> bool:
        return self.finished or self.state in (TorrentState.DOWNLOADED, TorrentState.CACHED)


class SubmissionResult(BaseModel):
    success: bool
    torrent_id: Optional[Union[int, str]] = None
    detail: str = ""


# --- Streams ---

class PlayableStream(BaseModel):
    kind: Literal["playable"] = "playable"
    label: str
    title: str
    url: str
    group_key: str

    @property
    def is_placeholder(self) -> bool:
        return False

    def to_stremio(self) -> Dict[str, Any]:
        return {
            "name": self.label,
            "title": self.title,
            "url": self.url,
            "behaviorHints": {"notWebReady": False, "bingeGroup": self.group_key},
        }


class PlaceholderStream(BaseModel):
    """Diagnostic entry shown in the client's stream list instead of a link."""
    kind: Literal["placeholder"] = "placeholder"
    label: str
    title: str

    @property
    def is_placeholder(self) -> bool:
        return True

    def to_stremio(self) -> Dict[str, Any]:
        return {
            "name": self.label,
            "title": self.title,
            "url": "",
            "behaviorHints": {"notWebReady": True},
        }


StreamDescriptor = Annotated[Union[PlayableStream, PlaceholderStream], Field(discriminator="kind")]

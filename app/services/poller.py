from enum import Enum
from typing import Optional, Union

from loguru import logger
from pydantic import BaseModel

from app.core.clock import Clock, SystemClock
from app.core.errors import UpstreamError
from app.models import TorrentStatus
from app.services.base import DebridClient


class PollState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


class PollResult(BaseModel):
    state: PollState
    status: Optional[TorrentStatus] = None
    polls: int = 0
    elapsed: float = 0.0


class ReadinessPoller:
    """
    Polls a submitted torrent until it is downloaded/cached or the deadline passes.

    A failed status call is logged and retried on the next tick. On deadline
    expiry the last snapshot is handed back as TIMED_OUT (stale is fine for the
    caller); FAILED means no snapshot was ever obtained.
    """

    def __init__(self, debrid: DebridClient, interval: float = 3.0, deadline: float = 30.0, clock: Optional[Clock] = None):
        self.debrid = debrid
        self.interval = interval
        self.deadline = deadline
        self.clock = clock or SystemClock()

    async def wait_until_ready(self, torrent_id: Union[int, str], api_key: str, deadline: Optional[float] = None) -> PollResult:
        deadline = self.deadline if deadline is None else deadline
        start = self.clock.now()
        last_status: Optional[TorrentStatus] = None
        polls = 0

        while self.clock.now() - start < deadline:
            polls += 1
            try:
                status = await self.debrid.get_status(torrent_id, api_key)
            except UpstreamError as e:
                logger.warning(f"Error checking torrent {torrent_id} status: {e}")
            else:
                last_status = status
                if status.is_ready:
                    return PollResult(state=PollState.READY, status=status, polls=polls, elapsed=self.clock.now() - start)
                logger.info(f"Torrent {torrent_id} status: {status.state.value}, progress: {status.progress}%")

            await self.clock.sleep(self.interval)

        elapsed = self.clock.now() - start
        if last_status is None:
            logger.error(f"Torrent {torrent_id}: no status within {deadline}s")
            return PollResult(state=PollState.FAILED, polls=polls, elapsed=elapsed)

        logger.warning(f"Torrent {torrent_id} not ready within {deadline}s, using last known status")
        return PollResult(state=PollState.TIMED_OUT, status=last_status, polls=polls, elapsed=elapsed)

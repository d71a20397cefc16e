from loguru import logger
from typing import List, Optional

from app.core.errors import ConfigError, NotFoundError, UpstreamError
from app.models import Episode, PlaceholderStream, PlayableStream, StreamDescriptor, SubmissionResult, TorrentStatus
from app.services.base import CatalogSource, DebridClient
from app.services.cache import ResolutionCache
from app.services.poller import PollState, ReadinessPoller
from app.utils.parser import VideoParser


class StreamResolver:
    """
    Episode id in, stream descriptors out.

    This is the single place where failures turn into placeholder streams:
    resolve() always returns at least one descriptor and never raises.
    """

    def __init__(
        self,
        catalog: CatalogSource,
        debrid: DebridClient,
        cache: ResolutionCache,
        poller: ReadinessPoller,
        max_candidates: int = 3,
        placeholder_api_key: str = "test",
        group_prefix: str = "onepace",
    ):
        self.catalog = catalog
        self.debrid = debrid
        self.cache = cache
        self.poller = poller
        self.max_candidates = max_candidates
        self.placeholder_api_key = placeholder_api_key
        self.group_prefix = group_prefix

    async def resolve(self, episode_id: str, api_key: Optional[str]) -> List[StreamDescriptor]:
        logger.info(f"Processing stream request for episode {episode_id}")
        try:
            return await self._resolve(episode_id, api_key)
        except ConfigError:
            return [PlaceholderStream(
                label="TorBox Setup Required",
                title="⚠️ Please add your TorBox API key to the addon URL\n\nGet your API key from torbox.app → Settings → API",
            )]
        except NotFoundError as e:
            return [PlaceholderStream(label=e.label, title=e.detail)]
        except Exception as e:
            logger.exception(f"Stream resolution failed for episode {episode_id}")
            return [PlaceholderStream(label="Server Error", title=f"❌ Server Error: {e}")]

    async def _resolve(self, episode_id: str, api_key: Optional[str]) -> List[StreamDescriptor]:
        if not api_key or api_key == self.placeholder_api_key:
            raise ConfigError("TorBox API key missing")

        episode = await self.catalog.get_episode(episode_id)
        if episode is None:
            raise NotFoundError("Episode Not Found", f"❌ Episode {episode_id} not found in catalog")

        if not episode.magnet:
            raise NotFoundError(
                "No Torrent Available",
                f"⚠️ No torrent available for {episode.display_name}\n\nThis may be because:\n"
                "• Episode not yet released\n• GraphQL API unavailable\n• Using fallback data",
            )

        logger.info(f"Processing torrent for {episode.display_name}")
        try:
            submission = await self._submit(episode.magnet, api_key)
        except UpstreamError as e:
            logger.error(f"TorBox error for episode {episode_id}: {e}")
            return [self._error_placeholder(str(e))]
        if not submission.success:
            return [self._error_placeholder(submission.detail or "Failed to add torrent to TorBox")]

        torrent_id = submission.torrent_id
        logger.info(f"Torrent ID: {torrent_id}")

        result = await self.poller.wait_until_ready(torrent_id, api_key)
        if result.state == PollState.FAILED or result.status is None:
            return [self._processing_placeholder(episode, None)]

        streams = await self._collect_streams(episode, torrent_id, result.status, api_key)
        if not streams:
            return [self._processing_placeholder(episode, result.status)]
        return streams

    async def _submit(self, magnet: str, api_key: str) -> SubmissionResult:
        cached = self.cache.get(magnet)
        if cached is not None:
            logger.info("Using cached torrent data")
            return cached

        submission = await self.debrid.submit_magnet(magnet, api_key)
        if submission.success:
            self.cache.put(magnet, submission)
        return submission

    async def _collect_streams(self, episode: Episode, torrent_id, status: TorrentStatus, api_key: str) -> List[StreamDescriptor]:
        candidates = VideoParser.select_files(status.files, limit=self.max_candidates)
        logger.info(f"Found {len(status.files)} files in torrent, {len(candidates)} video candidates")

        streams: List[StreamDescriptor] = []
        for file in candidates:
            try:
                logger.info(f"Getting download link for file: {file.name}")
                url = await self.debrid.get_direct_link(torrent_id, file.id, api_key)
            except UpstreamError as e:
                logger.error(f"Error getting download link for file {file.name}: {e}")
                continue

            streams.append(PlayableStream(
                label=f"TorBox - {episode.arc_title}",
                title=f"📺 {file.name}\n💾 {VideoParser.format_size(file.size)}\n⚡ Quality: {VideoParser.get_quality(file.name)}",
                url=url,
                group_key=f"{self.group_prefix}-{episode.id}",
            ))
        return streams

    @staticmethod
    def _error_placeholder(message: str) -> PlaceholderStream:
        return PlaceholderStream(
            label="TorBox Error",
            title=f"❌ TorBox Error: {message}\n\nPlease check:\n• Your API key is valid\n"
                  "• Your TorBox account is active\n• The torrent is accessible",
        )

    @staticmethod
    def _processing_placeholder(episode: Episode, status: Optional[TorrentStatus]) -> PlaceholderStream:
        if status is None:
            title = "⏳ Processing torrent...\n\nTry again in a few minutes"
        else:
            title = (
                f"⏳ Processing torrent...\n📊 Status: {status.state.value}\n"
                f"📈 Progress: {status.progress:g}%\n\nTry again in a few minutes"
            )
        return PlaceholderStream(label=f"TorBox - {episode.arc_title}", title=title)

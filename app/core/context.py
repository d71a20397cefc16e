from dataclasses import dataclass
from typing import Optional

from app.core.clock import Clock, SystemClock
from app.core.config import Settings
from app.services.cache import ResolutionCache
from app.services.onepace import OnePaceCatalog
from app.services.poller import ReadinessPoller
from app.services.resolver import StreamResolver
from app.services.torbox import TorBoxClient


@dataclass
class AppContext:
    """Everything a request needs, built once by whoever starts the app."""
    settings: Settings
    catalog: OnePaceCatalog
    torbox: TorBoxClient
    cache: ResolutionCache
    resolver: StreamResolver

    async def aclose(self) -> None:
        await self.torbox.aclose()
        await self.catalog.aclose()


def build_context(settings: Settings, clock: Optional[Clock] = None) -> AppContext:
    clock = clock or SystemClock()
    catalog = OnePaceCatalog(
        graphql_url=settings.ONEPACE_GRAPHQL_URL,
        timeout=settings.CATALOG_TIMEOUT,
        ttl=settings.CATALOG_TTL_SECONDS,
    )
    torbox = TorBoxClient(base_url=settings.TORBOX_API_BASE, timeout=settings.TORBOX_TIMEOUT)
    cache = ResolutionCache(ttl=settings.CACHE_TTL_SECONDS, clock=clock.now)
    poller = ReadinessPoller(
        torbox,
        interval=settings.POLL_INTERVAL_SECONDS,
        deadline=settings.POLL_DEADLINE_SECONDS,
        clock=clock,
    )
    resolver = StreamResolver(
        catalog,
        torbox,
        cache,
        poller,
        max_candidates=settings.MAX_STREAM_CANDIDATES,
        placeholder_api_key=settings.PLACEHOLDER_API_KEY,
        group_prefix=settings.ID_PREFIX,
    )
    return AppContext(settings=settings, catalog=catalog, torbox=torbox, cache=cache, resolver=resolver)

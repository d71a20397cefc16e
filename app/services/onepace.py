import httpx
from loguru import logger
from pydantic import ValidationError
from typing import Any, Dict, List, Optional
from async_lru import alru_cache

from app.models import Episode
from app.services.base import CatalogSource

EPISODES_QUERY = """
query {
    episodes {
        id
        title
        arc {
            title
        }
        part
        manga
        released
        torrent
    }
}
"""

# Served when the GraphQL API is unreachable; torrents unknown until it is back
FALLBACK_EPISODES: List[Dict[str, Any]] = [
    {"id": 1, "title": "Romance Dawn 01", "arc": {"title": "Romance Dawn"}, "part": 1, "manga": "1-7", "released": "2014-03-16T00:00:00Z", "torrent": None},
    {"id": 2, "title": "Orange Town 01", "arc": {"title": "Orange Town"}, "part": 1, "manga": "8-21", "released": "2014-03-20T00:00:00Z", "torrent": None},
    {"id": 3, "title": "Syrup Village 01", "arc": {"title": "Syrup Village"}, "part": 1, "manga": "22-41", "released": "2014-04-01T00:00:00Z", "torrent": None},
    {"id": 4, "title": "Baratie 01", "arc": {"title": "Baratie"}, "part": 1, "manga": "42-68", "released": "2014-04-15T00:00:00Z", "torrent": None},
    {"id": 5, "title": "Arlong Park 01", "arc": {"title": "Arlong Park"}, "part": 1, "manga": "69-95", "released": "2014-05-01T00:00:00Z", "torrent": None},
]

class OnePaceCatalog(CatalogSource):
    """
    One Pace episode list from the onepace.net GraphQL API, with a static
    fallback. Results are cached for `ttl` seconds.
    """
    def __init__(self, graphql_url: str = "https://onepace.net/api/graphql", timeout: float = 10.0, ttl: float = 300.0, client: Optional[httpx.AsyncClient] = None):
        self.graphql_url = graphql_url
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self._fetch_cached = alru_cache(maxsize=1, ttl=ttl)(self._fetch_episodes)

    async def list_episodes(self) -> List[Episode]:
        return await self._fetch_cached()

    async def _fetch_episodes(self) -> List[Episode]:
        logger.info("Fetching One Pace data...")
        try:
            response = await self.client.post(
                self.graphql_url,
                json={"query": EPISODES_QUERY},
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            raw = (response.json().get("data") or {}).get("episodes") or []
            episodes = self._parse(raw)
            if episodes:
                logger.info(f"Fetched {len(episodes)} episodes from GraphQL API")
                return episodes
            logger.warning("GraphQL API returned no episodes")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            logger.warning(f"GraphQL API not available, using fallback data: {e}")

        logger.info("Using fallback episode data")
        return self._parse(FALLBACK_EPISODES)

    @staticmethod
    def _parse(raw: List[Dict[str, Any]]) -> List[Episode]:
        episodes = []
        for item in raw:
            try:
                episodes.append(Episode(
                    id=str(item["id"]),
                    title=item.get("title") or "",
                    arc_title=(item.get("arc") or {}).get("title") or "",
                    part=item.get("part"),
                    manga=item.get("manga"),
                    released=item.get("released"),
                    magnet=item.get("torrent") or None,
                ))
            except (KeyError, TypeError, ValidationError) as e:
                logger.warning(f"Skipping malformed episode {item!r}: {e}")
        return episodes

    async def aclose(self) -> None:
        await self.client.aclose()

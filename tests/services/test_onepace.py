import json

import httpx
import pytest

from app.services.onepace import FALLBACK_EPISODES, OnePaceCatalog

GRAPHQL_URL = "https://onepace.test/api/graphql"


def make_catalog(handler, ttl=300.0) -> OnePaceCatalog:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OnePaceCatalog(graphql_url=GRAPHQL_URL, ttl=ttl, client=client)


@pytest.mark.asyncio
async def test_list_episodes_from_graphql():
    seen = {}

    def handler(request):
        seen["query"] = json.loads(request.content)["query"]
        return httpx.Response(200, json={"data": {"episodes": [
            {
                "id": 12,
                "title": "Loguetown 01",
                "arc": {"title": "Loguetown"},
                "part": 1,
                "manga": "96-100",
                "released": "2015-01-10T00:00:00Z",
                "torrent": "magnet:?xt=urn:btih:LOGUE",
            },
            {"title": "missing id"},
        ]}})

    catalog = make_catalog(handler)
    episodes = await catalog.list_episodes()

    assert "episodes" in seen["query"]
    assert len(episodes) == 1
    episode = episodes[0]
    assert episode.id == "12"
    assert episode.arc_title == "Loguetown"
    assert episode.magnet == "magnet:?xt=urn:btih:LOGUE"
    assert episode.released.year == 2015


@pytest.mark.asyncio
async def test_falls_back_when_api_unavailable():
    catalog = make_catalog(lambda r: httpx.Response(503))

    episodes = await catalog.list_episodes()

    assert [e.id for e in episodes] == [str(e["id"]) for e in FALLBACK_EPISODES]
    assert all(e.magnet is None for e in episodes)


@pytest.mark.asyncio
async def test_falls_back_on_empty_answer():
    catalog = make_catalog(lambda r: httpx.Response(200, json={"data": {"episodes": []}}))

    episodes = await catalog.list_episodes()

    assert len(episodes) == len(FALLBACK_EPISODES)


@pytest.mark.asyncio
async def test_falls_back_on_connection_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    catalog = make_catalog(handler)

    assert len(await catalog.list_episodes()) == len(FALLBACK_EPISODES)


@pytest.mark.asyncio
async def test_episode_list_is_cached():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(503)

    catalog = make_catalog(handler)
    await catalog.list_episodes()
    await catalog.list_episodes()

    assert len(requests) == 1


@pytest.mark.asyncio
async def test_get_episode_matches_string_id():
    catalog = make_catalog(lambda r: httpx.Response(503))

    episode = await catalog.get_episode("3")

    assert episode is not None
    assert episode.arc_title == "Syrup Village"
    assert await catalog.get_episode("42") is None

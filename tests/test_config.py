import pytest

from app.core.config import Settings
from app.core.context import build_context


def test_settings_defaults():
    settings = Settings(_env_file=None)

    assert settings.TORBOX_API_BASE == "https://api.torbox.app/v1/api"
    assert settings.CACHE_TTL_SECONDS == 1800
    assert settings.POLL_INTERVAL_SECONDS == 3.0
    assert settings.MAX_STREAM_CANDIDATES == 3
    assert settings.PLACEHOLDER_API_KEY == "test"


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("POLL_DEADLINE_SECONDS", "60")
    monkeypatch.setenv("TORBOX_API_KEY", "from-env")

    settings = Settings(_env_file=None)

    assert settings.POLL_DEADLINE_SECONDS == 60
    assert settings.TORBOX_API_KEY == "from-env"


@pytest.mark.asyncio
async def test_build_context_wires_settings(clock):
    settings = Settings(
        _env_file=None,
        TORBOX_API_BASE="https://torbox.example/api/",
        CACHE_TTL_SECONDS=10,
        POLL_INTERVAL_SECONDS=1,
        POLL_DEADLINE_SECONDS=5,
        MAX_STREAM_CANDIDATES=1,
        PLACEHOLDER_API_KEY="changeme",
    )

    ctx = build_context(settings, clock=clock)
    try:
        assert ctx.torbox.base_url == "https://torbox.example/api"
        assert ctx.cache.ttl == 10
        assert ctx.resolver.poller.interval == 1
        assert ctx.resolver.poller.deadline == 5
        assert ctx.resolver.poller.clock is clock
        assert ctx.resolver.max_candidates == 1
        assert ctx.resolver.placeholder_api_key == "changeme"
        assert ctx.resolver.cache is ctx.cache
    finally:
        await ctx.aclose()

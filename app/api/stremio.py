import re
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from typing import Any, Dict, List, Optional
from loguru import logger

from app.core.context import AppContext
from app.models import Episode, PlaceholderStream

router = APIRouter()

CATALOG_ID = "onepace-torbox"
POSTER = "https://images.justwatch.com/poster/244890632/s718/one-piece.jpg"
BACKGROUND = "https://images.justwatch.com/backdrop/177834441/s1920/one-piece.jpg"
# manifest, catalog and meta only; stream answers track torrent progress
CACHE_CONTROL = "max-age=3600"


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def build_manifest(ctx: AppContext) -> Dict[str, Any]:
    return {
        "id": "com.onepace.torbox",
        "version": ctx.settings.VERSION,
        "name": "One Pace (TorBox)",
        "description": "One Pace episodes streamed through TorBox debrid service",
        "logo": "https://onepace.net/images/logo.png",
        "resources": ["catalog", "stream", "meta"],
        "types": ["series"],
        "catalogs": [
            {
                "type": "series",
                "id": CATALOG_ID,
                "name": "One Pace",
                "extra": [
                    {"name": "search", "isRequired": False},
                    {"name": "skip", "isRequired": False}
                ]
            }
        ],
        "idPrefixes": [ctx.settings.ID_PREFIX],
        "behaviorHints": {
            "adult": False,
            "p2p": False,
            "configurable": True,
            "configurationRequired": False
        }
    }


def extract_api_key(request: Request, ctx: AppContext) -> Optional[str]:
    """
    Query params first, then `torbox_api_key=...` inside the config path
    segment, then the server-wide key from the environment.
    """
    api_key = request.query_params.get("torbox_api_key") or request.query_params.get("api_key")

    config = request.path_params.get("config")
    if config and "torbox_api_key=" in config:
        match = re.search(r"torbox_api_key=([^&]+)", config)
        if match:
            api_key = match.group(1)

    return api_key or ctx.settings.TORBOX_API_KEY


def extract_episode_id(raw_id: str, prefix: str) -> str:
    """'onepace12:1:1' -> '12'; ids without the prefix pass through."""
    if raw_id.startswith(prefix):
        return raw_id[len(prefix):].split(":")[0]
    return raw_id


def format_meta(episode: Episode, prefix: str, detailed: bool = False) -> Dict[str, Any]:
    released = episode.released
    overview = f"Manga chapters: {episode.manga}" if episode.manga else ""
    description = episode.display_name
    if overview:
        description += f"\n{overview}"
    if detailed and released:
        description += f"\nReleased: {released.strftime('%Y-%m-%d')}"

    return {
        "id": f"{prefix}{episode.id}",
        "type": "series",
        "name": f"One Pace: {episode.arc_title}",
        "poster": POSTER,
        "background": BACKGROUND,
        "description": description,
        "releaseInfo": str(released.year) if released else "",
        "imdbRating": "8.9",
        "genres": ["Animation", "Adventure", "Comedy"],
        "videos": [{
            "id": f"{prefix}{episode.id}:1:1",
            "title": episode.display_name,
            "overview": overview,
            "episode": 1,
            "season": 1,
            "released": released.isoformat() if released else None,
            "thumbnail": POSTER
        }]
    }


# --- Manifest ---

@router.get("/manifest.json")
@router.get("/{config}/manifest.json")
async def manifest(response: Response, ctx: AppContext = Depends(get_context)):
    response.headers["Cache-Control"] = CACHE_CONTROL
    return build_manifest(ctx)


# --- Catalog ---

@router.get(f"/catalog/series/{CATALOG_ID}.json")
@router.get(f"/{{config}}/catalog/series/{CATALOG_ID}.json")
async def catalog(response: Response, ctx: AppContext = Depends(get_context)):
    try:
        episodes = await ctx.catalog.list_episodes()
        prefix = ctx.settings.ID_PREFIX
        metas: List[Dict[str, Any]] = [format_meta(ep, prefix) for ep in episodes if ep.released]
        response.headers["Cache-Control"] = CACHE_CONTROL
        return {"metas": metas}
    except Exception:
        logger.exception("Error in catalog route")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch catalog"})


# --- Meta ---

@router.get("/meta/series/{id}.json")
@router.get("/{config}/meta/series/{id}.json")
async def meta(id: str, response: Response, ctx: AppContext = Depends(get_context)):
    try:
        prefix = ctx.settings.ID_PREFIX
        episode = await ctx.catalog.get_episode(extract_episode_id(id, prefix))
        if not episode:
            return JSONResponse(status_code=404, content={"error": "Episode not found"})
        response.headers["Cache-Control"] = CACHE_CONTROL
        return {"meta": format_meta(episode, prefix, detailed=True)}
    except Exception:
        logger.exception("Error in meta route")
        return JSONResponse(status_code=500, content={"error": "Failed to fetch metadata"})


# --- Streams ---

@router.get("/stream/series/{id}.json")
@router.get("/{config}/stream/series/{id}.json")
async def stream(id: str, request: Request, ctx: AppContext = Depends(get_context)):
    try:
        episode_id = extract_episode_id(id, ctx.settings.ID_PREFIX)
        api_key = extract_api_key(request, ctx)
        streams = await ctx.resolver.resolve(episode_id, api_key)
        return {"streams": [s.to_stremio() for s in streams]}
    except Exception as e:
        logger.exception("Error in stream route")
        error_stream = PlaceholderStream(label="Server Error", title=f"❌ Server Error: {e}")
        return JSONResponse(status_code=500, content={"streams": [error_stream.to_stremio()]})

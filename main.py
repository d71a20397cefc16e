from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from app.core.config import settings
from app.core.context import AppContext, build_context
from app.core.logging import setup_logging
from app.api.stremio import router as stremio_router


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    ctx = context or build_context(settings)

    app = FastAPI(
        title=ctx.settings.PROJECT_NAME,
        version=ctx.settings.VERSION,
    )
    app.state.context = ctx

    # CORS (Stremio fetches addon resources cross-origin)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.on_event("startup")
    async def startup_event():
        setup_logging(ctx.settings.LOG_LEVEL)
        logger.info(f"Starting {ctx.settings.PROJECT_NAME} v{ctx.settings.VERSION}")

    @app.on_event("shutdown")
    async def shutdown_event():
        await ctx.aclose()

    @app.get("/")
    async def root(request: Request):
        base = str(request.base_url).rstrip("/")
        return {
            "name": ctx.settings.PROJECT_NAME,
            "version": ctx.settings.VERSION,
            "description": "Stremio addon for One Pace content via TorBox",
            "manifest": f"{base}/manifest.json",
            "status": "online",
            "endpoints": {
                "manifest": "/manifest.json",
                "catalog": "/catalog/series/onepace-torbox.json",
                "stream": "/stream/series/{id}.json",
                "meta": "/meta/series/{id}.json"
            }
        }

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "cache_size": len(ctx.cache)
        }

    @app.get("/debug/cache")
    async def debug_cache():
        if ctx.settings.ENVIRONMENT == "production":
            return JSONResponse(status_code=404, content={"error": "Not found"})
        ctx.cache.purge_expired()
        return {
            "cache_entries": ctx.cache.keys(),
            "cache_size": len(ctx.cache)
        }

    app.include_router(stremio_router)
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=settings.PORT)

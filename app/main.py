"""
Application entrypoint: logging, database pool and ranking refresh lifecycle.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.db.pool import db_pool
from app.features.songboard import songboard_router
from app.features.songboard.api.errors import register_error_handlers
from app.features.songboard.domain import RankedSong
from app.features.songboard.repository import SongRepository, VoteRepository
from app.features.songboard.services import (
    PollingChangeSource,
    RankingRefresher,
    RankingService,
    YouTubeSearchClient,
)
from app.infrastructure.observability.logging import get_logger, log_request, setup_logging
from app.middleware.request_context import RequestContextMiddleware
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


async def _log_ranking_update(ranking: list[RankedSong]) -> None:
    leader = ranking[0] if ranking else None
    logger.info(
        "Rankings refreshed",
        songs=len(ranking),
        leader_song_id=leader.song.id if leader else None,
        leader_votes=leader.vote_count if leader else 0,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown with proper resource management."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        await db_pool.initialize()
    except Exception as e:
        logger.error("Failed to initialize services", error=str(e))
        raise

    songs, votes = SongRepository(), VoteRepository()
    refresher = RankingRefresher(RankingService(songs, votes))
    refresher.add_listener(_log_ranking_update)
    poller = PollingChangeSource(songs, votes, refresher.notify)
    poller.start()

    app.state.ranking_refresher = refresher
    app.state.video_search = YouTubeSearchClient()
    logger.info("All services initialized successfully")

    yield

    # Shutdown sequence (reverse order)
    logger.info("Application shutting down")
    await poller.stop()
    await refresher.close()
    await app.state.video_search.close()
    await db_pool.close()
    logger.info("All services closed")


app = FastAPI(
    title="Choir Song Board",
    description="Song suggestions, one-vote-per-member voting and rankings",
    version="0.1.0",
    lifespan=lifespan,
)

register_error_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(songboard_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing."""
    start_time = time.time()
    response = await call_next(request)
    process_time = (time.time() - start_time) * 1000

    log_request(
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
        user_id=request.headers.get("x-user-id"),
    )
    return response


# Must wrap log_requests: request_id has to be bound before the timing log runs
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "X-User-Id"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(RequestContextMiddleware)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)

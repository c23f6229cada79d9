import logging
import random
import re
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from wordwise.application.cache.manager import LocalCacheManager
from wordwise.application.progress_service import ReviewProgressService
from wordwise.application.scheduler import reset_order, shuffle_order
from wordwise.application.sm2 import review_progress
from wordwise.consts import VERSION
from wordwise.domain.review.models import Grade
from wordwise.domain.review.ports import RepositoryError

# Setup logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("wordwise.server")


@asynccontextmanager
async def lifespan(app: FastAPI):
    from wordwise.application.config import resolve_config
    from wordwise.application.factory import get_cache_manager, get_review_repository

    # Startup
    logger.info(f"wordwise server v{VERSION} starting up...")
    config = resolve_config()
    cache = get_cache_manager(config)
    app.state.cache = cache
    app.state.service = ReviewProgressService(
        cache=cache,
        repository=get_review_repository(config),
        batch_size=config.fetch_batch_size,
    )
    yield
    # Shutdown
    logger.info("wordwise server shutting down...")
    await app.state.service.close()


app = FastAPI(
    title="wordwise server",
    description="Review scheduling and cache administration for vocabulary study.",
    version=VERSION,
    lifespan=lifespan,
)


def get_service(request: Request) -> ReviewProgressService:
    return request.app.state.service


def get_cache(request: Request) -> LocalCacheManager:
    return request.app.state.cache


class HealthResponse(BaseModel):
    status: str
    version: str
    uptime_seconds: float


start_time = time.time()


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Simple health check to verify server is reachable.
    """
    return HealthResponse(status="ok", version=VERSION, uptime_seconds=time.time() - start_time)


@app.get("/version")
async def get_version():
    return {"version": VERSION}


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class GradeRequest(BaseModel):
    grade: Grade
    reviewed_at: datetime | None = None


class QueueRequest(BaseModel):
    word_ids: list[str]
    now: datetime | None = None


class SessionRequest(BaseModel):
    word_ids: list[str]
    shuffle: bool = False
    seed: int | None = None


class SessionResponse(BaseModel):
    session_id: str
    word_ids: list[str]
    started_at: datetime
    shuffled: bool


class ShuffleRequest(BaseModel):
    count: int = Field(ge=0)
    seed: int | None = None


@app.post("/reviews/{word_id}/grade")
async def grade_word(
    word_id: str,
    req: GradeRequest,
    service: ReviewProgressService = Depends(get_service),
):
    """Grade a review and return the updated state."""
    try:
        state = await service.record_grade(word_id, req.grade, now=req.reviewed_at)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    except RepositoryError as e:
        logger.error(f"Saving review for '{word_id}' failed: {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e
    return state.to_record()


@app.post("/reviews/queue")
async def review_queue(
    req: QueueRequest,
    service: ReviewProgressService = Depends(get_service),
):
    """Words due for review, never-studied first."""
    now = req.now or datetime.now(timezone.utc)
    try:
        due = await service.review_queue(req.word_ids, now=now)
    except RepositoryError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    return {
        "queue": [{**s.to_record(), **review_progress(s, now)} for s in due],
        "total": len(req.word_ids),
    }


@app.post("/sessions", response_model=SessionResponse)
async def start_session(
    req: SessionRequest,
    service: ReviewProgressService = Depends(get_service),
):
    """Start a study session over the words currently due."""
    rng = random.Random(req.seed) if req.seed is not None else None
    try:
        session = await service.start_session(req.word_ids, shuffle=req.shuffle, rng=rng)
    except RepositoryError as e:
        raise HTTPException(status_code=502, detail=str(e)) from e
    logger.info(f"Started {session.session_id} with {len(session.word_ids)} words")
    return SessionResponse(
        session_id=session.session_id,
        word_ids=session.word_ids,
        started_at=session.started_at,
        shuffled=session.shuffled,
    )


@app.post("/shuffle")
async def shuffle(req: ShuffleRequest):
    rng = random.Random(req.seed) if req.seed is not None else None
    return {"order": shuffle_order(reset_order(req.count), rng)}


# ---------------------------------------------------------------------------
# Cache administration
# ---------------------------------------------------------------------------


@app.get("/cache/stats")
async def cache_stats(cache: LocalCacheManager = Depends(get_cache)):
    return cache.get_stats().to_dict()


@app.delete("/cache")
async def clear_cache(
    pattern: str | None = None,
    cache: LocalCacheManager = Depends(get_cache),
):
    """Clear the whole cache, or only the keys matching pattern."""
    if pattern is None:
        return {"removed": cache.clear()}
    try:
        return {"removed": cache.remove_pattern(pattern)}
    except re.error as e:
        raise HTTPException(status_code=422, detail=f"Invalid pattern: {e}") from e


@app.delete("/cache/{key:path}")
async def remove_cache_key(key: str, cache: LocalCacheManager = Depends(get_cache)):
    cache.remove(key)
    return {"removed": key}

from __future__ import annotations
from contextlib import asynccontextmanager
from typing import List, Optional
import asyncio
import logging
import os

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Internal imports
from jobboard.jobcrawl.db import JobDB
from jobboard.jobcrawl.errors import FatalSessionError, InvalidQueryError
from jobboard.jobcrawl.logging_config import setup_logging
from jobboard.jobcrawl.models import JobRecord, SearchQuery, SearchResult
from jobboard.jobcrawl.orchestrator import CrawlOrchestrator
from jobboard.jobcrawl.renderer import LazySession
from jobboard.jobcrawl.search import MAX_LIMIT, MAX_PAGE, SearchQueryEngine
from jobboard.jobcrawl.settings import load_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(debug=bool(os.getenv('JOBBOARD_DEBUG')))
    settings = load_settings()
    app.state.settings = settings
    app.state.db = JobDB(settings.db_path)
    # browser is launched on the first crawl and closed exactly once here
    app.state.browser = LazySession(settings)
    app.state.running = set()
    try:
        yield
    finally:
        await app.state.browser.close()


app = FastAPI(title="Job Board Crawler", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvalidQueryError)
async def invalid_query_handler(request: Request, exc: InvalidQueryError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.get("/crawl", response_model=List[JobRecord])
async def crawl_jobs(request: Request, jobType: Optional[str] = Query(None)):
    state = request.app.state
    types = [jobType] if jobType else None
    try:
        session = await state.browser.get()
    except FatalSessionError as e:
        logger.error(f"Browser unavailable: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    cancel = asyncio.Event()
    state.running.add(cancel)
    try:
        orch = CrawlOrchestrator(session, state.db, state.settings)
        return await orch.crawl_all(types, cancel)
    finally:
        state.running.discard(cancel)


@app.post("/crawl/cancel")
async def cancel_crawls(request: Request):
    running = list(request.app.state.running)
    for ev in running:
        ev.set()
    return {"cancelled": len(running)}


@app.get("/job", response_model=SearchResult)
def search_jobs(
    request: Request,
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    keyword: Optional[str] = None,
    location: Optional[str] = None,
    job_type: Optional[str] = None,
):
    query = SearchQuery(page=page, limit=limit, keyword=keyword, location=location, job_type=job_type)
    return SearchQueryEngine(request.app.state.db).search(query)


@app.get("/health")
def health(request: Request):
    return {"status": "ok", "jobs": request.app.state.db.count()}


if __name__ == "__main__":
    import uvicorn
    port = int(os.environ.get("PORT", "8000"))
    uvicorn.run(app, host="127.0.0.1", port=port)

from __future__ import annotations
import asyncio
import logging
import time
from typing import List, Optional, Sequence, TYPE_CHECKING

from .db import JobDB
from .detail_crawler import DetailCrawler
from .list_crawler import ListCrawler
from .logging_config import log_event
from .models import CrawlStats, DiscoveredLink, JobRecord
from .rules import RuleSet
from .settings import Settings
from .util.rate_limit import HostThrottle

if TYPE_CHECKING:  # pragma: no cover
    from .renderer import BrowserSession

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Runs list discovery then detail extraction for each job type in order.

    Detail pages of one job type are fetched by at most ``max_workers`` concurrent
    workers sharing the session; the returned list keeps discovery order. A failed
    link is logged and skipped, never aborting its job type or the run.
    """

    def __init__(self, session: 'BrowserSession', db: JobDB, settings: Settings, rules: Optional[RuleSet] = None, max_workers: Optional[int] = None):
        self.session = session
        self.db = db
        self.settings = settings
        self.max_workers = max(1, max_workers if max_workers is not None else settings.max_workers)
        throttle = HostThrottle(settings.polite_min, settings.polite_max)
        self.list_crawler = ListCrawler(session, settings, throttle)
        self.detail_crawler = DetailCrawler(session, settings, rules, throttle)
        self.stats = CrawlStats()

    async def _extract_one(self, item: DiscoveredLink, sem: asyncio.Semaphore, cancel: Optional[asyncio.Event]) -> Optional[JobRecord]:
        async with sem:
            if cancel is not None and cancel.is_set():
                return None
            try:
                record = await self.detail_crawler.extract(item.link, item.job_type)
                await asyncio.to_thread(self.db.upsert, record)
            except asyncio.CancelledError:
                raise
            except Exception as e:  # one bad link must not abort the run
                self.stats.failed += 1
                logger.warning(f"Detail failed {item.link}: {e}")
                logger.debug("Detail failure traceback", exc_info=True)
                log_event('detail_failed', link=item.link, job_type=item.job_type, message=str(e))
                return None
            self.stats.extracted += 1
            return record

    async def crawl_all(self, job_types: Optional[Sequence[str]] = None, cancel: Optional[asyncio.Event] = None) -> List[JobRecord]:
        types = list(self.settings.default_job_types) if job_types is None else list(job_types)
        self.stats = CrawlStats()
        t_start = time.perf_counter()
        results: List[JobRecord] = []
        sem = asyncio.Semaphore(self.max_workers)
        for jt in types:
            if cancel is not None and cancel.is_set():
                break
            links = await self.list_crawler.discover_links(jt, cancel)
            self.stats.discovered += len(links)
            records = await asyncio.gather(*(self._extract_one(item, sem, cancel) for item in links))
            kept = [r for r in records if r is not None]
            results.extend(kept)
            logger.info(f"job_type={jt} discovered={len(links)} extracted={len(kept)}")
            log_event('crawl_type_done', job_type=jt, discovered=len(links), extracted=len(kept))
        if cancel is not None and cancel.is_set():
            self.stats.cancelled = True
            logger.warning("Crawl cancelled; returning partial results")
            log_event('crawl_cancelled', **self.stats.as_dict())
        elapsed = round(time.perf_counter() - t_start, 3)
        logger.info(f"Crawl complete types={types} extracted={self.stats.extracted} failed={self.stats.failed} elapsed={elapsed}s")
        log_event('crawl_complete', job_types=types, elapsed_sec=elapsed, **self.stats.as_dict())
        return results


async def crawl(settings: Settings, db: JobDB, job_types: Optional[Sequence[str]] = None, cancel: Optional[asyncio.Event] = None, max_workers: Optional[int] = None, launcher=None):
    """Launch a session, crawl, and always close the session. Returns (records, stats)."""
    if launcher is None:
        from .renderer import BrowserSession
        launcher = BrowserSession.launch
    session = await launcher(settings)  # FatalSessionError propagates
    try:
        orch = CrawlOrchestrator(session, db, settings, max_workers=max_workers)
        records = await orch.crawl_all(job_types, cancel)
        return records, orch.stats
    finally:
        await session.close()

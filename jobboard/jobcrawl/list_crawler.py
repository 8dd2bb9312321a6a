from __future__ import annotations
import asyncio
import logging
from typing import List, Optional, TYPE_CHECKING

from .errors import NavigationError
from .logging_config import log_event
from .models import CrawlTask, DiscoveredLink
from .settings import Settings
from .util.rate_limit import HostThrottle

if TYPE_CHECKING:  # pragma: no cover
    from .renderer import BrowserSession

logger = logging.getLogger(__name__)


class ListCrawler:
    """Walks the listing pages of one job type until an empty page, a failed
    navigation or the page cap, whichever comes first."""

    def __init__(self, session: 'BrowserSession', settings: Settings, throttle: Optional[HostThrottle] = None):
        self.session = session
        self.settings = settings
        self.throttle = throttle or HostThrottle(settings.polite_min, settings.polite_max)

    async def _page_links(self, task: CrawlTask) -> List[str]:
        url = self.settings.listing_url(task.job_type, task.page_index)
        logger.info(f"Crawling list: {url}")
        await self.throttle.wait(url)
        async with self.session.open_page() as page:
            await page.goto(url, self.settings.list_timeout_ms)
            return await page.links(self.settings.list_selector)

    async def discover_links(self, job_type: str, cancel: Optional[asyncio.Event] = None) -> List[DiscoveredLink]:
        found: List[DiscoveredLink] = []
        page_index = 1
        while page_index <= self.settings.max_list_pages:
            if cancel is not None and cancel.is_set():
                logger.info(f"Discovery cancelled job_type={job_type} page={page_index}")
                break
            task = CrawlTask(job_type=job_type, page_index=page_index)
            try:
                links = await self._page_links(task)
            except NavigationError as e:
                # no retry: the rest of this job type is skipped for this run
                logger.warning(f"Stopping job_type={job_type} at page {page_index}: {e}")
                log_event('list_stop', job_type=job_type, page=page_index, reason='navigation', message=str(e))
                break
            except Exception as e:  # a broken listing page ends this job type only
                logger.warning(f"Listing page failed job_type={job_type} page={page_index}: {e}")
                logger.debug("Listing failure traceback", exc_info=True)
                log_event('list_stop', job_type=job_type, page=page_index, reason='error', message=str(e))
                break
            if not links:
                log_event('list_stop', job_type=job_type, page=page_index, reason='empty')
                break
            found.extend(DiscoveredLink(link=link, job_type=job_type) for link in links)
            log_event('list_page', job_type=job_type, page=page_index, links=len(links))
            page_index += 1
        else:
            logger.warning(f"Page cap {self.settings.max_list_pages} reached for job_type={job_type}")
            log_event('list_stop', job_type=job_type, page=page_index - 1, reason='page_cap')
        logger.info(f"Discovered {len(found)} links for job_type={job_type}")
        return found

from __future__ import annotations
import logging
from typing import Optional, TYPE_CHECKING

from .models import JobRecord
from .rules import RuleSet, load_rules
from .settings import Settings
from .util.rate_limit import HostThrottle

if TYPE_CHECKING:  # pragma: no cover
    from .renderer import BrowserSession

logger = logging.getLogger(__name__)


class DetailCrawler:
    def __init__(self, session: 'BrowserSession', settings: Settings, rules: Optional[RuleSet] = None, throttle: Optional[HostThrottle] = None):
        self.session = session
        self.settings = settings
        self.rules = rules or load_rules()
        self.throttle = throttle or HostThrottle(settings.polite_min, settings.polite_max)

    async def extract(self, link: str, job_type: str) -> JobRecord:
        """Load one detail page and map it to a record. Raises NavigationError."""
        logger.info(f"Crawling detail: {link}")
        await self.throttle.wait(link)
        async with self.session.open_page() as page:
            await page.goto(link, self.settings.detail_timeout_ms)
            html = await page.content()
            page_url = page.url or link
        fields = self.rules.extract(html, page_url)
        return JobRecord(link=link, job_type=job_type, **fields)

"""Global pytest fixtures.
 - Sets env vars to disable logging side effects and politeness delays.
 - Provides an in-memory fake browser session standing in for Playwright.
 - Provides a sample detail page matching the default extraction rules.
"""
from __future__ import annotations
import asyncio
import dataclasses
import os
from contextlib import asynccontextmanager
import pytest
import sys, pathlib
# Add project root to sys.path for tests
ROOT = pathlib.Path(__file__).resolve().parents[2]  # points to project root
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from jobboard.jobcrawl.errors import NavigationError


@pytest.fixture(autouse=True, scope="session")
def test_env_setup():
    os.environ.setdefault('JOBBOARD_DISABLE_FILE_LOGS', '1')
    os.environ.setdefault('JOBBOARD_DISABLE_EVENTS', '1')
    os.environ.setdefault('JOBBOARD_POLITE_MIN', '0')
    os.environ.setdefault('JOBBOARD_POLITE_MAX', '0')
    yield


BASE_URL = 'https://jobs.test/tuyen-dung'


@pytest.fixture
def settings(tmp_path):
    from jobboard.jobcrawl.settings import load_settings
    return dataclasses.replace(
        load_settings(),
        base_url=BASE_URL,
        polite_min=0.0,
        polite_max=0.0,
        max_workers=1,
        default_job_types=('1', '2'),
        db_path=tmp_path / 'jobs.sqlite',
    )


@pytest.fixture
def db(settings):
    from jobboard.jobcrawl.db import JobDB
    return JobDB(settings.db_path)


def listing_url(job_type: str, page: int) -> str:
    return f"{BASE_URL}?job_type={job_type}&page={page}"


class FakePage:
    def __init__(self, site: 'FakeSession'):
        self.site = site
        self.url = ''

    async def goto(self, url, timeout_ms):
        self.site.requests.append(url)
        await asyncio.sleep(self.site.delays.get(url, 0))
        if url in self.site.fail:
            raise NavigationError(url, 'timeout')
        self.url = url

    async def links(self, selector):
        listing = self.site.listing
        if callable(listing):
            return list(listing(self.url))
        return list(listing.get(self.url, []))

    async def content(self):
        return self.site.details.get(self.url, '<html><body></body></html>')


class FakeSession:
    """Records navigations; `listing` maps listing URL -> links (or is a callable)."""

    def __init__(self, listing=None, details=None, fail=(), delays=None):
        self.listing = listing if listing is not None else {}
        self.details = details or {}
        self.fail = set(fail)
        self.delays = delays or {}
        self.requests = []
        self.open_pages = 0
        self.max_open = 0
        self.pages_closed = 0
        self.close_calls = 0

    @asynccontextmanager
    async def open_page(self):
        self.open_pages += 1
        self.max_open = max(self.max_open, self.open_pages)
        try:
            yield FakePage(self)
        finally:
            self.open_pages -= 1
            self.pages_closed += 1

    async def close(self):
        self.close_calls += 1


@pytest.fixture
def fake_session():
    return FakeSession


@pytest.fixture
def listing_url_for():
    return listing_url


DETAIL_HTML = """
<html><body>
<h1 class="js-job job-title">  Backend Engineer (Python)  </h1>
<div class="company-name"><h2> Backend Solutions JSC </h2></div>
<img class="company-logo" src="/static/logos/acme.png">
<div class="attr-item-head">
  <div class="attr-item">
    <div class="value"><span>15 - 25 triệu</span></div>
    <div class="text"><i></i><span>Mức lương</span></div>
  </div>
  <div class="attr-item">
    <div class="value"><span> Hà Nội </span></div>
    <div class="text"><i></i><span>Địa điểm</span></div>
  </div>
</div>
<div class="attr-item"><div class="name-attr">Kinh nghiệm:</div><div class="text-attr"> 2 năm </div></div>
<div class="attr-item"><div class="name-attr">Cấp bậc:</div><div class="text-attr">Nhân viên</div></div>
<div class="attr-item"><div class="name-attr">Hình thức làm việc:</div><div class="text-attr">Toàn thời gian</div></div>
<div class="attr-item"><div class="name-attr">Hạn nộp hồ sơ:</div><div class="text-attr">30/11/2026</div></div>
<div class="attr-item"><div class="name-attr">Ca làm việc:</div><div class="text-attr">Hành chính</div></div>
<div class="attr-item"><div class="name-attr">Trình độ:</div><div class="text-attr">Đại học</div></div>
<div class="attr-item"><div class="name-attr">Độ tuổi:</div><div class="text-attr">22 - 35</div></div>
<div class="attr-item"><div class="name-attr">Số lượng tuyển:</div><div class="text-attr">3</div></div>
<div class="attr-item"><div class="name-attr">Ngành nghề:</div><div class="text-attr">IT phần mềm</div></div>
<div class="content-group">
  <h2 class="content-group__title">Mô tả công việc</h2>
  <div class="content-group__content"> <p>Build APIs</p> </div>
</div>
<div class="content-group">
  <h2 class="content-group__title">Yêu cầu ứng viên</h2>
  <div class="content-group__content"><ul><li>Python</li></ul></div>
</div>
{benefit}
<div class="company-info-item">
  <div class="company-entity-item"><span>Quy mô:</span> <span class="text-bold">100-499 nhân viên</span></div>
  <div class="company-entity-item"><span>Trụ sở:</span> <span class="text-bold">Cầu Giấy, Hà Nội</span></div>
</div>
<div class="user-contact-sidebar"><div class="name">Liên hệ: <span class="text-bold">Nguyễn Văn A</span></div></div>
<span class="show-phone" data-phone="0901234567">Hiện số</span>
</body></html>
"""

BENEFIT_HTML = """
<div class="content-group">
  <h2 class="content-group__title">Quyền lợi được hưởng</h2>
  <div class="content-group__content"><p>Lương tháng 13</p></div>
</div>
"""


@pytest.fixture
def detail_html():
    def _make(benefit: bool = True) -> str:
        return DETAIL_HTML.replace('{benefit}', BENEFIT_HTML if benefit else '')
    return _make

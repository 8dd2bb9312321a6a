"""Per-host politeness throttle for browser navigations.

Usage:
    throttle = HostThrottle(min_interval=0.5, max_interval=1.5)
    await throttle.wait(url)
    await page.goto(url)

Design goals:
 - Enforces a minimum interval between navigations to the same host, even when
   several workers share one browser session
 - Adds random jitter inside [min_interval, max_interval] to avoid lockstep patterns
 - Hosts are throttled independently
"""
from __future__ import annotations
import asyncio
import random
import time
from typing import Dict
from urllib.parse import urlparse


def _host(url: str) -> str:
    try:
        return urlparse(url).netloc.lower()
    except ValueError:
        return ""


class HostThrottle:
    def __init__(self, min_interval: float = 0.5, max_interval: float | None = None):
        self.min_interval = max(0.0, min_interval)
        self.max_interval = max(self.min_interval, max_interval if max_interval is not None else self.min_interval)
        self._last_call: Dict[str, float] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def _interval(self) -> float:
        if self.max_interval <= self.min_interval:
            return self.min_interval
        return random.uniform(self.min_interval, self.max_interval)

    async def wait(self, url: str) -> float:
        """Sleep until the host of ``url`` may be hit again; returns seconds slept."""
        host = _host(url)
        lock = self._locks.setdefault(host, asyncio.Lock())
        async with lock:
            slept = 0.0
            last = self._last_call.get(host)
            if last is not None:
                remaining = self._interval() - (time.monotonic() - last)
                if remaining > 0:
                    await asyncio.sleep(remaining)
                    slept = remaining
            self._last_call[host] = time.monotonic()
            return slept


__all__ = ['HostThrottle']

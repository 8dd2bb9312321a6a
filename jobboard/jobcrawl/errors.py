from __future__ import annotations


class CrawlError(Exception):
    """Base crawler error."""


class NavigationError(CrawlError):
    """A page could not be loaded (timeout or network failure)."""
    def __init__(self, url: str, reason: str = ''):
        super().__init__(f"navigation to {url} failed: {reason}" if reason else f"navigation to {url} failed")
        self.url = url
        self.reason = reason


class FatalSessionError(CrawlError):
    """The browser session could not be launched; nothing can be crawled."""


class InvalidQueryError(ValueError):
    pass


__all__ = ['CrawlError', 'NavigationError', 'FatalSessionError', 'InvalidQueryError']

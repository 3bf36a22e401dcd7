"""Markup loading and querying for transcript pages.

The core never walks markup trees itself. It asks a ``MarkupFetcher`` for a
``MarkupDocument`` and queries it with CSS selectors; everything below that
line is BeautifulSoup's job.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional, Protocol

from bs4 import BeautifulSoup
from bs4.element import Tag

from . import downloader
from .exceptions import FetchError
from .outcome import Failure, Outcome, Success

logger = logging.getLogger(__name__)

HTML_PARSER = "html.parser"


class MarkupDocument:
    """A loaded HTML page that can be queried by CSS selector."""

    def __init__(self, html: str, url: Optional[str] = None) -> None:
        self.url = url
        self._soup = BeautifulSoup(html, HTML_PARSER)

    def select(self, selector: str) -> List[Tag]:
        return list(self._soup.select(selector))

    def inner_html(self, selector: str) -> Optional[str]:
        """Return the inner HTML of the first element matching ``selector``, if any."""
        element = self._soup.select_one(selector)
        if element is None:
            return None
        return element.decode_contents()


class MarkupFetcher(Protocol):
    """Capability to load a page as a queryable markup document."""

    async def fetch_markup(self, url: str) -> Outcome[MarkupDocument]: ...


class PageFetcher:
    """Default ``MarkupFetcher`` backed by the retrying HTTP session in ``downloader``.

    Blocking HTTP and parsing run in a worker thread so the event loop stays free.
    """

    def __init__(self, user_agent: str, timeout: int) -> None:
        self.user_agent = user_agent
        self.timeout = timeout

    def _load(self, url: str) -> MarkupDocument:
        html = downloader.fetch_text(url, self.user_agent, self.timeout)
        return MarkupDocument(html, url=url)

    async def fetch_markup(self, url: str) -> Outcome[MarkupDocument]:
        try:
            document = await asyncio.to_thread(self._load, url)
        except FetchError as exc:
            logger.warning(f"Failed to fetch {url}: {exc}")
            return Failure.from_exception(f"fetch_markup error: {url}", exc)
        return Success(document)


__all__ = ["HTML_PARSER", "MarkupDocument", "MarkupFetcher", "PageFetcher"]

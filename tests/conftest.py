"""Shared fixtures and test utilities for transcript_scraper tests.

This module contains:
- Test constants
- Helper functions for creating test objects and HTML pages
- A fake markup fetcher that never touches the network

Test modules load it explicitly (see the ``parent_conftest`` block at the top of
each test module) so helpers work under both pytest and plain unittest.
"""

import argparse
from typing import Dict, Iterable, List, Optional, Tuple, Union

from transcript_scraper import config
from transcript_scraper.exceptions import FetchError
from transcript_scraper.markup import MarkupDocument
from transcript_scraper.outcome import Failure, Outcome, Success

# Test constants
TEST_BASE_URL = "https://transcripts.example.com"
TEST_FORUM_ID = 177
TEST_EPISODE_TITLE = "1x05 - The Pilot Episode"
TEST_EPISODE_TITLE_2 = "1x06 - The Return"
TEST_NON_EPISODE_TITLE = "Season 1 Specials"
TEST_TOPIC_URL = f"{TEST_BASE_URL}/viewtopic.php?t=101"
TEST_TOPIC_URL_2 = f"{TEST_BASE_URL}/viewtopic.php?t=102"
TEST_USER_AGENT = "transcript-scraper-tests/1.0"
PDF_MAGIC = b"%PDF"


# Test helper functions
def create_test_config(**overrides):
    """Create a Config with test defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        config.Config with test defaults
    """
    defaults = {
        "base_url": TEST_BASE_URL,
        "forum_id": TEST_FORUM_ID,
        "pages": 1,
        "output_dir": "pdf",
        "user_agent": TEST_USER_AGENT,
        "timeout": 5,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return config.Config(**defaults)


def create_test_args(**overrides):
    """Create test argparse.Namespace mirroring parsed CLI defaults.

    Args:
        **overrides: Fields to override from defaults

    Returns:
        argparse.Namespace object with test defaults
    """
    defaults = {
        "config": None,
        "base_url": TEST_BASE_URL,
        "forum_id": TEST_FORUM_ID,
        "pages": 1,
        "page_size": config.DEFAULT_PAGE_SIZE,
        "max_episodes": None,
        "output_dir": None,
        "user_agent": TEST_USER_AGENT,
        "timeout": 5,
        "max_concurrency": None,
        "keep_unclassified": False,
        "content_selector": config.DEFAULT_CONTENT_SELECTOR,
        "topic_selector": config.DEFAULT_TOPIC_SELECTOR,
        "version": False,
        "log_file": None,
        "log_level": "INFO",
    }
    defaults.update(overrides)
    return argparse.Namespace(**defaults)


def build_listing_html(topics: Iterable[Tuple[str, str]]) -> str:
    """Build a forum listing page.

    Args:
        topics: ``(title, href)`` pairs; hrefs are relative like ``./viewtopic.php?t=1``
    """
    items = "\n".join(
        f'<li class="row"><dl><dt><a href="{href}" class="topictitle">{title}</a></dt></dl></li>'
        for title, href in topics
    )
    return (
        "<html><body><div class='forumbg'>"
        f"<ul class='topiclist topics'>{items}</ul>"
        "</div></body></html>"
    )


def build_transcript_html(paragraphs: Iterable[str], content_class: str = "content") -> str:
    """Build a topic page whose content region holds ``paragraphs`` separated by <br>."""
    body = "<br>\n".join(paragraphs)
    return (
        "<html><body>"
        "<div class='postbody'><h3>Re: Transcript</h3>"
        f"<div class='{content_class}'>{body}</div>"
        "</div></body></html>"
    )


def listing_url(page: int, page_size: int = config.DEFAULT_PAGE_SIZE) -> str:
    return f"{TEST_BASE_URL}/viewforum.php?f={TEST_FORUM_ID}&start={page * page_size}"


class FakeFetcher:
    """In-memory ``MarkupFetcher``.

    ``pages`` maps URLs to HTML strings or to exceptions. Exceptions of type
    ``FetchError`` come back as a ``Failure``; any other exception is raised
    from ``fetch_markup`` to simulate a misbehaving fetcher. Unknown URLs fail
    like a 404.
    """

    def __init__(self, pages: Optional[Dict[str, Union[str, Exception]]] = None) -> None:
        self.pages: Dict[str, Union[str, Exception]] = dict(pages or {})
        self.requested: List[str] = []

    async def fetch_markup(self, url: str) -> Outcome[MarkupDocument]:
        self.requested.append(url)
        page = self.pages.get(url)
        if page is None:
            page = FetchError("HTTP 404", url=url)
        if isinstance(page, FetchError):
            return Failure.from_exception(f"fetch_markup error: {url}", page)
        if isinstance(page, Exception):
            raise page
        return Success(MarkupDocument(page, url=url))

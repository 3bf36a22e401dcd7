"""Episode listing: turn forum listing pages into episode references."""

from __future__ import annotations

import logging
from typing import List

from . import config, models
from .markup import MarkupFetcher
from .outcome import Failure, Outcome, Success

logger = logging.getLogger(__name__)


def resolve_topic_url(base_url: str, href: str) -> str:
    """Build an absolute topic URL from a listing anchor ``href``.

    Listing anchors are relative to the forum root (``./viewtopic.php?t=123``).
    """
    if href.startswith(("http://", "https://")):
        return href
    if href.startswith("."):
        href = href[1:]
    if not href.startswith("/"):
        href = f"/{href}"
    return f"{base_url.rstrip('/')}{href}"


async def get_episode_list_on_page(
    fetcher: MarkupFetcher, cfg: config.Config, page: int
) -> Outcome[List[models.EpisodeRef]]:
    """Fetch one listing page and return the episode references on it."""
    url = cfg.listing_url(page)
    result = await fetcher.fetch_markup(url)
    if isinstance(result, Failure):
        return result.with_context(f"get_episode_list_on_page error: page {page}")

    episodes: List[models.EpisodeRef] = []
    for anchor in result.value.select(cfg.topic_selector):
        href = anchor.get("href")
        if not href:
            logger.debug("Skipping listing anchor without href on page %s", page)
            continue
        title = anchor.get_text(strip=True)
        episodes.append(
            models.EpisodeRef(title=title, url=resolve_topic_url(cfg.base_url, str(href)))
        )

    logger.debug("Listing page %s yielded %s topics", page, len(episodes))
    return Success(episodes)


async def get_episode_list(
    fetcher: MarkupFetcher, cfg: config.Config
) -> Outcome[List[models.EpisodeRef]]:
    """Walk ``cfg.pages`` listing pages in order and concatenate their episodes.

    The first failing page aborts the walk.
    """
    episodes: List[models.EpisodeRef] = []
    for page in range(cfg.pages):
        result = await get_episode_list_on_page(fetcher, cfg, page)
        if isinstance(result, Failure):
            return result.with_context("get_episode_list error")
        episodes.extend(result.value)

    total = len(episodes)
    if cfg.max_episodes is not None:
        episodes = episodes[: cfg.max_episodes]
    logger.info(f"Episodes to process: {len(episodes)} of {total}")
    return Success(episodes)

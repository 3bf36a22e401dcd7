"""Pipeline wiring: locate episodes, classify their transcripts, render documents."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from typing import List, Optional, Tuple

from . import batch, classifier, config, filesystem, locator, models, renderer
from .markup import MarkupFetcher, PageFetcher
from .outcome import Failure

logger = logging.getLogger(__name__)


def apply_log_level(level: str, log_file: Optional[str] = None) -> None:
    """Apply logging level to root logger and configure handlers.

    Args:
        level: Log level string (e.g., 'DEBUG', 'INFO', 'WARNING')
        log_file: Optional path to log file. If provided, logs will be written to both
                  console and file.

    Raises:
        ValueError: If log level is invalid
        OSError: If log file cannot be created or written to
    """
    numeric_level = getattr(logging, str(level).upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    root_logger = logging.getLogger()
    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    if not root_logger.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(console_handler)
        root_logger.setLevel(numeric_level)
    else:
        root_logger.setLevel(numeric_level)
        for handler in root_logger.handlers:
            handler.setLevel(numeric_level)

    if log_file:
        file_handler_exists = any(
            isinstance(h, logging.FileHandler) and h.baseFilename == os.path.abspath(log_file)
            for h in root_logger.handlers
        )
        if not file_handler_exists:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(logging.Formatter(log_format))
            root_logger.addHandler(file_handler)
            logger.info(f"Logging to file: {log_file}")

    logger.setLevel(numeric_level)


def run_pipeline(
    cfg: config.Config, *, fetcher: Optional[MarkupFetcher] = None
) -> Tuple[int, str]:
    """Execute the transcript-to-PDF pipeline.

    This is the primary entry point for programmatic use of transcript_scraper.

    The pipeline executes the following stages:

    1. Walk ``cfg.pages`` listing pages and collect episode references
    2. Fetch and classify every episode's transcript concurrently
    3. Render every classified script to ``<output_dir>/season<S>/<E>.<name>.pdf``
       concurrently

    Episodes that fail in one stage are reported and left out of the next;
    they never abort the run.

    Args:
        cfg: Configuration object. See `Config` for available options.
        fetcher: Markup fetcher to use. Defaults to a `PageFetcher` built from
            ``cfg.user_agent`` and ``cfg.timeout``.

    Returns:
        Tuple[int, str]: A tuple containing:

            - count (int): Number of documents written
            - summary (str): Human-readable summary message describing the run

    Raises:
        ValueError: If the output directory path is invalid
        OSError: If the output directory cannot be created

    Example:
        >>> from transcript_scraper import Config, run_pipeline
        >>>
        >>> cfg = Config(forum_id=177, pages=2, output_dir="./pdf")
        >>> count, summary = run_pipeline(cfg)
        >>> print(summary)
    """
    if fetcher is None:
        fetcher = PageFetcher(cfg.user_agent, cfg.timeout)
    return asyncio.run(run_pipeline_async(cfg, fetcher))


async def run_pipeline_async(cfg: config.Config, fetcher: MarkupFetcher) -> Tuple[int, str]:
    """Async form of `run_pipeline` for callers that already own an event loop."""
    located = await locator.get_episode_list(fetcher, cfg)
    if isinstance(located, Failure):
        logger.error(f"Failed to locate episodes:\n{located.trace}\n  cause: {located.cause}")
        return 0, f"No documents written: failed to locate episodes ({located.cause})"

    episodes = located.value
    if not episodes:
        logger.info("No episodes found")
        return 0, "No episodes found"

    scripts = await _classify_episodes(cfg, fetcher, episodes)
    _log_report("Classification", scripts)

    try:
        output_dir = filesystem.validate_and_normalize_output_dir(cfg.output_dir or "")
        await asyncio.to_thread(filesystem.ensure_directory, output_dir)
    except (ValueError, OSError) as exc:
        logger.error(f"Failed to prepare output directory {cfg.output_dir!r}: {exc}")
        return 0, f"No documents written: failed to prepare output directory ({exc})"

    documents = await _render_scripts(cfg, output_dir, scripts)
    _log_report("Rendering", documents)

    return documents.success_count, _generate_pipeline_summary(
        episodes, scripts, documents, output_dir
    )


async def _classify_episodes(
    cfg: config.Config, fetcher: MarkupFetcher, episodes: List[models.EpisodeRef]
) -> batch.BatchReport[models.Script]:
    async def _fetch(title: str, episode: models.EpisodeRef):
        return await classifier.fetch_script(
            episode,
            fetcher,
            content_selector=cfg.content_selector,
            keep_unclassified=cfg.keep_unclassified,
        )

    return await batch.run_batch(
        [(episode.title, episode) for episode in episodes],
        _fetch,
        max_concurrency=cfg.max_concurrency,
        description="Fetching scripts",
    )


async def _render_scripts(
    cfg: config.Config, output_dir: str, scripts: batch.BatchReport[models.Script]
) -> batch.BatchReport[str]:
    async def _render(title: str, script: models.Script):
        return await renderer.render(title, script, output_dir)

    return await batch.run_batch(
        [(item.title, item.value) for item in scripts.succeeded],
        _render,
        max_concurrency=cfg.max_concurrency,
        description="Rendering documents",
    )


def _log_report(stage: str, report: batch.BatchReport) -> None:
    if report.has_failures:
        logger.warning(f"{stage} finished with failures:\n{report.format_summary()}")
    else:
        logger.info(f"{stage} finished:\n{report.format_summary()}")


def _generate_pipeline_summary(
    episodes: List[models.EpisodeRef],
    scripts: batch.BatchReport[models.Script],
    documents: batch.BatchReport[str],
    output_dir: str,
) -> str:
    """Build the one-paragraph run summary.

    Example output:
        Wrote 8 documents from 10 episodes
          - Scripts ready: 9/10
          - Documents written: 8/9
          - Output directory: /home/user/pdf
    """
    lines = [
        f"Wrote {documents.success_count} documents from {len(episodes)} episodes",
        f"  - Scripts ready: {scripts.success_count}/{scripts.total}",
        f"  - Documents written: {documents.success_count}/{documents.total}",
        f"  - Output directory: {output_dir}",
    ]
    failed_titles = [item.title for item in scripts.failed + documents.failed]
    if failed_titles:
        lines.append(f"  - Failed: {', '.join(failed_titles)}")
    return "\n".join(lines)


__all__ = ["apply_log_level", "run_pipeline", "run_pipeline_async"]

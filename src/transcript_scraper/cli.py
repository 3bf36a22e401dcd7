"""Command-line interface helpers for transcript_scraper."""

from __future__ import annotations

import argparse
import logging
from contextlib import contextmanager
from typing import (
    Any,
    Callable,
    cast,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    TYPE_CHECKING,
)
from urllib.parse import urlparse

from pydantic import ValidationError

from . import __version__, config, filesystem, progress, workflow

if TYPE_CHECKING:  # pragma: no cover - typing only
    import tqdm

_LOGGER = logging.getLogger(__name__)

# Progress bar constants
TQDM_NCOLS = 80
TQDM_MIN_INTERVAL = 0.5
TQDM_MIN_ITERS = 1


class _TqdmTracker:
    """Advance a tqdm bar per settled item and keep ok/failed counts in its postfix."""

    def __init__(self, bar: "tqdm.tqdm") -> None:
        self._bar = bar
        self._ok = 0
        self._failed = 0

    def settled(self, title: str, ok: bool) -> None:
        if ok:
            self._ok += 1
        else:
            self._failed += 1
        self._bar.set_postfix(ok=self._ok, failed=self._failed, refresh=False)
        self._bar.update(1)


@contextmanager
def _tqdm_tracker(total: int, description: str) -> Iterator[_TqdmTracker]:
    """Create a tqdm bar for one batch."""
    from tqdm import tqdm

    kwargs: Dict[str, Any] = {
        "desc": description,
        "total": total,
        "unit": "episode",
        "miniters": TQDM_MIN_ITERS,
        "mininterval": TQDM_MIN_INTERVAL,
        "ncols": TQDM_NCOLS,
        "leave": True,
    }
    with tqdm(**kwargs) as bar:
        yield _TqdmTracker(bar)


def _validate_base_url(base_url: str, errors: List[str]) -> None:
    parsed = urlparse(base_url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append(f"--base-url must be an http(s) URL, got: {base_url}")


def validate_args(args: argparse.Namespace) -> None:
    """Validate parsed CLI arguments and raise ValueError when invalid."""
    errors: List[str] = []

    _validate_base_url((args.base_url or "").strip(), errors)

    if args.forum_id <= 0:
        errors.append(f"--forum-id must be positive, got: {args.forum_id}")

    if args.pages < config.MIN_PAGES:
        errors.append(f"--pages must be at least {config.MIN_PAGES}, got: {args.pages}")

    if args.page_size <= 0:
        errors.append(f"--page-size must be positive, got: {args.page_size}")

    if args.max_episodes is not None and args.max_episodes <= 0:
        errors.append(f"--max-episodes must be positive, got: {args.max_episodes}")

    if args.timeout < config.MIN_TIMEOUT_SECONDS:
        errors.append(f"--timeout must be positive, got: {args.timeout}")

    if args.max_concurrency is not None and args.max_concurrency < config.MIN_CONCURRENCY:
        errors.append(f"--max-concurrency must be at least 1, got: {args.max_concurrency}")

    for flag, selector in (
        ("--content-selector", args.content_selector),
        ("--topic-selector", args.topic_selector),
    ):
        if not (selector or "").strip():
            errors.append(f"{flag} must not be empty")

    if args.log_level not in config.VALID_LOG_LEVELS:
        errors.append(f"--log-level must be one of {', '.join(config.VALID_LOG_LEVELS)}")

    if args.output_dir:
        try:
            filesystem.validate_and_normalize_output_dir(args.output_dir)
        except ValueError as exc:
            errors.append(str(exc))

    if errors:
        raise ValueError("Invalid input parameters:\n  " + "\n  ".join(errors))


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add common arguments to parser.

    Args:
        parser: Argument parser to add arguments to
    """
    parser.add_argument("--config", default=None, help="Path to configuration file (JSON or YAML)")
    parser.add_argument(
        "--base-url",
        default=config.DEFAULT_BASE_URL,
        help="Root URL of the transcript site",
    )
    parser.add_argument(
        "--forum-id", type=int, default=config.DEFAULT_FORUM_ID, help="Listing forum id"
    )
    parser.add_argument(
        "--pages", type=int, default=config.DEFAULT_PAGES, help="Number of listing pages to walk"
    )
    parser.add_argument(
        "--page-size",
        type=int,
        default=config.DEFAULT_PAGE_SIZE,
        help="Topics per listing page",
    )
    parser.add_argument(
        "--max-episodes", type=int, default=None, help="Maximum number of episodes to process"
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Base directory for generated PDFs (default: $OUTPUT_DIR or ./pdf)",
    )
    parser.add_argument("--user-agent", default=config.DEFAULT_USER_AGENT, help="User-Agent header")
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.DEFAULT_TIMEOUT_SECONDS,
        help="Request timeout in seconds",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum episodes in flight at once (default: unbounded)",
    )
    parser.add_argument(
        "--keep-unclassified",
        action="store_true",
        help="Keep paragraphs no rule matched as unclassified entries",
    )
    parser.add_argument(
        "--content-selector",
        default=config.DEFAULT_CONTENT_SELECTOR,
        help="CSS selector of the transcript region on an episode page",
    )
    parser.add_argument(
        "--topic-selector",
        default=config.DEFAULT_TOPIC_SELECTOR,
        help="CSS selector of episode links on a listing page",
    )
    parser.add_argument("--version", action="store_true", help="Show program version and exit")
    parser.add_argument(
        "--log-file",
        default=None,
        help="Path to log file (logs will be written to both console and file)",
    )
    parser.add_argument(
        "--log-level",
        default=config.DEFAULT_LOG_LEVEL,
        type=str.upper,
        help="Logging level (e.g., DEBUG, INFO)",
    )


def _load_and_merge_config(
    parser: argparse.ArgumentParser, config_path: str, argv: Optional[Sequence[str]]
) -> argparse.Namespace:
    """Load configuration file and merge with CLI arguments.

    Config values become parser defaults, so explicit CLI flags still win.

    Raises:
        ValueError: If the config file is invalid or has unknown keys
    """
    config_data = config.load_config_file(config_path)
    valid_keys = set(config.Config.model_fields) | {"base"}
    unknown_keys = [key for key in config_data.keys() if key not in valid_keys]
    if unknown_keys:
        raise ValueError("Unknown config option(s): " + ", ".join(sorted(unknown_keys)))

    try:
        config_model = config.Config.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc

    # Only keys present in the file; env/default fallbacks stay with the model
    defaults_updates: Dict[str, Any] = config_model.model_dump(exclude_unset=True)
    parser.set_defaults(**defaults_updates)
    return parser.parse_args(argv)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments, optionally merging configuration file defaults."""
    parser = argparse.ArgumentParser(
        description="Scrape episode transcripts from a forum listing into one PDF per episode."
    )
    _add_common_arguments(parser)

    initial_args, _ = parser.parse_known_args(argv)

    if initial_args.version:
        print(f"transcript_scraper {__version__}")
        raise SystemExit(0)

    if initial_args.config:
        args = _load_and_merge_config(parser, initial_args.config, argv)
    else:
        args = parser.parse_args(argv)

    validate_args(args)
    return args


def _build_config(args: argparse.Namespace) -> config.Config:
    """Materialize a Config object from already-validated CLI arguments."""
    payload: Dict[str, Any] = {
        "base_url": args.base_url,
        "forum_id": args.forum_id,
        "pages": args.pages,
        "page_size": args.page_size,
        "max_episodes": args.max_episodes,
        "output_dir": args.output_dir,
        "user_agent": args.user_agent,
        "timeout": args.timeout,
        "max_concurrency": args.max_concurrency,
        "keep_unclassified": args.keep_unclassified,
        "log_level": args.log_level,
        "log_file": args.log_file,
        "content_selector": args.content_selector,
        "topic_selector": args.topic_selector,
    }
    return cast(config.Config, config.Config.model_validate(payload))


def _log_configuration(cfg: config.Config, logger: logging.Logger) -> None:
    logger.info("=" * 80)
    logger.info("Configuration:")
    logger.info(f"  Site: {cfg.base_url}")
    logger.info(f"  Listing: forum {cfg.forum_id}, {cfg.pages} page(s) of {cfg.page_size}")
    if cfg.max_episodes is not None:
        logger.info(f"  Max Episodes: {cfg.max_episodes}")
    logger.info(f"  Output Directory: {cfg.output_dir}")
    logger.info(f"  Timeout: {cfg.timeout}s")
    logger.info(f"  Max Concurrency: {cfg.max_concurrency or 'unbounded'}")
    logger.info(f"  Keep Unclassified: {cfg.keep_unclassified}")
    if cfg.log_file:
        logger.info(f"  Log File: {cfg.log_file}")
    logger.info("=" * 80)


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    apply_log_level_fn: Optional[Callable[[str, Optional[str]], None]] = None,
    run_pipeline_fn: Optional[Callable[[config.Config], Tuple[int, str]]] = None,
    logger: Optional[logging.Logger] = None,
) -> int:
    """Entry point for the CLI; returns an exit status code."""
    progress.set_tracker_factory(_tqdm_tracker)
    log = logger or _LOGGER
    if apply_log_level_fn is None:
        apply_log_level_fn = workflow.apply_log_level
    if run_pipeline_fn is None:
        run_pipeline_fn = workflow.run_pipeline

    try:
        args = parse_args(argv)
    except ValueError as exc:
        log.error(f"Error: {exc}")
        return 1

    try:
        cfg = _build_config(args)
    except ValidationError as exc:
        log.error(f"Invalid configuration: {exc}")
        return 1

    apply_log_level_fn(cfg.log_level, cfg.log_file)

    log.info("Starting transcript scrape")
    _log_configuration(cfg, log)

    try:
        _, summary = run_pipeline_fn(cfg)
    except Exception as exc:  # pragma: no cover - defensive
        log.error(f"Unexpected failure: {exc}")
        return 1

    log.info(summary)
    return 0


if __name__ == "__main__":  # pragma: no cover - script entry
    raise SystemExit(main())

"""Transcript Scraper - Turn forum-hosted TV episode transcripts into PDFs.

This package walks a transcript forum's listing pages, classifies each episode
transcript into dialogue and scene cues, and renders one PDF per episode under
``<output_dir>/season<S>/<E>.<name>.pdf``. Episodes are processed concurrently
and one episode failing never stops the others.

Programmatic API Example:
    >>> import transcript_scraper
    >>>
    >>> config = transcript_scraper.Config(
    ...     forum_id=177,
    ...     pages=2,
    ...     output_dir="./pdf",
    ... )
    >>> count, summary = transcript_scraper.run_pipeline(config)
    >>> print(f"Wrote {count} documents")

CLI Usage:
    $ python -m transcript_scraper.cli --pages 2 --output-dir ./pdf
    $ python -m transcript_scraper.cli --config config.yaml
"""

from __future__ import annotations

from .config import Config, load_config_file
from .workflow import run_pipeline

__all__ = [
    "Config",
    "load_config_file",
    "run_pipeline",
    "__version__",
]

__version__ = "1.0.0"

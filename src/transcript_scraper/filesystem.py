"""Filesystem utilities for transcript_scraper."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from platformdirs import user_cache_dir, user_data_dir

from . import config_constants, models

logger = logging.getLogger(__name__)

SEASON_DIR_PREFIX = "season"
_PLATFORMDIR_APP_NAMES = ("transcript_scraper", "transcript-scraper")
_UNSAFE_PATH_CHARS = ("/", "\\", "\0")


def _platformdirs_safe_roots() -> set[Path]:
    """Return resolved platformdirs locations considered safe for outputs."""

    roots: set[Path] = set()
    for getter in (user_data_dir, user_cache_dir):
        for app_name in _PLATFORMDIR_APP_NAMES:
            try:
                location = getter(app_name)
            # Fall back to next candidate on failure
            except Exception:  # nosec B112
                continue
            if not location:
                continue
            try:
                resolved = Path(location).expanduser().resolve()
            except (OSError, RuntimeError):
                continue
            roots.add(resolved)
    return roots


_PLATFORMDIR_SAFE_ROOTS = _platformdirs_safe_roots()


def validate_and_normalize_output_dir(path: str) -> str:
    """Validate an output directory path and return an absolute, normalized version."""
    if not path or not path.strip():
        raise ValueError("Output directory path cannot be empty")

    path_obj = Path(path).expanduser()
    try:
        resolved = path_obj.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid output directory path: {path} ({exc})")

    safe_roots = {Path.cwd().resolve(), Path.home().resolve(), *_PLATFORMDIR_SAFE_ROOTS}
    if any(resolved == root or resolved.is_relative_to(root) for root in safe_roots):
        return str(resolved)

    logger.warning(
        f"Output directory {resolved} is outside recommended locations (home or app data)."
    )
    return str(resolved)


def safe_path_component(name: str) -> str:
    """Replace path separators so ``name`` stays a single path component."""
    for ch in _UNSAFE_PATH_CHARS:
        name = name.replace(ch, "_")
    return name


def season_dir(output_dir: str, season: str) -> str:
    return os.path.join(output_dir, f"{SEASON_DIR_PREFIX}{safe_path_component(season)}")


def build_document_name(identity: models.EpisodeIdentity) -> str:
    """Return ``<episode>.<name>.pdf`` for an episode identity."""
    return (
        f"{safe_path_component(identity.episode_number)}."
        f"{safe_path_component(identity.normalized_name)}"
        f"{config_constants.DOCUMENT_EXTENSION}"
    )


def build_document_path(output_dir: str, identity: models.EpisodeIdentity) -> str:
    """Return ``<output_dir>/season<season>/<episode>.<name>.pdf``."""
    return os.path.join(season_dir(output_dir, identity.season), build_document_name(identity))


def ensure_directory(path: str) -> bool:
    """Create ``path`` (and parents) if missing. Returns True when it was created.

    Safe when several episodes of one season race to create the same directory.
    """
    if os.path.isdir(path):
        return False
    os.makedirs(path, exist_ok=True)
    logger.info(f"Create a directory: {path}")
    return True


def ensure_placeholder(path: str, content: bytes = config_constants.PLACEHOLDER_CONTENT) -> bool:
    """Create a non-empty placeholder at ``path`` if nothing exists there yet.

    Returns True when the placeholder was written.
    """
    try:
        with open(path, "xb") as handle:
            handle.write(content)
    except FileExistsError:
        return False
    logger.info(f"Create a file: {path}")
    return True


def provision_document_path(path: str) -> None:
    """Make sure the season directory and a placeholder file exist for ``path``.

    Raises:
        OSError: If the directory or placeholder cannot be created.
    """
    ensure_directory(os.path.dirname(path) or ".")
    ensure_placeholder(path)


__all__ = [
    "SEASON_DIR_PREFIX",
    "build_document_name",
    "build_document_path",
    "ensure_directory",
    "ensure_placeholder",
    "provision_document_path",
    "safe_path_component",
    "season_dir",
    "validate_and_normalize_output_dir",
]

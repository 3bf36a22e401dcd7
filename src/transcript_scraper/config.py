from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

from . import config_constants


def _is_test_environment() -> bool:
    """Check if we're running in a test environment."""
    import sys

    if "pytest" in sys.modules or "PYTEST_CURRENT_TEST" in os.environ:
        return True
    if "unittest" in sys.modules:
        return True
    if os.environ.get("TESTING", "").lower() in ("1", "true", "yes"):
        return True
    return False


# Tests configure everything explicitly and never rely on a .env file
if not _is_test_environment():
    try:
        load_dotenv(override=False)
    except (PermissionError, OSError):
        pass

DEFAULT_LOG_LEVEL = config_constants.DEFAULT_LOG_LEVEL
DEFAULT_TIMEOUT_SECONDS = config_constants.DEFAULT_TIMEOUT_SECONDS
DEFAULT_USER_AGENT = config_constants.DEFAULT_USER_AGENT
DEFAULT_BASE_URL = config_constants.DEFAULT_BASE_URL
DEFAULT_FORUM_ID = config_constants.DEFAULT_FORUM_ID
DEFAULT_PAGES = config_constants.DEFAULT_PAGES
DEFAULT_PAGE_SIZE = config_constants.DEFAULT_PAGE_SIZE
DEFAULT_CONTENT_SELECTOR = config_constants.DEFAULT_CONTENT_SELECTOR
DEFAULT_TOPIC_SELECTOR = config_constants.DEFAULT_TOPIC_SELECTOR
DEFAULT_OUTPUT_DIR = config_constants.DEFAULT_OUTPUT_DIR
MIN_TIMEOUT_SECONDS = config_constants.MIN_TIMEOUT_SECONDS
MIN_PAGES = config_constants.MIN_PAGES
MIN_CONCURRENCY = config_constants.MIN_CONCURRENCY
VALID_LOG_LEVELS = config_constants.VALID_LOG_LEVELS


class Config(BaseModel):
    """Configuration model for the transcript-to-PDF pipeline.

    The model is immutable (frozen) after creation. Configuration can be created
    programmatically or loaded from JSON/YAML files using `load_config_file()`.

    Attributes:
        base_url: Root URL of the transcript site; listing and topic URLs hang off it.
        forum_id: Listing forum identifier (the ``f`` query parameter).
        pages: Number of listing pages to walk.
        page_size: Topics per listing page; page ``n`` starts at ``n * page_size``.
        max_episodes: Maximum number of located episodes to process. None processes all.
        output_dir: Base directory for generated documents (season folders live here).
            Falls back to the OUTPUT_DIR environment variable, then ``pdf``.
        user_agent: HTTP User-Agent header for requests.
        timeout: Request timeout in seconds (minimum: 1).
        max_concurrency: Upper bound on in-flight episodes per batch. None is unbounded.
        content_selector: CSS selector isolating the transcript body on a topic page.
        topic_selector: CSS selector for episode anchors on a listing page.
        keep_unclassified: Keep paragraphs that match no rule as ``Unclassified`` entries.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional log file path for file output.

    Example:
        >>> from transcript_scraper import Config
        >>> cfg = Config(forum_id=177, pages=2, output_dir="./pdf")
    """

    base_url: str = Field(default=DEFAULT_BASE_URL, alias="base")
    forum_id: int = Field(default=DEFAULT_FORUM_ID, ge=1)
    pages: int = Field(default=DEFAULT_PAGES, ge=MIN_PAGES)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    max_episodes: Optional[int] = Field(default=None, ge=1)
    output_dir: Optional[str] = Field(
        default=None,
        validate_default=True,
        description="Base directory for generated documents. "
        "Can be set via OUTPUT_DIR environment variable.",
    )
    user_agent: str = DEFAULT_USER_AGENT
    timeout: int = Field(default=DEFAULT_TIMEOUT_SECONDS, ge=MIN_TIMEOUT_SECONDS)
    max_concurrency: Optional[int] = Field(default=None, ge=MIN_CONCURRENCY)
    content_selector: str = DEFAULT_CONTENT_SELECTOR
    topic_selector: str = DEFAULT_TOPIC_SELECTOR
    keep_unclassified: bool = False
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = Field(default=None, validate_default=True)

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)

    @field_validator("base_url", mode="before")
    @classmethod
    def _strip_base_url(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_BASE_URL
        value = str(value).strip().rstrip("/")
        return value or DEFAULT_BASE_URL

    @field_validator("base_url", mode="after")
    @classmethod
    def _validate_base_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be http or https, got: {value}")
        return value

    @field_validator("output_dir", mode="before")
    @classmethod
    def _load_output_dir_from_env(cls, value: Any) -> str:
        """Load output directory from environment variable if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip()
        env_output_dir = (os.getenv("OUTPUT_DIR") or "").strip()
        return env_output_dir or DEFAULT_OUTPUT_DIR

    @field_validator("user_agent", mode="before")
    @classmethod
    def _coerce_user_agent(cls, value: Any) -> str:
        if value is None:
            return DEFAULT_USER_AGENT
        return str(value).strip() or DEFAULT_USER_AGENT

    @field_validator("content_selector", "topic_selector", mode="after")
    @classmethod
    def _validate_selector(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("CSS selectors cannot be empty")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: Any) -> str:
        """Normalize log level value."""
        if value is None:
            return DEFAULT_LOG_LEVEL
        return str(value).strip().upper() or DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="after")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        """Validate log level is one of the valid levels."""
        if value not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {VALID_LOG_LEVELS}, got: {value}")
        return value

    @field_validator("log_file", mode="before")
    @classmethod
    def _load_log_file_from_env(cls, value: Any) -> Optional[str]:
        """Load log file path from environment variable if not provided."""
        if value is not None and str(value).strip():
            return str(value).strip()
        env_log_file = (os.getenv("LOG_FILE") or "").strip()
        return env_log_file or None

    def listing_url(self, page: int) -> str:
        """Return the URL of listing page ``page`` (0-based)."""
        return f"{self.base_url}/viewforum.php?f={self.forum_id}&start={self.page_size * page}"


def load_config_file(path: str) -> Dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    The file format is auto-detected from the file extension (`.json`, `.yaml`,
    or `.yml`). The returned dictionary can be unpacked into `Config`.

    Args:
        path: Path to configuration file. Supports tilde expansion.

    Returns:
        Dict[str, Any]: Configuration values keyed by `Config` field name or alias.

    Raises:
        ValueError: If the path is empty, the file does not exist, the format is
            unsupported, parsing fails, or the top level is not a mapping.

    Example:
        >>> config_dict = load_config_file("config.yaml")
        >>> cfg = Config(**config_dict)
    """
    if not path:
        raise ValueError("Config path cannot be empty")

    cfg_path = Path(path).expanduser()
    try:
        resolved = cfg_path.resolve()
    except (OSError, RuntimeError) as exc:
        raise ValueError(f"Invalid config path: {path} ({exc})") from exc

    if not resolved.exists():
        raise ValueError(f"Config file not found: {resolved}")

    suffix = resolved.suffix.lower()
    try:
        text = resolved.read_text(encoding="utf-8")
    except OSError as exc:
        raise ValueError(f"Failed to read config file {resolved}: {exc}") from exc

    if suffix == ".json":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Invalid JSON config file {resolved}: {exc}") from exc
    elif suffix in (".yaml", ".yml"):
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML config file {resolved}: {exc}") from exc
    else:
        raise ValueError(f"Unsupported config file type: {resolved.suffix}")

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a mapping/object at the top level")

    return data

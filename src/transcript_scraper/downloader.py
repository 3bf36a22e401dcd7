"""HTTP session management and page download helpers for transcript_scraper."""

from __future__ import annotations

import atexit
import logging
import threading
from typing import cast, List

import requests
from requests.adapters import HTTPAdapter
from requests.utils import requote_uri
from urllib3.util.retry import Retry

from .exceptions import FetchError

logger = logging.getLogger(__name__)

_urllib3_logs_suppressed = False


def _suppress_urllib3_debug_logs() -> None:
    """Suppress verbose urllib3 debug logs when root logger is DEBUG.

    Called lazily on first use so the root logger is already configured.
    """
    global _urllib3_logs_suppressed
    if _urllib3_logs_suppressed:
        return

    root_logger = logging.getLogger()
    root_level = root_logger.level if root_logger.level else logging.INFO
    if root_level <= logging.DEBUG:
        for logger_name in ("urllib3", "urllib3.connectionpool", "urllib3.connection"):
            logging.getLogger(logger_name).setLevel(logging.WARNING)

    _urllib3_logs_suppressed = True


DEFAULT_HTTP_BACKOFF_FACTOR = 0.5
DEFAULT_HTTP_RETRY_TOTAL = 5
HTTP_RETRY_ALLOWED_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})
HTTP_RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

# Pages are fetched from asyncio.to_thread workers; each worker thread keeps its own session
_THREAD_LOCAL = threading.local()
_SESSION_REGISTRY: List[requests.Session] = []
_SESSION_REGISTRY_LOCK = threading.Lock()


def normalize_url(url: str) -> str:
    """Normalize URLs while preserving already-encoded segments."""
    normalized = requote_uri(url)
    if normalized != url:
        logger.debug("Normalized URL %s -> %s", url, normalized)
    return cast(str, normalized)


def _configure_http_session(session: requests.Session) -> None:
    """Attach retry-enabled HTTP adapters to a session."""

    class LoggingRetry(Retry):
        def increment(self, method=None, url=None, *args, **kwargs):  # type: ignore[override]
            new_retry = super().increment(method=method, url=url, *args, **kwargs)
            attempt = len(new_retry.history) + 1
            reason = kwargs.get("error") or kwargs.get("response")
            logger.warning(
                f"Retrying HTTP request (attempt {attempt}/{new_retry.total}) "
                f"{method or ''} {url or ''} due to {reason}"
            )
            return new_retry

    retry = LoggingRetry(
        total=DEFAULT_HTTP_RETRY_TOTAL,
        read=DEFAULT_HTTP_RETRY_TOTAL,
        connect=DEFAULT_HTTP_RETRY_TOTAL,
        status=DEFAULT_HTTP_RETRY_TOTAL,
        backoff_factor=DEFAULT_HTTP_BACKOFF_FACTOR,
        status_forcelist=HTTP_RETRY_STATUS_CODES,
        allowed_methods=HTTP_RETRY_ALLOWED_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    logger.debug("Configured HTTP session %s with retry-enabled adapters", hex(id(session)))


def _get_thread_request_session() -> requests.Session:
    _suppress_urllib3_debug_logs()

    session = getattr(_THREAD_LOCAL, "session", None)
    if session is None:
        session = requests.Session()
        _configure_http_session(session)
        setattr(_THREAD_LOCAL, "session", session)
        with _SESSION_REGISTRY_LOCK:
            _SESSION_REGISTRY.append(session)
        logger.debug("Created new thread-local HTTP session %s", hex(id(session)))
    return session


def _close_all_sessions() -> None:
    with _SESSION_REGISTRY_LOCK:
        for session in _SESSION_REGISTRY:
            try:
                session.close()
            # Best-effort cleanup at interpreter exit
            except Exception:  # pragma: no cover  # nosec B110
                pass
        _SESSION_REGISTRY.clear()


atexit.register(_close_all_sessions)


def fetch_text(url: str, user_agent: str, timeout: int) -> str:
    """Fetch a URL and return the decoded response body.

    Raises:
        FetchError: If the request fails or the server answers with an error status.
    """
    normalized_url = normalize_url(url)
    headers = {"User-Agent": user_agent}
    session = _get_thread_request_session()
    logger.debug(
        "Opening HTTP connection to %s (timeout=%s) via session %s",
        normalized_url,
        timeout,
        hex(id(session)),
    )
    try:
        resp = session.get(normalized_url, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        raise FetchError(f"Request failed: {exc}", url=url) from exc

    try:
        resp.raise_for_status()
        text = resp.text
    except requests.RequestException as exc:
        raise FetchError(f"HTTP error: {exc}", url=url) from exc
    finally:
        resp.close()

    logger.debug(
        "HTTP request to %s succeeded with status %s (%s chars)",
        normalized_url,
        resp.status_code,
        len(text),
    )
    return text


__all__ = [
    "DEFAULT_HTTP_BACKOFF_FACTOR",
    "DEFAULT_HTTP_RETRY_TOTAL",
    "HTTP_RETRY_ALLOWED_METHODS",
    "HTTP_RETRY_STATUS_CODES",
    "fetch_text",
    "normalize_url",
]

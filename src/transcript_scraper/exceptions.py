"""Custom exceptions for transcript_scraper.

These exceptions are never raised through a batch. Core operations catch them
(or create them directly) and hand them back as the ``cause`` of an
``outcome.Failure``, so callers can still assert on the specific failure type.

Exception Hierarchy:
    TranscriptScraperError (base)
    ├── FetchError - Network or markup-query failure upstream
    ├── TitleValidationError - Raw title is not an episode title
    ├── StorageError - Directory, placeholder or write-stream failure
    └── RenderError - Document layout failure
"""

from typing import Optional


class TranscriptScraperError(Exception):
    """Base exception for all transcript_scraper errors.

    Attributes:
        message: Human-readable error message
        title: Episode title the error relates to, when known
    """

    def __init__(self, message: str, title: Optional[str] = None) -> None:
        self.message = message
        self.title = title
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.title and self.title not in self.message:
            return f"{self.message} (episode: {self.title})"
        return self.message


class FetchError(TranscriptScraperError):
    """Raised when a page cannot be fetched or its markup cannot be queried.

    Example:
        >>> raise FetchError("HTTP 503", url="https://example.com/viewtopic.php?t=1")
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        title: Optional[str] = None,
    ) -> None:
        self.url = url
        if url and url not in message:
            message = f"{message} (url: {url})"
        super().__init__(message=message, title=title)


class TitleValidationError(TranscriptScraperError):
    """Raised when a raw title does not follow ``<season>x<episode> - <name>``.

    Such titles are listing headings (specials, announcements) rather than
    episodes and are never rendered.
    """

    def __init__(self, title: str, reason: str = "not an episode") -> None:
        self.reason = reason
        super().__init__(message=f"{reason}: {title}", title=title)


class StorageError(TranscriptScraperError):
    """Raised when the output location cannot be provisioned or written.

    Common causes:
    - Permission denied creating the season directory
    - Disk full while streaming the document
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        title: Optional[str] = None,
    ) -> None:
        self.path = path
        if path and path not in message:
            message = f"{message} (path: {path})"
        super().__init__(message=message, title=title)


class RenderError(TranscriptScraperError):
    """Raised when the layout engine fails to build the document."""

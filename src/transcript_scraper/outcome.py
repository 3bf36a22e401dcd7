"""Success/failure result wrapper shared by every fallible core operation.

Core operations return an ``Outcome`` instead of raising so that one episode's
failure never escapes into the batch that launched it. A ``Failure`` keeps the
original exception as its ``cause`` and a context trace describing where it
travelled, innermost frame first::

    >>> failure = Failure.from_exception("fetch_markup error: https://example.com", exc)
    >>> failure = failure.with_context("get_script error: 1x01 - Pilot")
    >>> print(failure.trace)
    fetch_markup error: https://example.com
    get_script error: 1x01 - Pilot
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Generic, Tuple, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Successful result carrying a value."""

    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Failed result carrying a context string and the underlying cause.

    Attributes:
        context: Innermost description of the failed operation (what and for whom).
        cause: Exception that caused the failure.
        frames: Additional context lines appended by outer layers.
    """

    context: str
    cause: Exception
    frames: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return False

    @classmethod
    def from_exception(cls, context: str, exc: Exception) -> "Failure":
        return cls(context=context, cause=exc)

    def with_context(self, line: str) -> "Failure":
        """Return a copy with ``line`` appended to the context trace."""
        return replace(self, frames=self.frames + (line,))

    @property
    def trace(self) -> str:
        return "\n".join((self.context,) + self.frames)

    def describe(self) -> str:
        """One-line description used in batch summaries."""
        return f"{self.context}: {self.cause}"


Outcome = Union[Success[T], Failure]


__all__ = ["Failure", "Outcome", "Success"]

"""Join of named completion signals.

A rendered document is only done once the layout engine has finalized it *and*
the write stream has flushed it to storage. The two events come from different
places, so the renderer waits on a ``CompletionJoin`` instead of counting.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Tuple


class CompletionJoin:
    """Barrier that opens once every named signal has fired.

    Signals may fire in any order and more than once; ``wait()`` returns when
    all of them have fired at least once.

    Example:
        >>> join = CompletionJoin("finalized", "flushed")
        >>> join.signal("flushed")
        >>> join.signal("finalized")
        >>> await join.wait()
    """

    def __init__(self, *names: str) -> None:
        if not names:
            raise ValueError("CompletionJoin needs at least one signal name")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate signal names: {names}")
        self._events: Dict[str, asyncio.Event] = {name: asyncio.Event() for name in names}

    def signal(self, name: str) -> None:
        try:
            self._events[name].set()
        except KeyError:
            raise ValueError(f"Unknown completion signal: {name}") from None

    def is_set(self, name: str) -> bool:
        return self._events[name].is_set()

    @property
    def pending(self) -> Tuple[str, ...]:
        return tuple(name for name, event in self._events.items() if not event.is_set())

    @property
    def done(self) -> bool:
        return not self.pending

    async def wait(self) -> None:
        await asyncio.gather(*(event.wait() for event in self._events.values()))

"""Back/forward history over application view states.

Works like browser history: an ordered list of ViewState snapshots plus
a cursor at the active one (-1 when empty). Pushing after going back
truncates the abandoned forward branch first.

    push(A), push(B), push(C)   [A, B, C]  cursor=2
    back(), back()              [A, B, C]  cursor=0 -> A
    push(D)                     [A, D]     cursor=1

Moving past either end is not an error: back()/forward() return None and
leave the stack untouched. Entries are immutable; only the cursor moves.
"""

from __future__ import annotations

import logging

from episode_heatmap.models import ViewState

logger = logging.getLogger(__name__)


class NavigationStack:
    def __init__(self) -> None:
        self._entries: list[ViewState] = []
        self._cursor = -1

    @property
    def entries(self) -> tuple[ViewState, ...]:
        return tuple(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> ViewState | None:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, state: ViewState) -> None:
        """Append state after the cursor, discarding any forward branch."""
        if self._cursor < len(self._entries) - 1:
            dropped = len(self._entries) - 1 - self._cursor
            del self._entries[self._cursor + 1:]
            logger.debug("Discarded %d forward history entries", dropped)
        self._entries.append(state)
        self._cursor = len(self._entries) - 1

    def back(self) -> ViewState | None:
        if not self.can_go_back():
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def forward(self) -> ViewState | None:
        if not self.can_go_forward():
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def can_go_back(self) -> bool:
        return self._cursor > 0

    def can_go_forward(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def reset(self) -> None:
        """Forget all history (the home view is not itself an entry)."""
        self._entries.clear()
        self._cursor = -1

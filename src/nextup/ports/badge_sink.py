"""Badge sink interface."""

from typing import Protocol


class BadgeSink(Protocol):
    """Accepts the outstanding-item count for display."""

    def set_count(self, count: int) -> None:
        ...

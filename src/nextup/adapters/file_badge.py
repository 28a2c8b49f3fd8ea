"""File-based badge sink adapter."""

import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FileBadgeSink:
    """
    Writes the badge count to a file, for status bars and widgets to pick up.

    Implements the BadgeSink protocol.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def set_count(self, count: int) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(f"{max(count, 0)}\n")
        except OSError as e:
            logger.warning(f"Failed to write badge count to {self.path}: {e}")

    def read(self) -> int | None:
        """The last count written, or None if there is none."""
        try:
            return int(self.path.read_text().strip())
        except (OSError, ValueError):
            return None

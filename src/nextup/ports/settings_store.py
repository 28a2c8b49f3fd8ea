"""Persisted settings interface."""

from typing import Callable, Protocol


class SettingsStore(Protocol):
    """Key-value store of opaque byte blobs."""

    def read(self, key: str) -> bytes | None:
        """Read a value. Returns None if not set."""
        ...

    def write(self, key: str, value: bytes) -> None:
        """Replace a value."""
        ...

    def update(self, key: str, fn: Callable[[bytes | None], bytes]) -> bytes:
        """Read-modify-write a value as one step. Returns the written value."""
        ...

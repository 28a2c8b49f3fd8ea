"""Pure source visibility logic - no I/O dependencies."""

import json
import logging
from typing import Iterable

from nextup.errors import DecodeFailure

from .items import Source

logger = logging.getLogger(__name__)


def is_visible(source_id: str, hidden: frozenset[str] | set[str]) -> bool:
    """A source is visible unless its id is in the hidden set."""
    return source_id not in hidden


def visible_sources(sources: Iterable[Source], hidden: frozenset[str] | set[str]) -> list[Source]:
    """Filter sources to the visible ones, keeping input order."""
    return [s for s in sources if is_visible(s.id, hidden)]


def parse_id_set(blob: bytes | str | None) -> frozenset[str]:
    """
    Strictly decode a persisted set of source ids.

    Raises DecodeFailure on anything other than a JSON list of strings.
    """
    if blob is None or len(blob) == 0:
        raise DecodeFailure("no data")
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeFailure(f"not JSON: {e}") from e
    if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
        raise DecodeFailure(f"expected a list of strings, got {type(data).__name__}")
    return frozenset(data)


def decode_id_set(blob: bytes | str | None) -> frozenset[str]:
    """Decode a persisted hidden set, falling back to "nothing hidden"."""
    try:
        return parse_id_set(blob)
    except DecodeFailure as e:
        logger.debug(f"Using empty hidden set: {e}")
        return frozenset()


def encode_id_set(ids: Iterable[str]) -> bytes:
    return json.dumps(sorted(set(ids))).encode("utf-8")


def sort_by_title(sources: Iterable[Source]) -> list[Source]:
    """Sort sources by title, as offered in the list picker."""
    return sorted(sources, key=lambda s: s.title)


def cycle_source(sources: list[Source], current: Source | None) -> Source | None:
    """
    Pick the list after `current`, wrapping around.

    Returns the first list when `current` is missing or unknown, and None when
    there are no lists at all.
    """
    if not sources:
        return None
    ids = [s.id for s in sources]
    if current is None or current.id not in ids:
        return sources[0]
    return sources[(ids.index(current.id) + 1) % len(sources)]

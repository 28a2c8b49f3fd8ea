"""Pure manual-order overlay logic - no I/O dependencies."""

import json
import logging
from typing import Iterable

from nextup.errors import DecodeFailure

from .items import Item

logger = logging.getLogger(__name__)


def project(canonical: list[Item], stored_ids: Iterable[str]) -> list[Item]:
    """
    Re-sequence freshly fetched items by a stored manual order.

    Stored ids come first, in stored order; ids no longer present are dropped.
    Items the stored order doesn't mention follow in canonical order. The result
    is always a permutation of `canonical`.

    Ids are only unique within a source, so several items may share one. Each
    stored occurrence of an id places the next such item in canonical order;
    the rest follow with the newcomers.
    """
    positions: dict[str, list[int]] = {}
    for index, item in enumerate(canonical):
        positions.setdefault(item.id, []).append(index)

    ordered: list[Item] = []
    placed: set[int] = set()

    for item_id in stored_ids:
        remaining = positions.get(item_id)
        if remaining:
            index = remaining.pop(0)
            ordered.append(canonical[index])
            placed.add(index)

    ordered.extend(item for index, item in enumerate(canonical) if index not in placed)
    return ordered


def reorder(displayed_ids: list[str], from_index: int, to_index: int) -> list[str]:
    """
    Move one id within the displayed sequence.

    The moved id ends up at `to_index`. The returned list replaces the stored
    order wholesale.
    """
    size = len(displayed_ids)
    if not 0 <= from_index < size:
        raise IndexError(f"from_index {from_index} out of range for {size} items")
    if not 0 <= to_index < size:
        raise IndexError(f"to_index {to_index} out of range for {size} items")

    new_order = list(displayed_ids)
    moved = new_order.pop(from_index)
    new_order.insert(to_index, moved)
    return new_order


def parse_order(blob: bytes | str | None) -> list[str]:
    """Strictly decode a persisted manual order."""
    if blob is None or len(blob) == 0:
        raise DecodeFailure("no data")
    try:
        data = json.loads(blob)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DecodeFailure(f"not JSON: {e}") from e
    if not isinstance(data, list) or not all(isinstance(x, str) for x in data):
        raise DecodeFailure(f"expected a list of strings, got {type(data).__name__}")
    return data


def decode_order(blob: bytes | str | None) -> list[str]:
    """Decode a persisted manual order; anything unreadable means "unordered"."""
    try:
        return parse_order(blob)
    except DecodeFailure as e:
        logger.debug(f"Using empty manual order: {e}")
        return []


def encode_order(ids: Iterable[str]) -> bytes:
    return json.dumps(list(ids)).encode("utf-8")

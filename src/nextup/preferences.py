"""User preferences over a settings store: hidden sources, manual order, badge flag."""

import json
import logging

from .core.items import SourceKind
from .core.ordering import decode_order, encode_order
from .core.visibility import decode_id_set, encode_id_set
from .ports.settings_store import SettingsStore

logger = logging.getLogger(__name__)

HIDDEN_TASK_SOURCES = "hidden-task-sources"
HIDDEN_EVENT_SOURCES = "hidden-event-sources"
MANUAL_ORDER_PREFIX = "manual-order"
BADGE_ENABLED = "badge-enabled"


def hidden_key(kind: SourceKind) -> str:
    return HIDDEN_EVENT_SOURCES if kind == SourceKind.EVENT else HIDDEN_TASK_SOURCES


def manual_order_key(view: str) -> str:
    return f"{MANUAL_ORDER_PREFIX}.{view}"


class Preferences:
    """
    Typed access to persisted preferences.

    Nothing is cached: every read goes to the store, and every change is a
    single read-modify-write through `SettingsStore.update`.
    """

    def __init__(self, store: SettingsStore):
        self.store = store

    def hidden_sources(self, kind: SourceKind) -> frozenset[str]:
        return decode_id_set(self.store.read(hidden_key(kind)))

    def set_visibility(self, kind: SourceKind, source_id: str, visible: bool) -> frozenset[str]:
        """Show or hide one source. Returns the new hidden set."""

        def apply(blob: bytes | None) -> bytes:
            hidden = set(decode_id_set(blob))
            if visible:
                hidden.discard(source_id)
            else:
                hidden.add(source_id)
            return encode_id_set(hidden)

        written = self.store.update(hidden_key(kind), apply)
        logger.debug(f"{'Showing' if visible else 'Hiding'} {kind.value} source {source_id}")
        return decode_id_set(written)

    def manual_order(self, view: str) -> list[str]:
        return decode_order(self.store.read(manual_order_key(view)))

    def set_manual_order(self, view: str, ids: list[str]) -> None:
        """Replace the stored order for a view."""
        self.store.update(manual_order_key(view), lambda _old: encode_order(ids))

    def badges_enabled(self) -> bool:
        """Badges default to on; unreadable values mean the default."""
        blob = self.store.read(BADGE_ENABLED)
        if not blob:
            return True
        try:
            value = json.loads(blob)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.debug(f"Unreadable badge flag, using default: {e}")
            return True
        if not isinstance(value, bool):
            return True
        return value

    def set_badges_enabled(self, enabled: bool) -> None:
        self.store.update(BADGE_ENABLED, lambda _old: json.dumps(enabled).encode("utf-8"))

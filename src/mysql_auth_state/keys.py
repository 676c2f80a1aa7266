"""Key categories and storage key naming.

Every piece of derived key material lives in its own row, named
``"{category}-{id}"``. The credential bundle is the single row ``creds``.
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from mysql_auth_state.exceptions import InvalidKeyError
from mysql_auth_state.models import AppStateSyncKeyData

CREDS_KEY = "creds"
KEY_MAX_LENGTH = 80


class KeyCategory(str, Enum):
    """Kinds of key material the protocol layer stores."""

    PRE_KEY = "pre-key"
    SESSION = "session"
    SENDER_KEY = "sender-key"
    SENDER_KEY_MEMORY = "sender-key-memory"
    APP_STATE_SYNC_KEY = "app-state-sync-key"
    APP_STATE_SYNC_VERSION = "app-state-sync-version"
    LID_MAPPING = "lid-mapping"
    DEVICE_LIST = "device-list"
    TCTOKEN = "tctoken"

    def reconstruct(self, value: Any) -> Any:
        """Rebuild the in-memory representation of a decoded value."""
        rule = _RECONSTRUCTION_RULES.get(self)
        if rule is None or value is None:
            return value
        return rule(value)

    @classmethod
    def from_storage_key(cls, key: str) -> KeyCategory | None:
        """Category of a stored row id, or None for ``creds``/unknown ids."""
        # Longest values first: "sender-key-memory" also starts with "sender-key-"
        for category in sorted(cls, key=lambda c: len(c.value), reverse=True):
            if key.startswith(f"{category.value}-"):
                return category
        return None


_RECONSTRUCTION_RULES: dict[KeyCategory, Callable[[Any], Any]] = {
    KeyCategory.APP_STATE_SYNC_KEY: AppStateSyncKeyData.from_object,
}


def storage_key(category: KeyCategory | str, key_id: Any) -> str:
    """Row id for a piece of key material."""
    category = KeyCategory(category)
    key = f"{category.value}-{key_id}"
    if len(key) > KEY_MAX_LENGTH:
        raise InvalidKeyError(key, KEY_MAX_LENGTH)
    return key

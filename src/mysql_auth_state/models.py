"""Typed protocol objects rebuilt from stored key material.

Stored values are plain JSON structures. Some key categories are consumed
by the protocol layer as typed messages; the models here rebuild them.
"""

from __future__ import annotations

import base64
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AppStateSyncKeyFingerprint(BaseModel):
    """Fingerprint identifying which device produced an app-state sync key."""

    model_config = ConfigDict(populate_by_name=True)

    raw_id: int | None = Field(default=None, alias="rawId")
    current_index: int | None = Field(default=None, alias="currentIndex")
    device_indexes: list[int] = Field(default_factory=list, alias="deviceIndexes")


class AppStateSyncKeyData(BaseModel):
    """Key used to decrypt app-state (chat settings) sync patches."""

    model_config = ConfigDict(populate_by_name=True)

    key_data: bytes | None = Field(default=None, alias="keyData")
    fingerprint: AppStateSyncKeyFingerprint | None = None
    timestamp: int | None = None

    @field_validator("key_data", mode="before")
    @classmethod
    def _decode_key_data(cls, v: Any) -> Any:
        """Text key data is base64, as in the protocol's JSON form."""
        if isinstance(v, str):
            return base64.b64decode(v)
        if isinstance(v, (bytearray, memoryview)):
            return bytes(v)
        if isinstance(v, list):
            return bytes(v)
        return v

    @field_validator("timestamp", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> Any:
        """Accept 64-bit timestamps split into ``{low, high}`` words."""
        if isinstance(v, dict) and "low" in v:
            low = int(v["low"]) & 0xFFFFFFFF
            high = int(v.get("high", 0))
            return (high << 32) | low
        if isinstance(v, str):
            return int(v)
        return v

    @classmethod
    def from_object(cls, obj: Any) -> AppStateSyncKeyData:
        """Build the typed key from its stored plain form."""
        if isinstance(obj, cls):
            return obj
        return cls.model_validate(obj)

    def to_object(self) -> dict[str, Any]:
        """Return the plain, aliased form stored in the database."""
        return self.model_dump(by_alias=True, exclude_none=True)

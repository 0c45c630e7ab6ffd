"""Column value types shared by the models."""
from __future__ import annotations

import base64
import binascii
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator


class Base64:
    """Binary value whose canonical text form is standard base64."""

    __slots__ = ("_data",)

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)

    @classmethod
    def parse(cls, value: str) -> Base64:
        """Strictly decode standard base64 text, raising ``ValueError`` on bad input."""

        try:
            return cls(base64.b64decode(value.encode("ascii"), validate=True))
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise ValueError(f"invalid base64 value: {exc}") from exc

    def encoded(self) -> str:
        return base64.b64encode(self._data).decode("ascii")

    def __bytes__(self) -> bytes:
        return self._data

    def __str__(self) -> str:
        return self.encoded()

    def __repr__(self) -> str:
        return f"Base64({self.encoded()!r})"

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Base64):
            return self._data == other._data
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._data)


class Base64Type(TypeDecorator[Base64]):
    """Stores a :class:`Base64` value as its text form."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> str | None:
        if value is None:
            return None
        if isinstance(value, (bytes, bytearray)):
            value = Base64(value)
        return str(value)

    def process_result_value(self, value: Any, dialect: Dialect) -> Base64 | None:
        if value is None:
            return None
        return Base64.parse(value)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone aware timestamp that is stored and loaded as UTC.

    Backends without a native zone (SQLite) hand back naive values; those
    are read as UTC.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

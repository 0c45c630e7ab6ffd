"""Errors raised by the device layer."""
from __future__ import annotations


class DeviceDecodeError(ValueError):
    """Raised when exported device data cannot be turned back into a device."""

    def __init__(self, field: str, message: str, index: int | None = None) -> None:
        self.field = field
        self.message = message
        self.index = index
        prefix = f"webauthn_devices[{index}]." if index is not None else ""
        super().__init__(f"{prefix}{field}: {message}")

    def at_index(self, index: int) -> DeviceDecodeError:
        return DeviceDecodeError(self.field, self.message, index=index)


class ExportFormatError(ValueError):
    """Raised when an export document does not have the expected layout."""


class DeviceNotFoundError(LookupError):
    """Raised when no stored device matches a lookup."""

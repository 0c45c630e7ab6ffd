"""Bulk export container for WebAuthn devices."""
from __future__ import annotations

from dataclasses import dataclass, field

from authn_devices.core.errors import DeviceDecodeError
from authn_devices.schemas.device import WebAuthnDeviceDataExport

from .webauthn import WebAuthnDevice


@dataclass
class WebAuthnDeviceExport:
    """An ordered set of devices written to or read from a backup file."""

    webauthn_devices: list[WebAuthnDevice] = field(default_factory=list)

    def to_data(self) -> WebAuthnDeviceDataExport:
        return WebAuthnDeviceDataExport(webauthn_devices=[device.to_data() for device in self.webauthn_devices])

    @classmethod
    def from_data(cls, data: WebAuthnDeviceDataExport) -> WebAuthnDeviceExport:
        """Decode every entry, failing as a whole if any single entry is invalid."""

        devices: list[WebAuthnDevice] = []
        for index, item in enumerate(data.webauthn_devices):
            try:
                devices.append(WebAuthnDevice.from_data(item))
            except DeviceDecodeError as exc:
                raise exc.at_index(index) from exc
        return cls(webauthn_devices=devices)

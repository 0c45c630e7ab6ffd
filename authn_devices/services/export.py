"""YAML backup format for WebAuthn devices."""
from __future__ import annotations

from typing import IO, Any

import yaml
from pydantic import ValidationError

from authn_devices.core.errors import ExportFormatError
from authn_devices.models import WebAuthnDevice, WebAuthnDeviceExport
from authn_devices.schemas.device import WebAuthnDeviceData, WebAuthnDeviceDataExport

EXPORT_KEY = "webauthn_devices"


class ExportDumper(yaml.SafeDumper):
    """Safe dumper that knows how to write devices and export containers."""

    def ignore_aliases(self, data: Any) -> bool:
        return True


class ExportLoader(yaml.SafeLoader):
    """Safe loader for export documents."""


def _represent_device(dumper: ExportDumper, device: WebAuthnDevice) -> yaml.Node:
    return dumper.represent_dict(device.to_data().model_dump())


def _represent_device_data(dumper: ExportDumper, data: WebAuthnDeviceData) -> yaml.Node:
    return dumper.represent_dict(data.model_dump())


def _represent_export(dumper: ExportDumper, export: WebAuthnDeviceExport | WebAuthnDeviceDataExport) -> yaml.Node:
    return dumper.represent_dict({EXPORT_KEY: list(export.webauthn_devices)})


ExportDumper.add_representer(WebAuthnDevice, _represent_device)
ExportDumper.add_representer(WebAuthnDeviceData, _represent_device_data)
ExportDumper.add_representer(WebAuthnDeviceExport, _represent_export)
ExportDumper.add_representer(WebAuthnDeviceDataExport, _represent_export)


def dump_export(export: WebAuthnDeviceExport | WebAuthnDeviceDataExport, stream: IO[str] | None = None) -> str | None:
    """Write an export document, returning the text when no stream is given."""

    return yaml.dump(
        export,
        stream,
        Dumper=ExportDumper,
        allow_unicode=True,
        default_flow_style=False,
        sort_keys=False,
    )


def load_export_data(stream: str | IO[str]) -> WebAuthnDeviceDataExport:
    try:
        document: Any = yaml.load(stream, Loader=ExportLoader)
    except yaml.YAMLError as exc:
        raise ExportFormatError(f"Invalid YAML document: {exc}") from exc

    if not isinstance(document, dict) or EXPORT_KEY not in document:
        raise ExportFormatError(f"Export document must be a mapping with a '{EXPORT_KEY}' key")
    if document[EXPORT_KEY] is None:
        document[EXPORT_KEY] = []

    try:
        return WebAuthnDeviceDataExport.model_validate(document)
    except ValidationError as exc:
        raise ExportFormatError(f"Invalid export document: {exc}") from exc


def load_export(stream: str | IO[str]) -> WebAuthnDeviceExport:
    """Read an export document; any undecodable device rejects the whole document."""

    return WebAuthnDeviceExport.from_data(load_export_data(stream))

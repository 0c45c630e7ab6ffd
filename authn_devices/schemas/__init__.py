"""Data shapes exchanged with the ceremony engine and export files."""
from .credential import Authenticator, Credential
from .device import WebAuthnDeviceData, WebAuthnDeviceDataExport

__all__ = [
    "Authenticator",
    "Credential",
    "WebAuthnDeviceData",
    "WebAuthnDeviceDataExport",
]

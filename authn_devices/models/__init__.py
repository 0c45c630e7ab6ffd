"""SQLAlchemy models and the views built on them."""
from .export import WebAuthnDeviceExport
from .types import Base64
from .user import RelyingPartyUser, WebAuthnUser
from .webauthn import ATTESTATION_TYPE_FIDO_U2F, WebAuthnDevice

__all__ = [
    "ATTESTATION_TYPE_FIDO_U2F",
    "Base64",
    "RelyingPartyUser",
    "WebAuthnDevice",
    "WebAuthnDeviceExport",
    "WebAuthnUser",
]

"""Export representation of WebAuthn devices."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

SIGN_COUNT_MAX = 0xFFFFFFFF


class WebAuthnDeviceData(BaseModel):
    """A device with every binary value rendered as text."""

    created_at: datetime
    last_used_at: datetime | None = None
    rpid: str = ""
    username: str
    description: str = ""
    kid: str
    public_key: str
    attestation_type: str = ""
    transport: str = ""
    aaguid: str
    sign_count: int = Field(0, ge=0, le=SIGN_COUNT_MAX)
    clone_warning: bool = False


class WebAuthnDeviceDataExport(BaseModel):
    webauthn_devices: list[WebAuthnDeviceData] = Field(default_factory=list)

"""Relying party view of a user and their devices."""
from __future__ import annotations

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from fido2.webauthn import Aaguid, PublicKeyCredentialDescriptor, PublicKeyCredentialUserEntity

from authn_devices.schemas.credential import Authenticator, Credential, parse_transport

from .webauthn import ATTESTATION_TYPE_FIDO_U2F, WebAuthnDevice

logger = logging.getLogger(__name__)


@runtime_checkable
class RelyingPartyUser(Protocol):
    """What the ceremony service needs to know about a user."""

    def webauthn_id(self) -> bytes: ...

    def webauthn_name(self) -> str: ...

    def webauthn_display_name(self) -> str: ...

    def webauthn_icon(self) -> str: ...

    def webauthn_credentials(self) -> list[Credential]: ...

    def webauthn_credential_descriptors(self) -> list[PublicKeyCredentialDescriptor]: ...


def _aaguid_bytes(value: object) -> bytes:
    if value is None:
        return bytes(Aaguid.NONE)
    if not isinstance(value, uuid.UUID):
        value = uuid.UUID(str(value))
    return bytes(Aaguid(value.bytes))


@dataclass
class WebAuthnUser:
    """A user assembled for one ceremony; never persisted."""

    username: str
    display_name: str
    devices: Sequence[WebAuthnDevice] = field(default_factory=list)

    def has_fido_u2f(self) -> bool:
        """Return True if any device was migrated from the legacy U2F flow."""

        return any(device.attestation_type == ATTESTATION_TYPE_FIDO_U2F for device in self.devices)

    def webauthn_id(self) -> bytes:
        return self.username.encode("utf-8")

    def webauthn_name(self) -> str:
        return self.username

    def webauthn_display_name(self) -> str:
        return self.display_name

    def webauthn_icon(self) -> str:
        return ""

    def webauthn_credentials(self) -> list[Credential]:
        credentials: list[Credential] = []

        for device in self.devices:
            try:
                aaguid = _aaguid_bytes(device.aaguid)
            except (TypeError, ValueError):
                logger.debug("Skipping device %r with unusable AAGUID %r", device.kid, device.aaguid)
                continue

            credentials.append(
                Credential(
                    id=bytes(device.kid),
                    public_key=device.public_key,
                    attestation_type=device.attestation_type,
                    transport=[parse_transport(token) for token in device.transport_tokens()],
                    authenticator=Authenticator(
                        aaguid=aaguid,
                        sign_count=device.sign_count,
                        clone_warning=device.clone_warning,
                    ),
                )
            )

        return credentials

    def webauthn_credential_descriptors(self) -> list[PublicKeyCredentialDescriptor]:
        return [credential.descriptor() for credential in self.webauthn_credentials()]

    def user_entity(self) -> PublicKeyCredentialUserEntity:
        return PublicKeyCredentialUserEntity(
            name=self.webauthn_name(),
            id=self.webauthn_id(),
            display_name=self.webauthn_display_name() or self.webauthn_name(),
        )

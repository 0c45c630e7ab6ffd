"""Credential shapes handed to and received from the ceremony engine."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from fido2 import cbor
from fido2.webauthn import (
    Aaguid,
    AuthenticatorData,
    AuthenticatorTransport,
    PublicKeyCredentialDescriptor,
    PublicKeyCredentialType,
)

Transport = AuthenticatorTransport | str


def parse_transport(token: str) -> Transport:
    """Map a stored transport token onto the engine's enum, keeping unknown hints verbatim."""

    try:
        value = AuthenticatorTransport(token)
    except ValueError:
        return token
    # fido2 1.2 maps unknown values to None instead of raising.
    return token if value is None else value


@dataclass
class Authenticator:
    aaguid: bytes = field(default_factory=lambda: bytes(Aaguid.NONE))
    sign_count: int = 0
    clone_warning: bool = False


@dataclass
class Credential:
    """A registered credential as the ceremony engine sees it."""

    id: bytes
    public_key: bytes
    attestation_type: str
    transport: list[Transport] = field(default_factory=list)
    authenticator: Authenticator = field(default_factory=Authenticator)

    @classmethod
    def from_authenticator_data(
        cls,
        auth_data: AuthenticatorData,
        *,
        attestation_type: str,
        transports: Iterable[str] = (),
    ) -> Credential:
        """Build a credential from the data returned by a completed registration."""

        credential_data = auth_data.credential_data
        if credential_data is None:
            raise ValueError("Authenticator data carries no attested credential")
        return cls(
            id=bytes(credential_data.credential_id),
            public_key=cbor.encode(dict(credential_data.public_key)),
            attestation_type=attestation_type,
            transport=[parse_transport(token) for token in transports if token],
            authenticator=Authenticator(aaguid=bytes(credential_data.aaguid), sign_count=auth_data.counter),
        )

    def descriptor(self) -> PublicKeyCredentialDescriptor:
        # Hints the engine does not know are left out of option lists.
        transports = [t for t in self.transport if isinstance(t, AuthenticatorTransport)]
        return PublicKeyCredentialDescriptor(
            type=PublicKeyCredentialType.PUBLIC_KEY,
            id=self.id,
            transports=transports or None,
        )

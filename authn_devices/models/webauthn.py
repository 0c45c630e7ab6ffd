"""WebAuthn device model."""
from __future__ import annotations

import base64
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from fido2 import cbor
from fido2.cose import CoseKey
from fido2.webauthn import Aaguid, AttestedCredentialData
from pydantic import ValidationError
from sqlalchemy import BigInteger, Boolean, Integer, LargeBinary, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from authn_devices.core.config import RelyingPartyConfig
from authn_devices.core.errors import DeviceDecodeError
from authn_devices.db.base import Base
from authn_devices.schemas.credential import Credential, Transport
from authn_devices.schemas.device import SIGN_COUNT_MAX, WebAuthnDeviceData

from .types import Base64, Base64Type, UTCDateTime

ATTESTATION_TYPE_FIDO_U2F = "fido-u2f"
TRANSPORT_SEPARATOR = ","


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _transport_token(transport: Transport) -> str:
    if isinstance(transport, Enum):
        return str(transport.value)
    return str(transport)


def _decode_base64(field: str, value: str) -> Base64:
    try:
        return Base64.parse(value)
    except ValueError as exc:
        raise DeviceDecodeError(field, "invalid base64 encoding") from exc


class WebAuthnDevice(Base):
    """A registered authenticator as kept in storage."""

    __tablename__ = "webauthn_devices"
    __table_args__ = (UniqueConstraint("rpid", "username", "kid", name="uq_webauthn_devices_rpid_username_kid"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(timezone=True), default=_utcnow, nullable=False)
    last_used_at: Mapped[datetime | None] = mapped_column(UTCDateTime(timezone=True), nullable=True)
    rpid: Mapped[str] = mapped_column(String(512), default="", nullable=False)
    username: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    kid: Mapped[Base64] = mapped_column(Base64Type(512), nullable=False)
    public_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    attestation_type: Mapped[str] = mapped_column(String(32), default="", nullable=False)
    transport: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    aaguid: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)
    sign_count: Mapped[int] = mapped_column(BigInteger, default=0, nullable=False)
    clone_warning: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    @classmethod
    def from_credential(cls, rpid: str, username: str, description: str, credential: Credential) -> WebAuthnDevice:
        """Create a device from the credential produced by a completed registration."""

        device = cls(
            created_at=_utcnow(),
            last_used_at=None,
            rpid=rpid,
            username=username,
            description=description,
            kid=Base64(credential.id),
            public_key=bytes(credential.public_key),
            attestation_type=credential.attestation_type,
            transport=TRANSPORT_SEPARATOR.join(_transport_token(t) for t in credential.transport),
            aaguid=None,
            sign_count=credential.authenticator.sign_count,
            clone_warning=credential.authenticator.clone_warning,
        )

        try:
            aaguid = uuid.UUID(bytes=bytes(credential.authenticator.aaguid))
        except ValueError:
            aaguid = None
        if aaguid is not None and aaguid.int != 0:
            device.aaguid = aaguid

        return device

    @classmethod
    def from_data(cls, data: WebAuthnDeviceData | Mapping[str, Any]) -> WebAuthnDevice:
        """Rebuild a device from its export representation.

        Any undecodable field fails the whole conversion with
        :class:`DeviceDecodeError`. The nil UUID is accepted and yields a
        device without an AAGUID.
        """

        if not isinstance(data, WebAuthnDeviceData):
            try:
                data = WebAuthnDeviceData.model_validate(data)
            except ValidationError as exc:
                error = exc.errors()[0]
                field = ".".join(str(part) for part in error["loc"]) or "device"
                raise DeviceDecodeError(field, error["msg"]) from exc

        public_key = _decode_base64("public_key", data.public_key)

        try:
            aaguid = uuid.UUID(data.aaguid)
        except ValueError as exc:
            raise DeviceDecodeError("aaguid", "invalid UUID") from exc

        kid = _decode_base64("kid", data.kid)
        if not len(kid):
            raise DeviceDecodeError("kid", "credential id is empty")

        return cls(
            created_at=data.created_at,
            last_used_at=data.last_used_at,
            rpid=data.rpid,
            username=data.username,
            description=data.description,
            kid=kid,
            public_key=bytes(public_key),
            attestation_type=data.attestation_type,
            transport=data.transport,
            aaguid=aaguid if aaguid.int != 0 else None,
            sign_count=data.sign_count,
            clone_warning=data.clone_warning,
        )

    def to_data(self) -> WebAuthnDeviceData:
        return WebAuthnDeviceData(
            created_at=self.created_at,
            last_used_at=self.last_used(),
            rpid=self.rpid,
            username=self.username,
            description=self.description,
            kid=str(self.kid),
            public_key=base64.b64encode(self.public_key).decode("ascii"),
            attestation_type=self.attestation_type,
            transport=self.transport,
            aaguid=str(self.aaguid or uuid.UUID(int=0)),
            sign_count=self.sign_count,
            clone_warning=self.clone_warning,
        )

    def update_sign_in_info(self, config: RelyingPartyConfig, now: datetime, sign_count: int) -> None:
        """Record a successful sign in.

        The RPID is only ever filled in once: legacy U2F devices are bound to
        the origin, everything else to the relying party id.
        """

        if not 0 <= sign_count <= SIGN_COUNT_MAX:
            raise ValueError(f"sign_count {sign_count} is outside the unsigned 32-bit range")

        self.last_used_at = now
        self.sign_count = sign_count

        if self.rpid:
            return

        if self.attestation_type == ATTESTATION_TYPE_FIDO_U2F:
            self.rpid = config.rp_origin
        else:
            self.rpid = config.rp_id

    def last_used(self) -> datetime | None:
        return self.last_used_at

    def transport_tokens(self) -> list[str]:
        return [token for token in (self.transport or "").split(TRANSPORT_SEPARATOR) if token]

    def attested_credential_data(self) -> AttestedCredentialData:
        """Return the credential in the form ``Fido2Server.authenticate_complete`` verifies against."""

        aaguid = Aaguid(self.aaguid.bytes) if self.aaguid else Aaguid.NONE
        return AttestedCredentialData.create(aaguid, bytes(self.kid), CoseKey.parse(cbor.decode(self.public_key)))

    def __repr__(self) -> str:
        return f"WebAuthnDevice(id={self.id!r}, rpid={self.rpid!r}, username={self.username!r}, kid={self.kid!r})"

"""WebAuthn ceremony helpers."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from fido2 import cbor
from fido2.server import Fido2Server
from fido2.utils import websafe_decode
from fido2.webauthn import AuthenticatorData, PublicKeyCredentialRpEntity
from sqlalchemy.ext.asyncio import AsyncSession

from authn_devices.core.config import RelyingPartyConfig, Settings, get_settings
from authn_devices.core.errors import DeviceNotFoundError
from authn_devices.models import WebAuthnDevice, WebAuthnUser
from authn_devices.schemas.credential import Credential
from authn_devices.services.devices import save_device

logger = logging.getLogger(__name__)


def create_server(settings: Settings | None = None) -> Fido2Server:
    settings = settings or get_settings()
    rp = PublicKeyCredentialRpEntity(id=settings.fido_rp_id, name=settings.fido_rp_name)
    expected_origin = settings.origin

    def verify_origin(origin: str) -> bool:
        return origin.rstrip("/") == expected_origin

    return Fido2Server(rp, verify_origin=verify_origin)


def _response_field(response: Mapping[str, Any], name: str) -> Any:
    return response.get("response", {}).get(name)


def _decode_field(response: Mapping[str, Any], name: str) -> bytes:
    value = _response_field(response, name)
    if value is None:
        raise ValueError(f"WebAuthn response is missing {name}")
    return websafe_decode(value) if isinstance(value, str) else bytes(value)


def attestation_format(response: Mapping[str, Any]) -> str:
    """Return the attestation statement format of a registration response."""

    attestation = cbor.decode(_decode_field(response, "attestationObject"))
    return str(attestation.get("fmt", ""))


def begin_registration(server: Fido2Server, user: WebAuthnUser, user_verification: str | None = None) -> tuple[Any, Any]:
    """Start a registration that excludes the user's existing credentials."""

    return server.register_begin(
        user.user_entity(),
        credentials=user.webauthn_credential_descriptors(),
        user_verification=user_verification or get_settings().webauthn_user_verification,
    )


def begin_authentication(
    server: Fido2Server,
    user: WebAuthnUser,
    config: RelyingPartyConfig,
    user_verification: str | None = None,
) -> tuple[Any, Any]:
    credentials = user.webauthn_credential_descriptors()
    if not credentials:
        raise ValueError("No WebAuthn credentials registered")
    extensions = {"appid": config.rp_origin} if user.has_fido_u2f() else None
    return server.authenticate_begin(
        credentials,
        user_verification=user_verification or get_settings().webauthn_user_verification,
        extensions=extensions,
    )


async def complete_registration(
    db: AsyncSession,
    server: Fido2Server,
    state: Any,
    response: Mapping[str, Any],
    *,
    user: WebAuthnUser,
    rpid: str,
    description: str,
) -> WebAuthnDevice:
    auth_data = server.register_complete(state, response)
    credential = Credential.from_authenticator_data(
        auth_data,
        attestation_type=attestation_format(response),
        transports=_response_field(response, "transports") or [],
    )
    device = WebAuthnDevice.from_credential(rpid, user.username, description, credential)
    logger.info("Registered WebAuthn device %r for %s", description, user.username)
    return await save_device(db, device)


async def complete_authentication(
    db: AsyncSession,
    server: Fido2Server,
    state: Any,
    user: WebAuthnUser,
    response: Mapping[str, Any],
    config: RelyingPartyConfig,
    now: datetime | None = None,
) -> WebAuthnDevice:
    devices = list(user.devices)
    matched = server.authenticate_complete(state, [device.attested_credential_data() for device in devices], response)
    credential_id = bytes(matched.credential_id)

    for device in devices:
        if bytes(device.kid) == credential_id:
            auth_data = AuthenticatorData(_decode_field(response, "authenticatorData"))
            device.update_sign_in_info(config, now or datetime.now(timezone.utc), auth_data.counter)
            await db.flush()
            logger.info("WebAuthn sign in for %s with device %s", user.username, device.kid)
            return device

    raise DeviceNotFoundError("Credential not registered")

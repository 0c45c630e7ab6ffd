"""WebAuthn device storage service."""
from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from authn_devices.core.errors import DeviceNotFoundError
from authn_devices.models import Base64, WebAuthnDevice, WebAuthnDeviceExport, WebAuthnUser
from authn_devices.services.export import dump_export, load_export

logger = logging.getLogger(__name__)


async def save_device(db: AsyncSession, device: WebAuthnDevice) -> WebAuthnDevice:
    db.add(device)
    await db.flush()
    logger.info("Saved WebAuthn device %s for %s (rpid=%r)", device.kid, device.username, device.rpid)
    return device


async def list_devices(db: AsyncSession, username: str, rpid: str | None = None) -> list[WebAuthnDevice]:
    """Return a user's devices in registration order.

    When ``rpid`` is given, devices that have not been bound to any RPID yet
    are returned alongside the ones bound to it.
    """

    stmt = select(WebAuthnDevice).where(WebAuthnDevice.username == username)
    if rpid is not None:
        stmt = stmt.where(or_(WebAuthnDevice.rpid == rpid, WebAuthnDevice.rpid == ""))
    result = await db.execute(stmt.order_by(WebAuthnDevice.id))
    return list(result.scalars())


async def get_device(db: AsyncSession, rpid: str, username: str, kid: Base64 | bytes) -> WebAuthnDevice:
    if not isinstance(kid, Base64):
        kid = Base64(kid)
    result = await db.execute(
        select(WebAuthnDevice).where(
            WebAuthnDevice.rpid == rpid,
            WebAuthnDevice.username == username,
            WebAuthnDevice.kid == kid,
        )
    )
    device = result.scalar_one_or_none()
    if device is None:
        raise DeviceNotFoundError(f"No WebAuthn device {kid} for {username} on {rpid!r}")
    return device


async def load_user(db: AsyncSession, username: str, display_name: str, rpid: str | None = None) -> WebAuthnUser:
    devices = await list_devices(db, username, rpid)
    return WebAuthnUser(username=username, display_name=display_name, devices=devices)


async def export_devices(db: AsyncSession) -> str:
    result = await db.execute(select(WebAuthnDevice).order_by(WebAuthnDevice.id))
    devices = list(result.scalars())
    text = dump_export(WebAuthnDeviceExport(webauthn_devices=devices))
    logger.info("Exported %d WebAuthn devices", len(devices))
    return text or ""


async def import_devices(db: AsyncSession, text: str) -> list[WebAuthnDevice]:
    """Import a backup; nothing is added unless every device in it decodes."""

    export = load_export(text)
    db.add_all(export.webauthn_devices)
    await db.flush()
    logger.info("Imported %d WebAuthn devices", len(export.webauthn_devices))
    return export.webauthn_devices

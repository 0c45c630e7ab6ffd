"""Test fixtures for the WebAuthn device layer."""
from __future__ import annotations

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Generator

import pytest
from fido2 import cbor
from sqlalchemy.ext.asyncio import AsyncSession

from authn_devices.core.config import RelyingPartyConfig, Settings, get_settings
from authn_devices.db.session import get_store
from authn_devices.models import Base64, WebAuthnDevice

YUBIKEY_AAGUID = uuid.UUID("cb69481e-8ff7-4039-93ec-0a2729a154a8")

COSE_ES256_KEY = cbor.encode({1: 2, 3: -7, -1: 1, -2: b"\x01" * 32, -3: b"\x02" * 32})


@pytest.fixture
def device_fields() -> Callable[[WebAuthnDevice], dict[str, Any]]:
    def collect(device: WebAuthnDevice) -> dict[str, Any]:
        return {column.key: getattr(device, column.key) for column in WebAuthnDevice.__table__.columns if column.key != "id"}

    return collect


@pytest.fixture
def make_device() -> Callable[..., WebAuthnDevice]:
    counter = iter(range(1, 1000))

    def factory(**overrides: Any) -> WebAuthnDevice:
        index = next(counter)
        values: dict[str, Any] = {
            "created_at": datetime(2024, 3, 1, 9, 30, 15, 123456, tzinfo=timezone.utc),
            "last_used_at": None,
            "rpid": "example.com",
            "username": "john",
            "description": f"Key {index}",
            "kid": Base64(bytes([index]) * 16),
            "public_key": COSE_ES256_KEY,
            "attestation_type": "packed",
            "transport": "usb,nfc",
            "aaguid": YUBIKEY_AAGUID,
            "sign_count": 10,
            "clone_warning": False,
        }
        values.update(overrides)
        return WebAuthnDevice(**values)

    return factory


@pytest.fixture
def rp_config() -> RelyingPartyConfig:
    return RelyingPartyConfig(rp_id="example.com", rp_origin="https://login.example.com")


@pytest.fixture
def settings(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> Generator[Settings, None, None]:
    tmp_dir = tmp_path_factory.mktemp("db")
    env = {
        "APP_NAME": "Authn Devices Test",
        "ENVIRONMENT": "test",
        "DEBUG": "False",
        "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_dir / 'test.db'}",
        "FIDO_RP_ID": "example.com",
        "FIDO_RP_NAME": "Example",
        "ORIGIN_URL": "https://login.example.com/",
        "WEBAUTHN_USER_VERIFICATION": "preferred",
        "LOG_LEVEL": "DEBUG",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)

    get_settings.cache_clear()
    get_store.cache_clear()
    yield get_settings()
    get_store.cache_clear()
    get_settings.cache_clear()


@pytest.fixture
def run_db(settings: Settings) -> Callable[[Callable[[AsyncSession], Awaitable[Any]]], Any]:
    """Run a coroutine against a fresh schema inside a single event loop."""

    store = get_store()

    def runner(func: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async def scenario() -> Any:
            await store.create_schema()
            try:
                async with store.sessions() as session:
                    return await func(session)
            finally:
                await store.drop_schema()
                await store.close()

        return asyncio.run(scenario())

    return runner

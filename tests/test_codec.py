"""Tests for converting devices to and from their export representation."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest

from authn_devices.core.errors import DeviceDecodeError
from authn_devices.models import Base64, WebAuthnDevice
from authn_devices.schemas.device import WebAuthnDeviceData

NIL_UUID = "00000000-0000-0000-0000-000000000000"


@pytest.mark.parametrize(
    "overrides",
    [
        {},
        {"aaguid": None},
        {"transport": ""},
        {"transport": "usb,nfc,ble,internal"},
        {"last_used_at": datetime(2024, 4, 2, 8, 0, 1, tzinfo=timezone.utc)},
        {"rpid": "", "attestation_type": "fido-u2f", "clone_warning": True, "sign_count": 0xFFFFFFFF},
    ],
)
def test_round_trip(make_device, device_fields, overrides) -> None:
    device = make_device(**overrides)

    decoded = WebAuthnDevice.from_data(device.to_data())

    assert device_fields(decoded) == device_fields(device)


def test_to_data_renders_text(make_device) -> None:
    device = make_device(kid=Base64(b"\x01\x02\x03"), public_key=b"\xff\xfe", aaguid=None)

    data = device.to_data()

    assert data.kid == "AQID"
    assert data.public_key == "//4="
    assert data.aaguid == NIL_UUID
    assert data.last_used_at is None


def test_to_data_renders_aaguid(make_device) -> None:
    aaguid = uuid.UUID("cb69481e-8ff7-4039-93ec-0a2729a154a8")

    assert make_device(aaguid=aaguid).to_data().aaguid == "cb69481e-8ff7-4039-93ec-0a2729a154a8"


def test_nil_aaguid_decodes_as_unset(make_device) -> None:
    data = make_device().to_data().model_copy(update={"aaguid": NIL_UUID})

    assert WebAuthnDevice.from_data(data).aaguid is None


@pytest.mark.parametrize(
    ("field", "value"),
    [
        ("public_key", "not base64!"),
        ("public_key", "AQI"),
        ("kid", "%%%"),
        ("kid", ""),
        ("aaguid", "not-a-uuid"),
        ("aaguid", ""),
    ],
)
def test_invalid_field_fails_decode(make_device, field, value) -> None:
    data = make_device().to_data().model_copy(update={field: value})

    with pytest.raises(DeviceDecodeError) as excinfo:
        WebAuthnDevice.from_data(data)

    assert excinfo.value.field == field


def test_from_mapping() -> None:
    device = WebAuthnDevice.from_data(
        {
            "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
            "username": "john",
            "kid": "AQID",
            "public_key": "//4=",
            "aaguid": "cb69481e-8ff7-4039-93ec-0a2729a154a8",
            "transport": "usb",
        }
    )

    assert device.kid == Base64(b"\x01\x02\x03")
    assert device.public_key == b"\xff\xfe"
    assert device.rpid == ""
    assert device.last_used_at is None
    assert device.sign_count == 0


def test_from_mapping_missing_field() -> None:
    with pytest.raises(DeviceDecodeError) as excinfo:
        WebAuthnDevice.from_data({"created_at": datetime(2024, 1, 1, tzinfo=timezone.utc), "username": "john"})

    assert excinfo.value.field == "kid"


def test_device_data_rejects_negative_counter() -> None:
    with pytest.raises(ValueError):
        WebAuthnDeviceData(
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            username="john",
            kid="AQID",
            public_key="//4=",
            aaguid=NIL_UUID,
            sign_count=-1,
        )


def test_base64_value() -> None:
    value = Base64.parse("AQID")

    assert bytes(value) == b"\x01\x02\x03"
    assert str(value) == "AQID"
    assert value == Base64(b"\x01\x02\x03")
    assert hash(value) == hash(Base64(b"\x01\x02\x03"))
    assert len(value) == 3

    with pytest.raises(ValueError):
        Base64.parse("AQI")
    with pytest.raises(ValueError):
        Base64.parse("é")

"""Command line entry point for managing stored WebAuthn devices."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from authn_devices.core.config import get_settings
from authn_devices.core.errors import DeviceDecodeError, ExportFormatError
from authn_devices.core.observability import setup_logging
from authn_devices.db.session import DeviceStore, get_store
from authn_devices.services import devices as device_service

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="authn-devices", description="Manage stored WebAuthn devices")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("init-db", help="create the webauthn_devices table")

    export = commands.add_parser("export", help="write every device to a YAML backup")
    export.add_argument("-o", "--output", type=Path, help="file to write, stdout when omitted")

    restore = commands.add_parser("import", help="load devices from a YAML backup")
    restore.add_argument("path", type=Path)

    return parser


async def run(store: DeviceStore, args: argparse.Namespace) -> None:
    try:
        if args.command == "init-db":
            await store.create_schema()
            logger.info("Created device schema on %s", store.engine.url.render_as_string(hide_password=True))
        elif args.command == "export":
            async with store.transaction() as db:
                text = await device_service.export_devices(db)
            if args.output is None:
                sys.stdout.write(text)
            else:
                args.output.write_text(text, encoding="utf-8")
        elif args.command == "import":
            text = args.path.read_text(encoding="utf-8")
            async with store.transaction() as db:
                await device_service.import_devices(db, text)
    finally:
        await store.close()


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_logging(settings.log_level)

    try:
        asyncio.run(run(get_store(), args))
    except (DeviceDecodeError, ExportFormatError) as exc:
        logger.error("Backup rejected: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

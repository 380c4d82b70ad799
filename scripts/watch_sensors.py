#!/usr/bin/env python3
"""Watch Meraki MT sensors from both feeds.

Reads ``MERAKI_*`` environment variables, discovers the sensors of the
configured network, then prints every canonical attribute change coming
from REST polling or the MQTT push feed until interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
import time
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pymerakimt import MerakiConfig, MerakiError, MerakiMtClient  # noqa: E402
from pymerakimt.ingestion.capabilities import ordered_interfaces  # noqa: E402


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Print Meraki MT sensor state changes from polling and MQTT.",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        default=None,
        help="Override MERAKI_POLL_INTERVAL (seconds).",
    )
    parser.add_argument(
        "--no-mqtt",
        action="store_true",
        help="Use the REST polling feed only.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


def _print_change(serial: str, attribute: str, value: Any) -> None:
    stamp = time.strftime("%H:%M:%S")
    print(f"[watch] {stamp} {serial} {attribute}={value}")


async def _watch(config: MerakiConfig, duration: int) -> None:
    async with MerakiMtClient(config, on_state_change=_print_change) as client:
        await client.start()
        for entry in client.registry:
            interfaces = ", ".join(ordered_interfaces(entry.capabilities))
            print(f"[watch] {entry.serial_number} {entry.identity.display_name}: {interfaces}")

        if duration > 0:
            await asyncio.sleep(duration)
        else:
            await asyncio.Event().wait()


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.poll_interval is not None:
        overrides["poll_interval"] = args.poll_interval
    if args.no_mqtt:
        overrides["mqtt_enabled"] = False

    try:
        config = MerakiConfig.from_env(**overrides)
        with contextlib.suppress(KeyboardInterrupt):
            asyncio.run(_watch(config, args.duration))
    except MerakiError as exc:  # pragma: no cover - network/system interaction
        print(f"[watch] {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())

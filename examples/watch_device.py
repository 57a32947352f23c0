#!/usr/bin/env python3
"""Example: follow a GigaCore switch and print every change notification.

Usage::

    export GIGACORE_HOST=192.0.2.1
    python examples/watch_device.py

    # Legacy (polling) devices:
    export GIGACORE_GEN1=1
    python examples/watch_device.py

Environment variables:
    GIGACORE_HOST      Switch IP or hostname (required).
    GIGACORE_PASSWORD  Device password (default: none).
    GIGACORE_GEN1      Set to "1" for gen1 devices (default: gen2).
    GIGACORE_DEBUG     Set to "1" for debug logging.

Stop with Ctrl-C.
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

from napalm_gigacore.driver import GigaCoreDriver
from napalm_gigacore.utils.dispatch import ConnectionStatus, ConsumerHooks


def _rebuild(what: str) -> None:
    print(f"rebuild {what}")


def make_hooks(driver_ref: list[GigaCoreDriver]) -> ConsumerHooks:
    def check_feedbacks(tokens: set[str]) -> None:
        print(f"check_feedbacks: {', '.join(sorted(tokens))}")
        if "port_state" in tokens and driver_ref:
            up = [p.port_number for p in driver_ref[0].state.ports if p.link_up]
            print(f"  ports up: {up}")

    def update_status(status: ConnectionStatus, message: str | None) -> None:
        print(f"status: {status.value}" + (f" ({message})" if message else ""))

    def update_member_labels(labels: dict[int, tuple[str, str] | None]) -> None:
        for port_number, label in sorted(labels.items()):
            print(f"  port {port_number} -> {label[0] if label else '-'}")

    return ConsumerHooks(
        check_feedbacks=check_feedbacks,
        rebuild_actions=lambda: _rebuild("actions"),
        rebuild_variables=lambda: _rebuild("variables"),
        rebuild_presets=lambda: _rebuild("presets"),
        rebuild_feedbacks=lambda: _rebuild("feedbacks"),
        update_status=update_status,
        update_member_labels=update_member_labels,
    )


async def watch() -> None:
    host = os.environ.get("GIGACORE_HOST", "")
    if not host:
        print("ERROR: GIGACORE_HOST environment variable is required.", file=sys.stderr)
        sys.exit(1)

    driver_ref: list[GigaCoreDriver] = []
    driver = GigaCoreDriver(
        hostname=host,
        username="admin",
        password=os.environ.get("GIGACORE_PASSWORD", ""),
        optional_args={
            "gen1": os.environ.get("GIGACORE_GEN1", "0") == "1",
            "hooks": make_hooks(driver_ref),
        },
    )
    driver_ref.append(driver)
    driver.open()
    try:
        await asyncio.Event().wait()
    finally:
        await driver.aclose()


def main() -> None:
    level = logging.DEBUG if os.environ.get("GIGACORE_DEBUG", "0") == "1" else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        asyncio.run(watch())
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

#!/usr/bin/env python3
"""Smoke-test script: synchronise a GigaCore switch and print its facts.

Usage::

    export GIGACORE_HOST="192.168.0.50"
    export GIGACORE_PASSWORD=""        # optional, default no password
    export GIGACORE_GEN1="false"       # optional, "true" for GigaCore10/12/14R/16Xt/16RFO/26i
    export GIGACORE_SETTLE="6"         # optional, seconds to wait for the model to fill
    python examples/get_facts.py

Exit codes:
    0: facts retrieved and printed successfully.
    1: missing environment variable or connection failure.
"""

from __future__ import annotations

import asyncio
import json
import os
import sys


def _env(name: str, default: str | None = None) -> str:
    value = os.environ.get(name, default)
    if value is None:
        print(f"ERROR: required environment variable {name!r} is not set.", file=sys.stderr)
        sys.exit(1)
    return value


async def run() -> int:
    host = _env("GIGACORE_HOST")
    password = _env("GIGACORE_PASSWORD", "")
    gen1 = _env("GIGACORE_GEN1", "false").lower() in {"1", "true", "yes", "on"}
    settle = float(_env("GIGACORE_SETTLE", "6"))

    # Import here so import errors surface after env var check.
    from napalm_gigacore.driver import GigaCoreDriver

    driver = GigaCoreDriver(
        hostname=host,
        username="admin",
        password=password,
        optional_args={"gen1": gen1},
    )
    try:
        driver.open()
        await asyncio.sleep(settle)
        if not driver.is_alive()["is_alive"]:
            print(f"ERROR: {host} did not come up", file=sys.stderr)
            return 1
        output = {
            "facts": driver.get_facts(),
            "interfaces": driver.get_interfaces(),
            "vlans": driver.get_vlans(),
        }
    finally:
        await driver.aclose()

    print(json.dumps(output, indent=2))
    return 0


def main() -> None:
    sys.exit(asyncio.run(run()))


if __name__ == "__main__":
    main()

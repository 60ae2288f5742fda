#!/usr/bin/env python3
"""Cron entry point: run one sync pass with the configured mode.

Non-success outcomes are logged at error level and reflected in the exit
code so the scheduler can alert on them.

Run: uv run python scripts/scheduled_sync.py "0 */6 * * *"
"""

from __future__ import annotations

import asyncio
import logging
import sys

from stall_sync.models import SyncStatus
from stall_sync.sync.runner import run_scheduled_sync


async def main(cron: str) -> int:
    summary = await run_scheduled_sync(cron)
    print(summary.model_dump_json(indent=2))
    return 0 if summary.status is SyncStatus.SUCCESS else 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    sys.exit(asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "manual")))

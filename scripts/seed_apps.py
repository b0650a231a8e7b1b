#!/usr/bin/env python3
"""Seed the catalog from a JSON dump of Steam's app list.

Usage:
    python scripts/seed_apps.py applist.json

The file may be the raw ``GetAppList`` response or a plain list of
``{"appid": ..., "name": ...}`` objects.
"""

import asyncio
import json
import sys
from pathlib import Path

# Ensure project root is on path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from steamhistory.apps.schemas import AppEntry
from steamhistory.apps.service import AppService
from steamhistory.common.config import get_settings
from steamhistory.common.database import DatabaseManager


def load_entries(path: Path) -> list[AppEntry]:
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict):
        data = data["applist"]["apps"]
    return [AppEntry(id=raw["appid"], name=raw.get("name", "")) for raw in data]


async def seed_apps(path: Path) -> None:
    db = DatabaseManager(get_settings())
    await db.init()
    await db.create_all()

    entries = load_entries(path)
    async with db.get_session() as session:
        created, renamed = await AppService().upsert_many(session, entries)

    await db.close()
    print(f"Done. {created} apps created, {renamed} renamed.")


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print(__doc__)
        sys.exit(2)
    asyncio.run(seed_apps(Path(sys.argv[1])))

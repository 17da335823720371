import asyncio
import sys
from pathlib import Path

# Ensure project root is on sys.path when running as a script
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from stream_catalog.config import load_config
from stream_catalog.db import open_store


async def _run() -> None:
    cfg = load_config()
    store = open_store(cfg.MONGODB_URI, cfg.MONGODB_DATABASE)
    try:
        await store.ensure_indexes()
    finally:
        await store.close()


def main() -> None:
    asyncio.run(_run())
    print("DB initialized (unique index on users.email)")


if __name__ == "__main__":
    main()

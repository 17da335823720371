"""Create an admin user in the configured store.

Usage:
  python scripts/create_user.py --email a@x.com --password '...'

Users are never created through the HTTP API; this is the way in.
"""

import argparse
import asyncio
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from stream_catalog.config import load_config
from stream_catalog.db import open_store
from stream_catalog.auth.crud import create_user


async def _run(email: str, password: str, role: str) -> None:
    cfg = load_config()
    store = open_store(cfg.MONGODB_URI, cfg.MONGODB_DATABASE)
    try:
        await store.ensure_indexes()
        u = await create_user(store, email=email, password=password, role=role)
    finally:
        await store.close()

    print("Created user:")
    print(u)


def main() -> None:
    ap = argparse.ArgumentParser()
    ap.add_argument("--email", required=True)
    ap.add_argument("--password", required=True)
    ap.add_argument("--role", default="admin")
    args = ap.parse_args()

    asyncio.run(_run(args.email, args.password, args.role))


if __name__ == "__main__":
    main()

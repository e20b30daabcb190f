#!/usr/bin/env python3
"""Renumber every sibling group whose order values have gaps or duplicates.

Multi-row writes are not transactional, so an interrupted move or delete can
leave a group half renumbered. This script runs the same renumbering pass the
API applies after structural changes, across the whole tree.
"""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path

from sqlmodel import Session

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database to repair (defaults to DATABASE_URL / the configured store).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only report the sibling groups that need renumbering.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    if args.database_url:
        os.environ["DATABASE_URL"] = args.database_url

    from opsdocs.config import get_settings, reset_settings_cache
    from opsdocs.database import get_engine, init_db, reset_database_state
    from opsdocs.middleware import bind_request_id
    from opsdocs.services.tree_store import TreeStore
    from opsdocs.utils.logging import configure_logging

    configure_logging()
    reset_settings_cache()
    reset_database_state()
    init_db()

    with bind_request_id("repair-order"), Session(get_engine()) as session:
        store = TreeStore(session, get_settings())
        scopes = store.repair_ordering(dry_run=args.dry_run)

    report = {
        "dry_run": args.dry_run,
        "groups": [scope.describe() for scope in scopes],
    }
    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Create an admin account in the admin store.

Usage:
    python add_admin.py --email jane@ecoagris.org --name "Jane Doe"
    python add_admin.py --email jane@ecoagris.org --name "Jane Doe" --db /srv/admin.sqlite

The password is prompted for unless --password is given.
"""

from __future__ import annotations

import argparse
import getpass
import logging
import os
import sqlite3
import sys
from pathlib import Path

from api.auth import hash_password, validate_new_admin
from utils import store

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create an ECOAGRIS admin account.")
    parser.add_argument("--email", required=True, help="Admin email (must use the admin domain)")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--password", default=None,
                        help="Password (prompted when omitted)")
    parser.add_argument(
        "--db", type=Path, default=Path(os.getenv("APP_DB_PATH", "ecoagris_admin.sqlite")),
        help="Admin store path (default: ecoagris_admin.sqlite or APP_DB_PATH env var)",
    )
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    password = args.password if args.password is not None else getpass.getpass("Password: ")
    problem = validate_new_admin(args.name, args.email, password)
    if problem:
        logger.error(problem)
        return 2

    store.init_store(args.db)
    conn = store.connect(args.db)
    try:
        admin = store.create_admin(conn, args.email, args.name, hash_password(password))
    except sqlite3.IntegrityError:
        logger.error("An admin with email %s already exists", args.email)
        return 1
    finally:
        conn.close()
    logger.info("Admin added: %s (%s)", admin["email"], args.db)
    return 0


if __name__ == "__main__":
    sys.exit(main())

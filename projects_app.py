#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Project tracker (SQLite)

Commands:
  init                Create the schema (and audit log table); --seed loads seeds/*.csv
  menu                Interactive text menu: add, list, select, update, delete projects (default)

Notes:
- The database path comes from PROJECTS_DB_PATH or config.yaml (see projects/db.py).
- `uvicorn projects.api:app` serves the same operations over HTTP.
"""

import argparse
import logging

from projects.db import get_db_path, init_schema, read_config
from projects.logs import OperationLogContext, ensure_log_schema
from projects.menu import run_menu
from projects.services.seed_svc import seed_default


def configure_logging(level: str | None = None) -> None:
    level = (level or read_config().get("log_level") or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def cmd_init(args):
    init_schema()
    ensure_log_schema()
    print(f"Schema ready at {get_db_path()}")
    if args.seed:
        log = OperationLogContext("SEED_LOAD", user="console")
        created = seed_default(log)
        log.write("OK")
        print(f"Seeded: {created}")


def cmd_menu(args):
    init_schema()
    ensure_log_schema()
    run_menu()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Project tracker (SQLite)")
    parser.add_argument("--log-level", default=None, help="overrides config.yaml log_level")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create schema, optionally load seed data")
    p_init.add_argument("--seed", action="store_true", help="load seeds/*.csv")
    p_init.set_defaults(func=cmd_init)

    p_menu = sub.add_parser("menu", help="interactive project menu")
    p_menu.set_defaults(func=cmd_menu)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    if hasattr(args, "func"):
        args.func(args)
    else:
        cmd_menu(args)


if __name__ == "__main__":
    main()

# uiauto_heal/cli.py
"""
@file cli.py
@brief Maintenance commands for locator catalogs, healing history and event logs.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .config import HealingConfig, load_config
from .events import HealingEventLog
from .exceptions import ConfigError, PersistenceError
from .history import HealingHistoryFile
from .logsetup import setup_logging
from .repository import LocatorRepository


def _load_settings(args: argparse.Namespace) -> HealingConfig:
    if args.config:
        return load_config(args.config)
    return HealingConfig()


def _cmd_stats(config: HealingConfig, args: argparse.Namespace) -> int:
    stats = HealingEventLog(config.events_file).statistics()
    print(stats.format())
    return 0


def _cmd_list(config: HealingConfig, args: argparse.Namespace) -> int:
    repo = LocatorRepository(config)
    repo.load_all()
    history = repo.history()
    for element_id in repo.element_ids():
        marker = f"  (healed -> {history[element_id]})" if element_id in history else ""
        print(f"{element_id}{marker}")
    return 0


def _cmd_show(config: HealingConfig, args: argparse.Namespace) -> int:
    repo = LocatorRepository(config)
    repo.load_all()
    record = repo.snapshot(args.element_id)
    if record is None:
        print(f"Unknown element: {args.element_id}", file=sys.stderr)
        return 1
    print(f"Element: {record.element_id}")
    print(f"Best:    {record.best}")
    for i, strategy in enumerate(record.strategies):
        tags = []
        if i == 0:
            tags.append("primary")
        if i == record.best_index:
            tags.append("healed")
        suffix = f"  [{', '.join(tags)}]" if tags else ""
        print(f"  {i}. {strategy}{suffix}")
    return 0


def _cmd_validate(config: HealingConfig, args: argparse.Namespace) -> int:
    repo = LocatorRepository(config)
    repo.load_all()
    print(f"Catalog: {config.locators_dir}")
    print(f"Elements: {len(repo)}")
    print(f"Healed elements: {len(repo.history())}")
    if len(repo) == 0:
        print("WARNING: no elements loaded", file=sys.stderr)
        return 2
    return 0


def _cmd_reset_history(config: HealingConfig, args: argparse.Namespace) -> int:
    removed = HealingHistoryFile(config.history_file).delete()
    print("Healing history removed" if removed else "No healing history file found")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        prog="uiauto-heal",
        description="Inspect and maintain self-healing locator data",
    )
    ap.add_argument("--config", "-c", default=None, help="Path to healing settings YAML")
    ap.add_argument("--verbose", action="store_true", help="Show debug logging")
    ap.add_argument("--log-file", default=None, help="Also write diagnostic logging to this file")
    sub = ap.add_subparsers(dest="cmd", required=True)

    sub.add_parser("stats", help="Summarize the healing event log")
    sub.add_parser("list", help="List all element ids in the catalog")
    showp = sub.add_parser("show", help="Show strategies and healing state of one element")
    showp.add_argument("element_id", help="Element id, e.g. login.username")
    sub.add_parser("validate", help="Load catalog and history, report counts")
    sub.add_parser("reset-history", help="Delete the healing history file")

    args = ap.parse_args(argv)
    setup_logging(
        console_level=logging.DEBUG if args.verbose else logging.WARNING,
        log_file=args.log_file,
    )

    commands = {
        "stats": _cmd_stats,
        "list": _cmd_list,
        "show": _cmd_show,
        "validate": _cmd_validate,
        "reset-history": _cmd_reset_history,
    }

    try:
        config = _load_settings(args)
        return commands[args.cmd](config, args)
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except PersistenceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

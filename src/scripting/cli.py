#!/usr/bin/env python3
"""
Powertools Run CLI

Lists the configured commands and apps, and runs commands headless.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from common.config import Settings
from common.exceptions import PowertoolsError
from common.logging_config import add_logging_arguments, logging_options, setup_logging
from scripting.host import MemoryHost
from scripting.runtime import PowertoolsRuntime

logger = logging.getLogger(__name__)


def create_runtime(args) -> PowertoolsRuntime:
    settings = Settings.load(Path(args.settings) if args.settings else None)
    runtime = PowertoolsRuntime(MemoryHost(), settings)
    runtime.reload()
    return runtime


def cmd_list(args):
    """List registered commands and apps."""
    runtime = create_runtime(args)
    try:
        for title, registry in (("Commands", runtime.commands), ("Apps", runtime.apps)):
            bindings = registry.bindings
            print(f"{title} ({len(bindings)}):")
            for binding in bindings:
                print(f"  {binding.id}: {binding.name}")
                if binding.description:
                    print(f"    {binding.description}")
            print()
    finally:
        runtime.dispose()
    return 0


def _parse_argument(value: str):
    try:
        return json.loads(value)
    except json.JSONDecodeError:
        return value


def cmd_run(args):
    """Run a command."""
    runtime = create_runtime(args)
    try:
        if runtime.commands.get(args.id) is None:
            print(f"Command not found: {args.id}", file=sys.stderr)
            return 1

        arguments = [_parse_argument(a) for a in args.args]
        result = asyncio.run(runtime.commands.execute(args.id, *arguments))
        if result is not None:
            print(json.dumps(result, indent=2, default=str))
    finally:
        runtime.dispose()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="powertools-run",
        description="Run Powertools commands",
    )
    add_logging_arguments(parser)
    parser.add_argument("--settings", help="Settings file (JSON)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # list
    list_p = subparsers.add_parser("list", help="List commands and apps")
    list_p.set_defaults(func=cmd_list)

    # run
    run_p = subparsers.add_parser("run", help="Run a command")
    run_p.add_argument("id", help="Command id")
    run_p.add_argument("args", nargs="*", help="Arguments (JSON values or plain strings)")
    run_p.set_defaults(func=cmd_run)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(**logging_options(args))

    if args.command is None:
        parser.print_help()
        return 1

    try:
        return args.func(args)
    except PowertoolsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

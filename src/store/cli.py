#!/usr/bin/env python3
"""
Powertools Store CLI

Command-line interface for listing, installing and removing apps.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from common.config import Settings, get_app_store_url
from common.exceptions import PowertoolsError
from common.logging_config import add_logging_arguments, logging_options, setup_logging
from store.catalog_loader import CatalogLoader
from store.installer import AppDirectoryScanner, AppInstaller
from store.inventory import merge_apps
from store.storage import JsonFileStateStorage
from store.watcher import NewAppWatcher

logger = logging.getLogger(__name__)


def load_settings(args) -> Settings:
    return Settings.load(Path(args.settings) if args.settings else None)


async def _list_apps(settings: Settings):
    catalog_apps = []
    store_name = ""
    if settings.app_store_url.strip():
        catalog = await CatalogLoader().load(get_app_store_url(settings), resolve_imports=True)
        catalog_apps = catalog.apps
        store_name = catalog.name

    installed = AppDirectoryScanner(settings.apps_dir).scan()
    return store_name, merge_apps(installed, catalog_apps)


def cmd_list(args):
    """List installed and available apps."""
    settings = load_settings(args)
    store_name, apps = asyncio.run(_list_apps(settings))

    if not apps:
        print("No apps found.")
        return 0

    title = f"Apps in {store_name}" if store_name else "Apps"
    print(f"{title} ({len(apps)}):\n")
    for app in apps:
        status = "installed" if app.is_installed else "available"
        if app.upgrade_source:
            status += ", upgrade available"
        print(f"  {app.display_name or app.name} [{status}]")
        print(f"    {app.source}")
        if app.description:
            print(f"    {app.description[:80]}")
        print()

    return 0


def cmd_check_new(args):
    """Report apps published since the last check."""
    settings = load_settings(args)
    url = get_app_store_url(settings)

    watcher = NewAppWatcher(CatalogLoader(), JsonFileStateStorage(settings.state_file), url)
    new_apps = asyncio.run(watcher.check_for_new_apps())

    if not new_apps:
        print("No new apps.")
        return 0

    print(f"New apps ({len(new_apps)}):")
    for name in new_apps:
        print(f"  {name}")
    return 0


def cmd_install(args):
    """Install an app archive."""
    settings = load_settings(args)
    installer = AppInstaller(settings.apps_dir)

    print(f"Installing {args.url}...")
    path = asyncio.run(installer.install_from_url(args.url))
    print(f"Successfully installed to {path}")
    return 0


def cmd_uninstall(args):
    """Uninstall an app."""
    settings = load_settings(args)
    installer = AppInstaller(settings.apps_dir)

    if installer.uninstall(args.source):
        print(f"Successfully uninstalled {args.source}")
        return 0

    print(f"Failed to uninstall {args.source}", file=sys.stderr)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="powertools-store",
        description="Powertools App Store",
    )
    add_logging_arguments(parser)
    parser.add_argument("--settings", help="Settings file (JSON)")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # list
    list_p = subparsers.add_parser("list", help="List installed and available apps")
    list_p.set_defaults(func=cmd_list)

    # check-new
    check_p = subparsers.add_parser("check-new", help="Show newly published apps")
    check_p.set_defaults(func=cmd_check_new)

    # install
    install_p = subparsers.add_parser("install", help="Install an app archive")
    install_p.add_argument("url", help="URL of the app archive (zip)")
    install_p.set_defaults(func=cmd_install)

    # uninstall
    uninstall_p = subparsers.add_parser("uninstall", help="Uninstall an app")
    uninstall_p.add_argument("source", help="App directory name")
    uninstall_p.set_defaults(func=cmd_uninstall)

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

"""
App Store Controller - Handles messages from the app store UI.

Every request is answered with a message carrying ``success`` and, on
failure, a human-readable ``error``. Rendering is left to the UI.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from common.exceptions import PowertoolsError

from .catalog_loader import CatalogLoader
from .installer import AppDirectoryScanner, AppInstaller
from .inventory import merge_apps
from .models import Catalog, normalize_name, to_string

logger = logging.getLogger(__name__)

PostFunction = Callable[[str, Optional[Dict[str, Any]]], Union[None, Awaitable[None]]]
OpenAppFunction = Callable[[str], Union[Any, Awaitable[Any]]]


def error_to_string(e: BaseException) -> str:
    if isinstance(e, PowertoolsError):
        return e.message
    return str(e) or type(e).__name__


class AppStoreController:
    """
    Dispatches app store UI commands.

    Commands:
        reloadApps              -> appsLoaded
        installApp, upgradeApp  -> appInstalled (+ appListUpdated)
        uninstallApp            -> appUninstalled (+ appListUpdated)
        openApp                 -> (no response)
    """

    def __init__(
        self,
        loader: CatalogLoader,
        installer: AppInstaller,
        scanner: AppDirectoryScanner,
        store_url: Union[str, Callable[[], str]],
        post: PostFunction,
        open_app: Optional[OpenAppFunction] = None,
    ):
        self._loader = loader
        self._installer = installer
        self._scanner = scanner
        self._store_url = store_url
        self._post = post
        self._open_app = open_app

        self._handlers = {
            "reloadApps": self._on_reload_apps,
            "installApp": self._on_install_app,
            "upgradeApp": self._on_install_app,
            "uninstallApp": self._on_uninstall_app,
            "openApp": self._on_open_app,
        }

    async def handle(self, command: str, data: Optional[Dict[str, Any]] = None) -> bool:
        """
        Handle one UI message.

        Returns:
            False if the command is unknown.
        """
        handler = self._handlers.get(command)
        if handler is None:
            return False

        await handler(data if isinstance(data, dict) else {})
        return True

    async def post(self, command: str, data: Optional[Dict[str, Any]] = None) -> None:
        result = self._post(command, data)
        if inspect.isawaitable(result):
            await result

    async def load_catalog(self) -> Catalog:
        """User-triggered catalog load; errors propagate."""
        url = self._store_url() if callable(self._store_url) else self._store_url
        return await self._loader.load(url, resolve_imports=True)

    async def _on_reload_apps(self, data: Dict[str, Any]) -> None:
        try:
            installed = self._scanner.scan()
            catalog = await self.load_catalog()
            apps = merge_apps(installed, catalog.apps)
        except Exception as e:
            logger.error(f"Reloading apps failed: {e}")
            await self.post("appsLoaded", {
                "success": False,
                "error": error_to_string(e),
            })
            return

        await self.post("appsLoaded", {
            "success": True,
            "apps": [a.to_dict() for a in apps],
            "store": to_string(catalog.name).strip(),
        })

    async def _on_install_app(self, data: Dict[str, Any]) -> None:
        error = None
        try:
            await self._installer.install_from_url(to_string(data.get("source")).strip())
        except Exception as e:
            logger.error(f"Installing app '{data.get('name')}' failed: {e}")
            error = error_to_string(e)

        await self.post("appInstalled", {
            "success": error is None,
            "app": data,
            "error": error,
        })
        if error is None:
            await self.post("appListUpdated")

    async def _on_uninstall_app(self, data: Dict[str, Any]) -> None:
        source = to_string(data.get("source")).strip()
        if not source:
            return

        error = None
        try:
            removed = self._installer.uninstall(source)
        except OSError as e:
            logger.error(f"Could not uninstall app '{data.get('name')}': {e}")
            removed = False
            error = error_to_string(e)

        if not removed and error is None:
            # Missing directory or path outside of the apps root
            return

        await self.post("appUninstalled", {
            "success": removed,
            "app": data,
            "error": error,
        })
        if removed:
            await self.post("appListUpdated")

    async def _on_open_app(self, data: Dict[str, Any]) -> None:
        name = normalize_name(data.get("name"))
        if not name or self._open_app is None:
            return

        for app in self._scanner.scan():
            if normalize_name(app.source) != name and normalize_name(app.name) != name:
                continue

            try:
                result = self._open_app(app.source)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Opening app '{app.source}' failed: {e}")

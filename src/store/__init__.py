"""
Powertools Store

App catalogs, the merged app inventory and installation.
"""

from .catalog_loader import CatalogLoader
from .installer import AppDirectoryScanner, AppInstaller
from .inventory import merge_apps
from .models import Catalog, CatalogApp, InstalledApp, KnownAppSnapshot, MergedAppEntry
from .watcher import NewAppWatcher

__all__ = [
    "CatalogLoader",
    "AppDirectoryScanner",
    "AppInstaller",
    "merge_apps",
    "Catalog",
    "CatalogApp",
    "InstalledApp",
    "KnownAppSnapshot",
    "MergedAppEntry",
    "NewAppWatcher",
]

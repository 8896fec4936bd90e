"""
App Inventory - Merges installed apps with catalog apps.

The result is one row per normalized app name, installed apps first,
with an upgrade link where the catalog offers alternatives.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from .models import (
    CatalogApp,
    InstalledApp,
    MergedAppEntry,
    normalize_name,
    optional_string,
    to_string,
)

logger = logging.getLogger(__name__)


def ensure_http_scheme(url: str) -> str:
    """Prefix ``http://`` when the URL has no http(s) scheme."""
    if not url.lower().startswith(("https://", "http://")):
        return "http://" + url
    return url


def merge_installed(app: InstalledApp) -> MergedAppEntry:
    """Convert an installed app to an inventory row."""
    source = to_string(app.source).strip()

    name = to_string(app.name).strip() or source
    display_name = to_string(app.display_name).strip() or name

    return MergedAppEntry(
        name=name,
        display_name=display_name,
        description=optional_string(app.description),
        details=optional_string(app.details),
        icon=optional_string(app.icon),
        is_installed=True,
        source=source,
    )


def merge_catalog_app(app: CatalogApp) -> Optional[MergedAppEntry]:
    """
    Convert a catalog app to an inventory row.

    Returns:
        None if the app has no name or no source.
    """
    name = to_string(app.name).strip()
    if not normalize_name(name):
        return None

    source = to_string(app.source).strip()
    if not source:
        return None

    return MergedAppEntry(
        name=name,
        display_name=to_string(app.display_name).strip() or name,
        description=optional_string(app.description),
        details=None,
        icon=optional_string(app.icon),
        is_installed=False,
        source=ensure_http_scheme(source),
    )


def _pick_upgrade_source(representative: MergedAppEntry, group: List[MergedAppEntry]) -> Optional[str]:
    candidates = [
        a for a in group
        if not a.is_installed and a.source
    ]
    # A single remote match is not offered as an upgrade.
    if len(candidates) <= 1:
        return None

    for candidate in candidates:
        if candidate.source != representative.source:
            return candidate.source
    return None


def _sort_key(entry: MergedAppEntry):
    return (
        0 if entry.is_installed else 1,
        normalize_name(entry.display_name),
        normalize_name(entry.name),
        normalize_name(entry.source),
        normalize_name(entry.upgrade_source),
    )


def merge_apps(
    installed_apps: Iterable[InstalledApp],
    catalog_apps: Iterable[CatalogApp],
) -> List[MergedAppEntry]:
    """
    Merge installed and catalog apps into a deduplicated, sorted list.

    Args:
        installed_apps: Apps from the local apps directory
        catalog_apps: Apps from the catalog (imports already resolved)

    Returns:
        One entry per normalized name. Deterministic for identical input.
    """
    rows: List[MergedAppEntry] = [merge_installed(a) for a in installed_apps]

    for app in catalog_apps:
        row = merge_catalog_app(app)
        if row is None:
            logger.debug(f"Dropping catalog app without name or source: {app.name!r}")
            continue
        rows.append(row)

    groups: Dict[str, List[MergedAppEntry]] = {}
    for row in rows:
        groups.setdefault(normalize_name(row.name), []).append(row)

    merged: List[MergedAppEntry] = []
    for group in groups.values():
        group = sorted(group, key=lambda a: 0 if a.is_installed else 1)
        first = group[0]

        merged.append(MergedAppEntry(
            name=first.name,
            display_name=first.display_name,
            description=first.description,
            details=first.details,
            icon=first.icon,
            is_installed=first.is_installed,
            source=first.source,
            upgrade_source=_pick_upgrade_source(first, group),
        ))

    merged.sort(key=_sort_key)
    return merged

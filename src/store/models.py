"""
App Store Models - Catalog, inventory and snapshot records.

Wire names follow the catalog JSON format (``displayName``, ``lastCheck``,
``isInstalled``, ``upgradeSource``).
"""

from __future__ import annotations

import unicodedata
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any


def to_string(value: Any) -> str:
    """Convert a loosely typed JSON value to a string (None -> "")."""
    if value is None:
        return ""
    return str(value)


def normalize_name(value: Any) -> str:
    """
    Normalize a name for grouping and comparison.

    Trimmed, NFKC-normalized and case-folded. Only ever used as a key,
    never displayed.
    """
    return unicodedata.normalize("NFKC", to_string(value)).strip().casefold()


def optional_string(value: Any) -> Optional[str]:
    """Trimmed string, or None when empty."""
    text = to_string(value).strip()
    return text or None


def as_list(value: Any) -> List[Any]:
    """Normalize a JSON value to a list (absent -> [], scalar -> [scalar])."""
    if value is None:
        return []
    if isinstance(value, list):
        return list(value)
    return [value]


@dataclass(frozen=True)
class CatalogOrigin:
    """Backlink from an app to the catalog it was fetched from."""
    url: str
    catalog_name: Optional[str] = None


@dataclass(frozen=True)
class CatalogApp:
    """An app as listed in a remote catalog."""
    name: str
    source: str
    display_name: str = ""
    description: Optional[str] = None
    icon: Optional[str] = None
    origin: Optional[CatalogOrigin] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], origin: Optional[CatalogOrigin] = None) -> "CatalogApp":
        """Create from a catalog ``apps`` item."""
        return cls(
            name=to_string(data.get("name")),
            source=to_string(data.get("source")),
            display_name=to_string(data.get("displayName")),
            description=optional_string(data.get("description")),
            icon=optional_string(data.get("icon")),
            origin=origin,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the catalog wire format."""
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "icon": self.icon,
            "source": self.source,
        }


@dataclass
class Catalog:
    """One fetched app catalog."""
    url: str
    name: Optional[str] = None
    apps: List[CatalogApp] = field(default_factory=list)
    imports: List[Any] = field(default_factory=list)

    def import_urls(self, limit: int = 5) -> List[str]:
        """
        Get the import URLs to follow.

        Trimmed, non-empty and distinct, in original order, at most ``limit``.
        """
        urls: List[str] = []
        for raw in self.imports:
            url = to_string(raw).strip()
            if url and url not in urls:
                urls.append(url)
            if len(urls) >= limit:
                break
        return urls


@dataclass
class InstalledApp:
    """An app found in the local apps directory."""
    source: str
    name: Optional[str] = None
    display_name: Optional[str] = None
    description: Optional[str] = None
    details: Optional[str] = None
    icon: Optional[str] = None
    path: Optional[str] = None


@dataclass
class MergedAppEntry:
    """One row of the merged inventory. Rebuilt on every refresh."""
    name: str
    display_name: str
    source: str
    is_installed: bool
    description: Optional[str] = None
    details: Optional[str] = None
    icon: Optional[str] = None
    upgrade_source: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the presentation wire format."""
        return {
            "name": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "details": self.details,
            "icon": self.icon,
            "isInstalled": self.is_installed,
            "source": self.source,
            "upgradeSource": self.upgrade_source,
        }


@dataclass(frozen=True)
class KnownAppSnapshot:
    """Persisted record of app names already seen in a store."""
    apps: List[str]
    last_check: datetime
    store: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted wire format."""
        return {
            "apps": list(self.apps),
            "lastCheck": self.last_check.isoformat(),
            "store": self.store,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "KnownAppSnapshot":
        """
        Create from the persisted wire format.

        Raises:
            ValueError: If the record is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("snapshot must be an object")

        last_check = datetime.fromisoformat(
            to_string(data["lastCheck"]).replace("Z", "+00:00")
        )
        if last_check.tzinfo is None:
            last_check = last_check.replace(tzinfo=timezone.utc)

        return cls(
            apps=[to_string(a) for a in as_list(data.get("apps"))],
            last_check=last_check,
            store=to_string(data.get("store")),
        )

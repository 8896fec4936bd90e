"""
New-App Watcher - Reports apps that appeared in the store since the last check.

A snapshot of known app names is persisted per store URL. The first
observation of a store is a baseline and never reports anything.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Union

from common.decorators import handle_errors

from .catalog_loader import CatalogLoader
from .models import KnownAppSnapshot, normalize_name
from .storage import KEY_KNOWN_APPS, StateStorage

logger = logging.getLogger(__name__)

CHECK_INTERVAL_DAYS = 3


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def start_of_day(moment: datetime) -> datetime:
    """Truncate an aware datetime to the start of its UTC day."""
    moment = moment.astimezone(timezone.utc)
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


class NewAppWatcher:
    """
    Diffs the store's app names against a persisted snapshot.

    Calling check_for_new_apps() more often than the interval is cheap:
    no request is made until the snapshot is at least interval_days old.
    """

    def __init__(
        self,
        loader: CatalogLoader,
        storage: StateStorage,
        store_url: Union[str, Callable[[], str]],
        clock: Optional[Callable[[], datetime]] = None,
        interval_days: int = CHECK_INTERVAL_DAYS,
    ):
        """
        Initialize NewAppWatcher.

        Args:
            loader: Catalog loader
            storage: Where the snapshot is persisted
            store_url: Store URL, or a callable returning the current one
            clock: Returns the current aware datetime (default: UTC now)
            interval_days: Minimum snapshot age before re-checking
        """
        self._loader = loader
        self._storage = storage
        self._store_url = store_url
        self._clock = clock or utc_now
        self.interval_days = interval_days

    @property
    def store_url(self) -> str:
        if callable(self._store_url):
            return self._store_url()
        return self._store_url

    def get_snapshot(self) -> Optional[KnownAppSnapshot]:
        """Read the persisted snapshot; None if absent or unreadable."""
        data = self._storage.get(KEY_KNOWN_APPS)
        if data is None:
            return None

        try:
            return KnownAppSnapshot.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding malformed known-app snapshot: {e}")
            return None

    async def load_app_names(self, url: str) -> List[str]:
        """Distinct, sorted, normalized, non-empty app names of a store."""
        catalog = await self._loader.load(url, resolve_imports=True)

        names = {normalize_name(app.name) for app in catalog.apps}
        names.discard("")
        return sorted(names)

    async def check_for_new_apps(self) -> List[str]:
        """
        Check the store for apps that were not there at the last check.

        Returns:
            Newly seen app names (normalized, sorted). Empty on a baseline
            run or when the snapshot is still fresh.

        Raises:
            NetworkError, ParseError: If the store cannot be loaded
        """
        url = self.store_url
        today = start_of_day(self._clock())
        snapshot = self.get_snapshot()

        if snapshot is None or snapshot.store != url:
            # First observation of this store: baseline only
            current = await self.load_app_names(url)
            self._save(KnownAppSnapshot(apps=current, last_check=today, store=url))
            logger.info(f"Recorded {len(current)} known app(s) for '{url}'")
            return []

        age = today - start_of_day(snapshot.last_check)
        if age.days < self.interval_days:
            logger.debug(f"Known-app snapshot is {age.days} day(s) old, skipping check")
            return []

        current = await self.load_app_names(url)
        known = set(snapshot.apps)
        new_apps = [name for name in current if name not in known]

        self._save(KnownAppSnapshot(apps=current, last_check=today, store=url))

        if new_apps:
            logger.info(f"Found {len(new_apps)} new app(s) in '{url}': {', '.join(new_apps)}")
        return new_apps

    @handle_errors(default=[], log_level=logging.WARNING, message="Background check for new apps failed")
    async def check_quietly(self) -> List[str]:
        """Background variant of check_for_new_apps(): failures are logged only."""
        return await self.check_for_new_apps()

    def _save(self, snapshot: KnownAppSnapshot) -> None:
        self._storage.update(KEY_KNOWN_APPS, snapshot.to_dict())

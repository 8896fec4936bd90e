"""
App Installer - Installs, upgrades and removes apps in the local apps directory.

Every app lives in its own sub-directory of the apps root. The directory
name is the app's local source identifier.
"""

from __future__ import annotations

import base64
import io
import json
import logging
import re
import shutil
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Optional

import httpx

from common.exceptions import AppArchiveError, DownloadError

from .models import InstalledApp, normalize_name, optional_string

logger = logging.getLogger(__name__)

DOWNLOAD_TIMEOUT = 60.0

MANIFEST_FILE = "package.json"
README_FILE = "README.md"
ICON_FILE = "icon.png"


class AppDirectoryScanner:
    """Lists installed apps from the apps directory."""

    def __init__(self, apps_dir: Path):
        self.apps_dir = Path(apps_dir)

    def scan(self) -> List[InstalledApp]:
        """
        Scan the apps directory.

        Returns:
            One InstalledApp per sub-directory, sorted by directory name.
        """
        if not self.apps_dir.is_dir():
            return []

        apps = []
        for app_dir in sorted(self.apps_dir.iterdir()):
            if not app_dir.is_dir() or app_dir.name.startswith("."):
                continue
            apps.append(self.read_app(app_dir))

        return apps

    def read_app(self, app_dir: Path) -> InstalledApp:
        """Read manifest, readme and icon of one app. Unreadable parts are skipped."""
        app = InstalledApp(source=app_dir.name, path=str(app_dir))

        manifest = _read_manifest(app_dir)
        if manifest:
            app.name = optional_string(manifest.get("name"))
            app.display_name = optional_string(manifest.get("displayName"))
            app.description = optional_string(manifest.get("description"))

        try:
            readme = app_dir / README_FILE
            if readme.is_file():
                app.details = optional_string(readme.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            logger.debug(f"Cannot read README of {app_dir.name}: {e}")

        try:
            icon = app_dir / ICON_FILE
            if icon.is_file():
                encoded = base64.b64encode(icon.read_bytes()).decode("ascii")
                app.icon = f"data:image/png;base64,{encoded}"
        except OSError as e:
            logger.debug(f"Cannot read icon of {app_dir.name}: {e}")

        return app


def _read_manifest(app_dir: Path) -> Optional[dict]:
    manifest_path = app_dir / MANIFEST_FILE
    if not manifest_path.is_file():
        return None

    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.debug(f"Cannot read {manifest_path}: {e}")
        return None

    return data if isinstance(data, dict) else None


def app_directory_name(name: Optional[str]) -> str:
    """Directory name for an app: normalized name reduced to a safe slug."""
    slug = re.sub(r"[^a-z0-9._-]+", "-", normalize_name(name))
    slug = slug.strip("-.")
    return slug or "app"


class AppInstaller:
    """
    Installs app archives (zip) into the apps directory.

    Example:
        installer = AppInstaller(settings.apps_dir)
        await installer.install_from_url("https://example.org/apps/todo.zip")
    """

    def __init__(self, apps_dir: Path, client: Optional[httpx.AsyncClient] = None):
        self.apps_dir = Path(apps_dir)
        self._client = client

    async def download(self, url: str) -> bytes:
        """
        Download an app archive.

        Raises:
            DownloadError: For non-http(s) URLs, transport errors and non-2xx responses
        """
        url = (url or "").strip()
        if not url.lower().startswith(("https://", "http://")):
            raise DownloadError(url, "only http:// and https:// sources are supported")

        logger.info(f"Downloading app from '{url}'")
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=DOWNLOAD_TIMEOUT)
            else:
                async with httpx.AsyncClient(timeout=DOWNLOAD_TIMEOUT, follow_redirects=True) as client:
                    response = await client.get(url)
        except httpx.TimeoutException as e:
            raise DownloadError(url, "request timed out", cause=e) from e
        except httpx.RequestError as e:
            raise DownloadError(url, str(e) or type(e).__name__, cause=e) from e

        if not 200 <= response.status_code < 300:
            raise DownloadError(
                url,
                f"Unexpected response: [{response.status_code}] '{response.reason_phrase}'",
            )

        return response.content

    async def install_from_url(self, url: str) -> Path:
        """Download and install (or upgrade) an app."""
        data = await self.download(url)
        return self.install_from_bytes(data)

    def install_from_bytes(self, data: bytes) -> Path:
        """
        Install an app from a zip archive.

        A single top-level folder in the archive is unwrapped. An app with
        the same directory name is replaced.

        Returns:
            The installed app directory.

        Raises:
            AppArchiveError: If the archive is invalid or contains unsafe paths
        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise AppArchiveError("not a zip file", cause=e) from e

        with archive:
            for member in archive.namelist():
                path = PurePosixPath(member.replace("\\", "/"))
                if path.is_absolute() or ".." in path.parts:
                    raise AppArchiveError(f"unsafe path in archive: {member}")

            self.apps_dir.mkdir(parents=True, exist_ok=True)

            with tempfile.TemporaryDirectory(dir=self.apps_dir, prefix=".install-") as td:
                extract_root = Path(td) / "extract"
                archive.extractall(extract_root)

                app_root = extract_root
                entries = list(extract_root.iterdir())
                if len(entries) == 1 and entries[0].is_dir():
                    app_root = entries[0]

                if not any(app_root.iterdir()):
                    raise AppArchiveError("archive is empty")

                manifest = _read_manifest(app_root) or {}
                target = self.apps_dir / app_directory_name(manifest.get("name"))

                if target.exists():
                    logger.info(f"Replacing existing app in {target}")
                    shutil.rmtree(target)

                shutil.move(str(app_root), str(target))

        logger.info(f"Installed app into {target}")
        return target

    def uninstall(self, source: str) -> bool:
        """
        Remove an installed app.

        Args:
            source: The app's directory name inside the apps root

        Returns:
            True if the app directory was removed. Missing directories and
            paths outside the apps root are refused with a warning.
        """
        source = (source or "").strip()
        if not source:
            return False

        root = self.apps_dir.resolve()
        app_dir = (root / source).resolve()

        if not app_dir.is_dir():
            logger.warning(f"Directory for app '{source}' not found")
            return False

        if root not in app_dir.parents:
            logger.warning(f"Refusing to remove '{source}': outside of {root}")
            return False

        shutil.rmtree(app_dir)
        logger.info(f"Uninstalled app '{source}'")
        return True

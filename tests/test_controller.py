"""
Tests for the app store presentation controller.
"""

import httpx
import pytest

from conftest import make_zip, write_app
from store.catalog_loader import CatalogLoader
from store.controller import AppStoreController
from store.installer import AppDirectoryScanner, AppInstaller

STORE = "https://store.example.org/catalog.json"
ARCHIVE_URL = "https://cdn.example.org/notes.zip"


class Recorder:
    """Collects posted messages."""

    def __init__(self):
        self.messages = []

    def __call__(self, command, data=None):
        self.messages.append((command, data))

    def commands(self):
        return [c for c, _ in self.messages]

    def last(self, command):
        for c, data in reversed(self.messages):
            if c == command:
                return data
        return None


@pytest.fixture
def routes():
    return {
        STORE: {
            "name": " Main Store ",
            "apps": [{"name": "notes", "displayName": "Notes", "source": ARCHIVE_URL}],
        },
        ARCHIVE_URL: httpx.Response(200, content=make_zip({"package.json": {"name": "notes"}})),
    }


@pytest.fixture
def controller_parts(apps_dir, routes, make_client):
    client = make_client(routes)
    recorder = Recorder()
    opened = []
    controller = AppStoreController(
        CatalogLoader(client=client),
        AppInstaller(apps_dir, client=client),
        AppDirectoryScanner(apps_dir),
        STORE,
        recorder,
        open_app=opened.append,
    )
    return controller, recorder, opened


class TestAppStoreController:
    """Tests for AppStoreController.handle()."""

    @pytest.mark.asyncio
    async def test_unknown_command(self, controller_parts):
        controller, recorder, _ = controller_parts
        assert await controller.handle("nope", {}) is False
        assert recorder.messages == []

    @pytest.mark.asyncio
    async def test_reload_apps(self, apps_dir, controller_parts):
        controller, recorder, _ = controller_parts
        write_app(apps_dir, "todo", {"name": "todo"})

        assert await controller.handle("reloadApps") is True

        result = recorder.last("appsLoaded")
        assert result["success"] is True
        assert result["store"] == "Main Store"
        assert [a["name"] for a in result["apps"]] == ["todo", "notes"]
        assert result["apps"][0]["isInstalled"] is True

    @pytest.mark.asyncio
    async def test_reload_apps_reports_failure(self, routes, controller_parts):
        controller, recorder, _ = controller_parts
        del routes[STORE]

        await controller.handle("reloadApps")

        result = recorder.last("appsLoaded")
        assert result["success"] is False
        assert "404" in result["error"]

    @pytest.mark.asyncio
    async def test_install_app(self, apps_dir, controller_parts):
        controller, recorder, _ = controller_parts
        app = {"name": "notes", "source": ARCHIVE_URL}

        await controller.handle("installApp", app)

        assert recorder.commands() == ["appInstalled", "appListUpdated"]
        assert recorder.last("appInstalled") == {"success": True, "app": app, "error": None}
        assert (apps_dir / "notes" / "package.json").exists()

    @pytest.mark.asyncio
    async def test_install_failure(self, controller_parts):
        controller, recorder, _ = controller_parts

        await controller.handle("upgradeApp", {"name": "x", "source": "https://cdn.example.org/missing.zip"})

        assert recorder.commands() == ["appInstalled"]
        result = recorder.last("appInstalled")
        assert result["success"] is False
        assert result["error"]

    @pytest.mark.asyncio
    async def test_uninstall_app(self, apps_dir, controller_parts):
        controller, recorder, _ = controller_parts
        write_app(apps_dir, "todo", {"name": "todo"})

        await controller.handle("uninstallApp", {"name": "todo", "source": "todo"})

        assert recorder.commands() == ["appUninstalled", "appListUpdated"]
        assert recorder.last("appUninstalled")["success"] is True
        assert not (apps_dir / "todo").exists()

    @pytest.mark.asyncio
    async def test_uninstall_traversal_is_silent(self, tmp_path, controller_parts):
        controller, recorder, _ = controller_parts
        (tmp_path / "precious").mkdir()

        await controller.handle("uninstallApp", {"name": "x", "source": "../precious"})

        assert recorder.messages == []
        assert (tmp_path / "precious").exists()

    @pytest.mark.asyncio
    async def test_open_app(self, apps_dir, controller_parts):
        controller, _, opened = controller_parts
        write_app(apps_dir, "todo", {"name": "Todo"})
        write_app(apps_dir, "notes", {"name": "notes"})

        await controller.handle("openApp", {"name": " TODO "})

        assert opened == ["todo"]

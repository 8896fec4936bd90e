"""
Tests for app installation, scanning and state storage.
"""

import httpx
import pytest

from common.exceptions import AppArchiveError, DownloadError
from conftest import make_zip, write_app
from store.installer import AppDirectoryScanner, AppInstaller, app_directory_name
from store.storage import JsonFileStateStorage, MemoryStateStorage

ARCHIVE_URL = "https://cdn.example.org/todo.zip"


class TestAppDirectoryScanner:
    """Tests for AppDirectoryScanner."""

    def test_missing_directory(self, tmp_path):
        assert AppDirectoryScanner(tmp_path / "nope").scan() == []

    def test_reads_manifest_readme_icon(self, apps_dir):
        app_dir = write_app(apps_dir, "todo", {
            "name": "todo",
            "displayName": "Todo List",
            "description": "Keeps track",
        }, readme="# Todo\n")
        (app_dir / "icon.png").write_bytes(b"\x89PNG")

        [app] = AppDirectoryScanner(apps_dir).scan()
        assert app.source == "todo"
        assert app.display_name == "Todo List"
        assert app.description == "Keeps track"
        assert app.details == "# Todo"
        assert app.icon.startswith("data:image/png;base64,")

    def test_broken_manifest_ignored(self, apps_dir):
        app_dir = apps_dir / "broken"
        app_dir.mkdir()
        (app_dir / "package.json").write_text("{oops")

        [app] = AppDirectoryScanner(apps_dir).scan()
        assert app.source == "broken"
        assert app.name is None

    def test_skips_hidden_and_files(self, apps_dir):
        (apps_dir / ".install-123").mkdir()
        (apps_dir / "notes.txt").write_text("x")
        write_app(apps_dir, "todo", {"name": "todo"})

        assert [a.source for a in AppDirectoryScanner(apps_dir).scan()] == ["todo"]


@pytest.mark.unit
class TestAppDirectoryName:
    """Tests for app_directory_name."""

    def test_slug(self):
        assert app_directory_name(" My Todo/App ") == "my-todo-app"

    def test_fallback(self):
        assert app_directory_name(None) == "app"
        assert app_directory_name("..") == "app"


class TestAppInstaller:
    """Tests for AppInstaller."""

    def test_install_unwraps_single_folder(self, apps_dir):
        data = make_zip({
            "todo-1.0/package.json": {"name": "Todo"},
            "todo-1.0/index.html": "<html></html>",
        })

        target = AppInstaller(apps_dir).install_from_bytes(data)

        assert target == apps_dir / "todo"
        assert (target / "index.html").read_text() == "<html></html>"
        assert [p.name for p in apps_dir.iterdir()] == ["todo"]

    def test_install_replaces_existing(self, apps_dir):
        write_app(apps_dir, "todo", {"name": "todo"})
        (apps_dir / "todo" / "old.txt").write_text("old")

        data = make_zip({"package.json": {"name": "todo"}, "new.txt": "new"})
        target = AppInstaller(apps_dir).install_from_bytes(data)

        assert (target / "new.txt").exists()
        assert not (target / "old.txt").exists()

    def test_install_without_manifest(self, apps_dir):
        target = AppInstaller(apps_dir).install_from_bytes(make_zip({"index.html": "x"}))
        assert target.name == "app"

    @pytest.mark.parametrize("member", ["../evil.txt", "a/../../evil"])
    def test_rejects_traversal(self, apps_dir, member):
        data = make_zip({"package.json": {"name": "x"}, member: "evil"})
        with pytest.raises(AppArchiveError):
            AppInstaller(apps_dir).install_from_bytes(data)
        assert list(apps_dir.iterdir()) == []

    def test_rejects_non_zip(self, apps_dir):
        with pytest.raises(AppArchiveError):
            AppInstaller(apps_dir).install_from_bytes(b"not a zip")

    @pytest.mark.asyncio
    async def test_install_from_url(self, apps_dir):
        data = make_zip({"package.json": {"name": "todo"}})

        def handler(request):
            return httpx.Response(200, content=data)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            target = await AppInstaller(apps_dir, client=client).install_from_url(ARCHIVE_URL)

        assert (target / "package.json").exists()

    @pytest.mark.asyncio
    async def test_download_non_2xx(self, apps_dir, make_client):
        async with make_client({}) as client:
            with pytest.raises(DownloadError) as exc_info:
                await AppInstaller(apps_dir, client=client).install_from_url(ARCHIVE_URL)

        assert "404" in exc_info.value.message

    @pytest.mark.asyncio
    @pytest.mark.parametrize("url", ["file:///etc/passwd", "ftp://x/app.zip", ""])
    async def test_download_refuses_other_schemes(self, apps_dir, url):
        with pytest.raises(DownloadError):
            await AppInstaller(apps_dir).install_from_url(url)

    def test_uninstall(self, apps_dir):
        write_app(apps_dir, "todo", {"name": "todo"})
        assert AppInstaller(apps_dir).uninstall("todo") is True
        assert not (apps_dir / "todo").exists()

    def test_uninstall_missing(self, apps_dir):
        assert AppInstaller(apps_dir).uninstall("nope") is False

    def test_uninstall_refuses_traversal(self, tmp_path, apps_dir):
        outside = tmp_path / "precious"
        outside.mkdir()

        installer = AppInstaller(apps_dir)
        assert installer.uninstall("../precious") is False
        assert installer.uninstall(str(outside)) is False
        assert installer.uninstall(".") is False
        assert outside.exists()
        assert apps_dir.exists()


class TestStateStorage:
    """Tests for the key/value state storages."""

    def test_memory_storage_copies(self):
        storage = MemoryStateStorage()
        value = {"apps": ["a"]}
        storage.update("k", value)
        value["apps"].append("b")

        assert storage.get("k") == {"apps": ["a"]}

    def test_memory_storage_none_removes(self):
        storage = MemoryStateStorage({"k": 1})
        storage.update("k", None)
        assert storage.get("k", "default") == "default"

    def test_json_storage_persists(self, tmp_path):
        path = tmp_path / "nested" / "state.json"
        JsonFileStateStorage(path).update("k", {"x": 1})

        assert JsonFileStateStorage(path).get("k") == {"x": 1}

    def test_json_storage_ignores_corrupt_file(self, tmp_path):
        path = tmp_path / "state.json"
        path.write_text("[1, 2")

        storage = JsonFileStateStorage(path)
        assert storage.get("k") is None
        storage.update("k", 2)
        assert storage.get("k") == 2

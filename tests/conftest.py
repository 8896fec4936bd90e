"""
Pytest configuration and shared fixtures for Powertools tests.

Provides in-memory hosts, HTTP mocks and temporary directories.
"""

import io
import json
import os
import zipfile
import pytest
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Generator
import sys

import httpx

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============ Environment Fixtures ============

@pytest.fixture
def temp_home(tmp_path: Path) -> Generator[Path, None, None]:
    """Provide a temporary home directory for tests."""
    old_home = os.environ.get('HOME')
    os.environ['HOME'] = str(tmp_path)

    (tmp_path / ".config/powertools").mkdir(parents=True)
    (tmp_path / ".local/share/powertools").mkdir(parents=True)

    yield tmp_path

    if old_home:
        os.environ['HOME'] = old_home
    else:
        os.environ.pop('HOME', None)


@pytest.fixture
def apps_dir(tmp_path: Path) -> Path:
    """Provide an empty apps directory."""
    path = tmp_path / "apps"
    path.mkdir()
    return path


@pytest.fixture
def scripts_dir(tmp_path: Path) -> Path:
    """Provide an empty scripts directory."""
    path = tmp_path / "scripts"
    path.mkdir()
    return path


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2024, 5, 10, 15, 30, tzinfo=timezone.utc)


# ============ HTTP Fixtures ============

def json_routes(routes: Dict[str, object]) -> httpx.MockTransport:
    """
    Mock transport answering from a URL -> response mapping.

    Values are JSON-serialized unless they are an httpx.Response or an
    exception (raised). Unknown URLs answer 404.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        value = routes.get(str(request.url))
        if value is None:
            return httpx.Response(404, request=request)
        if isinstance(value, Exception):
            raise value
        if isinstance(value, httpx.Response):
            return value
        return httpx.Response(200, json=value, request=request)

    return httpx.MockTransport(handler)


@pytest.fixture
def make_client():
    """Factory for AsyncClients backed by a route mapping."""
    def factory(routes: Dict[str, object]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=json_routes(routes))
    return factory


def make_zip(files: Dict[str, object]) -> bytes:
    """Build a zip archive in memory. Dict values are written as JSON."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in files.items():
            if isinstance(content, dict):
                content = json.dumps(content)
            archive.writestr(name, content)
    return buffer.getvalue()


def write_app(apps_dir: Path, source: str, manifest: Dict[str, object], readme: str = None) -> Path:
    """Create an installed app directory."""
    app_dir = apps_dir / source
    app_dir.mkdir(parents=True)
    (app_dir / "package.json").write_text(json.dumps(manifest), encoding="utf-8")
    if readme is not None:
        (app_dir / "README.md").write_text(readme, encoding="utf-8")
    return app_dir


# ============ Scripting Fixtures ============

@pytest.fixture
def host():
    """In-memory editor host."""
    from scripting.host import MemoryHost
    return MemoryHost()


@pytest.fixture
def write_script(scripts_dir: Path):
    """Write a script file and return its path."""
    def factory(name: str, source: str) -> Path:
        path = scripts_dir / name
        path.write_text(source, encoding="utf-8")
        return path
    return factory


# ============ Marker Configuration ============

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast unit tests with no external deps"
    )
    config.addinivalue_line(
        "markers", "integration: tests that touch the filesystem or run end to end"
    )

"""
Tests for the catalog loader.
"""

import httpx
import pytest

from common.exceptions import NetworkError, ParseError
from store.catalog_loader import CatalogLoader, parse_catalog
from store.models import Catalog

STORE = "https://store.example.org/catalog.json"


def catalog(name, *app_names, imports=None):
    data = {
        "name": name,
        "apps": [{"name": n, "source": f"https://cdn.example.org/{n}.zip"} for n in app_names],
    }
    if imports is not None:
        data["imports"] = imports
    return data


@pytest.mark.unit
class TestParseCatalog:
    """Tests for catalog document parsing."""

    def test_single_app_object_becomes_list(self):
        result = parse_catalog(STORE, {"apps": {"name": "todo", "source": "x"}})
        assert [a.name for a in result.apps] == ["todo"]

    def test_missing_apps(self):
        result = parse_catalog(STORE, {"name": "Empty"})
        assert result.apps == []
        assert result.name == "Empty"

    def test_non_object_items_skipped(self):
        result = parse_catalog(STORE, {"apps": [1, "x", {"name": "ok", "source": "s"}]})
        assert [a.name for a in result.apps] == ["ok"]

    def test_origin_backlink(self):
        result = parse_catalog(STORE, catalog("Main", "todo"))
        origin = result.apps[0].origin
        assert origin.url == STORE
        assert origin.catalog_name == "Main"

    def test_fields_coerced_to_strings(self):
        result = parse_catalog(STORE, {"apps": [{"name": 42, "source": None}]})
        app = result.apps[0]
        assert app.name == "42"
        assert app.source == ""

    def test_top_level_must_be_object(self):
        with pytest.raises(ParseError):
            parse_catalog(STORE, [1, 2, 3])


@pytest.mark.unit
class TestImportUrls:
    """Tests for import URL selection."""

    def test_trimmed_distinct_limited(self):
        c = Catalog(url=STORE, imports=[" a ", "", "a", None, "b", "c", "d", "e", "f", "g"])
        assert c.import_urls(5) == ["a", "b", "c", "d", "e"]


class TestCatalogLoader:
    """Tests for CatalogLoader over a mocked transport."""

    @pytest.mark.asyncio
    async def test_load_without_imports(self, make_client):
        routes = {
            STORE: catalog("Main", "todo", imports=["https://other.example.org/c.json"]),
            "https://other.example.org/c.json": catalog("Other", "notes"),
        }
        async with make_client(routes) as client:
            result = await CatalogLoader(client=client).load(STORE)

        assert [a.name for a in result.apps] == ["todo"]

    @pytest.mark.asyncio
    async def test_imports_resolved_one_level(self, make_client):
        """Own apps first, then the apps of the first five distinct imports."""
        imports = [f"https://i{n}.example.org/c.json" for n in range(7)]
        routes = {STORE: catalog("Main", "own", imports=[imports[0], imports[0]] + imports[1:])}
        for n, url in enumerate(imports):
            routes[url] = catalog(f"I{n}", f"app{n}", imports=["https://deep.example.org/c.json"])
        routes["https://deep.example.org/c.json"] = catalog("Deep", "deep")

        async with make_client(routes) as client:
            result = await CatalogLoader(client=client).load(STORE, resolve_imports=True)

        assert [a.name for a in result.apps] == ["own", "app0", "app1", "app2", "app3", "app4"]

    @pytest.mark.asyncio
    async def test_failing_import_skipped(self, make_client):
        routes = {
            STORE: catalog("Main", "own", imports=[
                "https://missing.example.org/c.json",
                "https://broken.example.org/c.json",
                "https://ok.example.org/c.json",
            ]),
            "https://broken.example.org/c.json": httpx.Response(200, content=b"{not json"),
            "https://ok.example.org/c.json": catalog("Ok", "extra"),
        }
        async with make_client(routes) as client:
            result = await CatalogLoader(client=client).load(STORE, resolve_imports=True)

        assert [a.name for a in result.apps] == ["own", "extra"]

    @pytest.mark.asyncio
    async def test_non_2xx_raises_network_error(self, make_client):
        routes = {STORE: httpx.Response(503)}
        async with make_client(routes) as client:
            with pytest.raises(NetworkError) as exc_info:
                await CatalogLoader(client=client).load(STORE)

        assert exc_info.value.status_code == 503
        assert exc_info.value.message == "Unexpected response: [503] 'Service Unavailable'"

    @pytest.mark.asyncio
    async def test_timeout_raises_network_error(self, make_client):
        routes = {STORE: httpx.ReadTimeout("too slow")}
        async with make_client(routes) as client:
            with pytest.raises(NetworkError) as exc_info:
                await CatalogLoader(client=client).load(STORE)

        assert exc_info.value.status_code is None

    @pytest.mark.asyncio
    async def test_malformed_body_raises_parse_error(self, make_client):
        routes = {STORE: httpx.Response(200, content=b"<html>")}
        async with make_client(routes) as client:
            with pytest.raises(ParseError):
                await CatalogLoader(client=client).load(STORE)

    @pytest.mark.asyncio
    async def test_failing_root_propagates_with_imports(self, make_client):
        async with make_client({}) as client:
            with pytest.raises(NetworkError):
                await CatalogLoader(client=client).load(STORE, resolve_imports=True)

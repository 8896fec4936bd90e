"""
Catalog Loader - Fetches remote app catalogs.

A catalog may import further catalogs. Imports are followed one level
deep only and at most MAX_IMPORTS of them, one request at a time.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

import httpx

from common.decorators import timed
from common.exceptions import CatalogError, NetworkError, ParseError

from .models import Catalog, CatalogApp, CatalogOrigin, as_list, optional_string

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0
MAX_IMPORTS = 5


class CatalogLoader:
    """
    Loads app catalogs over HTTP.

    Example:
        loader = CatalogLoader()
        catalog = await loader.load("https://example.org/store.json", resolve_imports=True)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = DEFAULT_TIMEOUT,
        max_imports: int = MAX_IMPORTS,
    ):
        """
        Initialize CatalogLoader.

        Args:
            client: Shared HTTP client (a private one is opened per load otherwise)
            timeout: Request timeout in seconds
            max_imports: Maximum number of imported catalogs to follow
        """
        self._client = client
        self.timeout = timeout
        self.max_imports = max_imports

    @timed
    async def load(self, url: str, resolve_imports: bool = False) -> Catalog:
        """
        Load a catalog.

        Args:
            url: Catalog URL
            resolve_imports: Append the apps of imported catalogs (depth 1)

        Returns:
            The parsed catalog.

        Raises:
            NetworkError: On timeout, transport failure or non-2xx status
            ParseError: If the body is not a catalog document
        """
        if self._client is not None:
            return await self._load(self._client, url, resolve_imports)

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await self._load(client, url, resolve_imports)

    async def _load(self, client: httpx.AsyncClient, url: str, resolve_imports: bool) -> Catalog:
        catalog = await self._fetch(client, url)

        if resolve_imports:
            for import_url in catalog.import_urls(self.max_imports):
                try:
                    sub_catalog = await self._fetch(client, import_url)
                except CatalogError as e:
                    logger.debug(f"Skipping import '{import_url}' of '{url}': {e}")
                    continue

                catalog.apps.extend(sub_catalog.apps)

        return catalog

    async def _fetch(self, client: httpx.AsyncClient, url: str) -> Catalog:
        logger.debug(f"Loading app catalog from '{url}'")

        try:
            response = await client.get(url, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise NetworkError(url, "request timed out", cause=e) from e
        except httpx.RequestError as e:
            raise NetworkError(url, str(e) or type(e).__name__, cause=e) from e

        if not 200 <= response.status_code < 300:
            raise NetworkError(
                url,
                "unexpected response",
                status_code=response.status_code,
                status_text=response.reason_phrase,
            )

        try:
            data = json.loads(response.content.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ParseError(url, str(e), cause=e) from e

        return parse_catalog(url, data)


def parse_catalog(url: str, data: object) -> Catalog:
    """
    Build a Catalog from a decoded catalog document.

    Raises:
        ParseError: If the document is not an object
    """
    if not isinstance(data, dict):
        raise ParseError(url, f"expected an object, got {type(data).__name__}")

    catalog = Catalog(
        url=url,
        name=optional_string(data.get("name")),
        imports=as_list(data.get("imports")),
    )

    origin = CatalogOrigin(url=url, catalog_name=catalog.name)
    for item in as_list(data.get("apps")):
        if not isinstance(item, dict):
            logger.debug(f"Ignoring non-object app entry in '{url}'")
            continue
        catalog.apps.append(CatalogApp.from_dict(item, origin))

    return catalog

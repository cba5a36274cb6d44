"""
PlugSync Catalog Source.

Downloads the remote list of publishable plugins and normalizes it into
CatalogEntry records. A fetch yields the whole catalog or fails; partial
catalogs are never returned.
"""

from __future__ import annotations

from typing import Any

import requests

from plugsync.core.errors import NetworkError, ParseError, PlugSyncError
from plugsync.core.logging import get_logger
from plugsync.core.models import CatalogEntry

logger = get_logger(__name__)


def _require(mapping: Any, key: str, kind: type, where: str) -> Any:
    if not isinstance(mapping, dict):
        raise ParseError(f"{where} is not an object")
    if key not in mapping:
        raise ParseError(f"{where} is missing '{key}'")
    value = mapping[key]
    if not isinstance(value, kind):
        raise ParseError(f"{where}.{key} should be {kind.__name__}, got {type(value).__name__}")
    return value


def parse_catalog(document: Any) -> tuple[CatalogEntry, ...]:
    """
    Build catalog entries from a decoded catalog document.

    Each description contributes one entry named after its first fork.
    """
    descriptions = _require(document, "PluginDescriptions", list, "catalog")

    entries: list[CatalogEntry] = []
    for index, item in enumerate(descriptions):
        where = f"PluginDescriptions[{index}]"
        description = _require(item, "Description", str, where)
        forks = _require(item, "Forks", list, where)
        if not forks:
            raise ParseError(f"{where}.Forks is empty")
        fork = forks[0]
        entries.append(
            CatalogEntry(
                name=_require(fork, "Name", str, f"{where}.Forks[0]"),
                author=_require(fork, "Author", str, f"{where}.Forks[0]"),
                description=description,
            )
        )
    return tuple(entries)


class CatalogSource:
    """Fetches the plugin catalog from a fixed URL."""

    def __init__(
        self,
        url: str | None,
        timeout: float | None = None,
        http: requests.Session | None = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._http = http or requests.Session()

    def fetch(self) -> tuple[CatalogEntry, ...]:
        """Fetch and parse the catalog. Raises NetworkError or ParseError."""
        if not self.url:
            raise NetworkError("No catalog URL configured")

        try:
            response = self._http.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise NetworkError(f"Catalog download failed: {e}") from e

        try:
            document = response.json()
        except ValueError as e:
            raise ParseError(f"Catalog is not valid JSON: {e}") from e

        entries = parse_catalog(document)
        logger.info("Catalog fetched", url=self.url, entries=len(entries))
        return entries

    def try_fetch(self) -> tuple[CatalogEntry, ...] | None:
        """Fetch the catalog, returning None instead of raising."""
        try:
            return self.fetch()
        except PlugSyncError as e:
            logger.warning(
                "Catalog unavailable",
                url=self.url,
                error_type=type(e).__name__,
                error=str(e),
            )
            return None

"""
Tests for plugsync.plugins.catalog module.
"""

from unittest.mock import Mock

import pytest
import requests

from plugsync.core.errors import NetworkError, ParseError
from plugsync.core.models import CatalogEntry
from plugsync.plugins.catalog import CatalogSource, parse_catalog

CATALOG_URL = "https://catalog.example.invalid/plugins.json"

CATALOG_DOCUMENT = {
    "PluginDescriptions": [
        {
            "Description": "Adds a widget",
            "Forks": [
                {"Name": "Widget", "Author": "alice"},
                {"Name": "Widget", "Author": "bob"},
            ],
        },
        {
            "Description": "Tracks gadgets",
            "Forks": [{"Name": "Gadget", "Author": "carol"}],
        },
    ]
}


def http_returning(document=None, status_error=None, json_error=None) -> Mock:
    response = Mock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = document
    http = Mock(spec=requests.Session)
    http.get.return_value = response
    return http


class TestParseCatalog:
    """Tests for parse_catalog."""

    def test_two_descriptions(self) -> None:
        entries = parse_catalog(CATALOG_DOCUMENT)
        assert entries == (
            CatalogEntry(name="Widget", author="alice", description="Adds a widget"),
            CatalogEntry(name="Gadget", author="carol", description="Tracks gadgets"),
        )

    def test_empty_catalog(self) -> None:
        assert parse_catalog({"PluginDescriptions": []}) == ()

    def test_missing_forks(self) -> None:
        with pytest.raises(ParseError, match="Forks"):
            parse_catalog({"PluginDescriptions": [{"Description": "No forks"}]})

    def test_empty_forks(self) -> None:
        with pytest.raises(ParseError):
            parse_catalog({"PluginDescriptions": [{"Description": "x", "Forks": []}]})

    def test_fork_missing_author(self) -> None:
        with pytest.raises(ParseError, match="Author"):
            parse_catalog(
                {"PluginDescriptions": [{"Description": "x", "Forks": [{"Name": "Widget"}]}]}
            )

    def test_missing_descriptions(self) -> None:
        with pytest.raises(ParseError):
            parse_catalog({"Plugins": []})

    def test_not_an_object(self) -> None:
        with pytest.raises(ParseError):
            parse_catalog(["Widget"])

    def test_wrong_type(self) -> None:
        with pytest.raises(ParseError):
            parse_catalog({"PluginDescriptions": [{"Description": 3, "Forks": []}]})


class TestCatalogSource:
    """Tests for CatalogSource."""

    def test_fetch(self) -> None:
        http = http_returning(CATALOG_DOCUMENT)
        source = CatalogSource(CATALOG_URL, timeout=5.0, http=http)

        entries = source.fetch()
        assert [e.name for e in entries] == ["Widget", "Gadget"]
        http.get.assert_called_once_with(CATALOG_URL, timeout=5.0)

    def test_no_url(self) -> None:
        http = http_returning(CATALOG_DOCUMENT)
        source = CatalogSource(None, http=http)
        with pytest.raises(NetworkError):
            source.fetch()
        http.get.assert_not_called()

    def test_http_error(self) -> None:
        http = http_returning(status_error=requests.HTTPError("404 Not Found"))
        with pytest.raises(NetworkError, match="404"):
            CatalogSource(CATALOG_URL, http=http).fetch()

    def test_connection_error(self) -> None:
        http = Mock(spec=requests.Session)
        http.get.side_effect = requests.ConnectionError("unreachable")
        with pytest.raises(NetworkError):
            CatalogSource(CATALOG_URL, http=http).fetch()

    def test_invalid_json(self) -> None:
        http = http_returning(json_error=ValueError("Expecting value"))
        with pytest.raises(ParseError):
            CatalogSource(CATALOG_URL, http=http).fetch()

    def test_malformed_document(self) -> None:
        http = http_returning({"PluginDescriptions": [{"Description": "x"}]})
        with pytest.raises(ParseError):
            CatalogSource(CATALOG_URL, http=http).fetch()

    def test_try_fetch_success(self) -> None:
        source = CatalogSource(CATALOG_URL, http=http_returning(CATALOG_DOCUMENT))
        assert len(source.try_fetch()) == 2

    def test_try_fetch_never_raises(self) -> None:
        failing = [
            CatalogSource(None, http=http_returning(CATALOG_DOCUMENT)),
            CatalogSource(CATALOG_URL, http=http_returning(status_error=requests.HTTPError("500"))),
            CatalogSource(CATALOG_URL, http=http_returning(json_error=ValueError("bad"))),
            CatalogSource(CATALOG_URL, http=http_returning({"PluginDescriptions": "nope"})),
        ]
        for source in failing:
            assert source.try_fetch() is None

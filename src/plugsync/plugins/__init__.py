"""
PlugSync Plugin Management.

Repository probing, the remote catalog, the plugin inventory and the
install/update/delete operations.
"""

from plugsync.plugins.base import InMemoryRuntime, LoadedPlugin, RuntimeBridge
from plugsync.plugins.catalog import CatalogSource, parse_catalog
from plugsync.plugins.inventory import PluginInventory
from plugsync.plugins.operations import (
    DeleteJob,
    FetchCatalogJob,
    InstallJob,
    RefreshJob,
    UpdateJob,
    repo_name_from_url,
)
from plugsync.plugins.probe import RepositoryProbe

__all__ = [
    "CatalogSource",
    "DeleteJob",
    "FetchCatalogJob",
    "InMemoryRuntime",
    "InstallJob",
    "LoadedPlugin",
    "PluginInventory",
    "RefreshJob",
    "RepositoryProbe",
    "RuntimeBridge",
    "UpdateJob",
    "parse_catalog",
    "repo_name_from_url",
]

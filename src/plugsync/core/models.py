"""
PlugSync data models.

Defines the records that describe plugin checkouts, their remotes and
the remote catalog.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from plugsync.plugins.base import LoadedPlugin

GITHUB_MARKERS = ("github.com/", "github.com:")


class VersionStatus(Enum):
    """Synchronization state of a plugin folder against its remote."""

    LATEST = auto()
    UPDATE_AVAILABLE = auto()
    UNTRACKED = auto()  # Repository without a same-named branch on origin
    NOT_A_REPOSITORY = auto()


@dataclass(frozen=True, eq=False)
class RemoteIdentity:
    """Owner/repository pair identifying a plugin's upstream.

    Equality and hashing ignore case on both fields.
    """

    author: str
    name: str

    def _key(self) -> tuple[str, str]:
        return (self.author.casefold(), self.name.casefold())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RemoteIdentity):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return f"{self.author}/{self.name}"

    @classmethod
    def from_url(cls, url: str | None) -> RemoteIdentity | None:
        """Parse ``github.com/<owner>/<repo>[.git]`` out of a remote URL.

        Returns None for anything that does not carry the marker or does
        not split into exactly an owner and a repository.
        """
        if not url:
            return None

        remainder = None
        for marker in GITHUB_MARKERS:
            index = url.find(marker)
            if index != -1:
                remainder = url[index + len(marker):]
                break
        if remainder is None:
            return None

        remainder = remainder.strip().rstrip("/")
        if remainder.endswith(".git"):
            remainder = remainder[: -len(".git")]

        parts = remainder.split("/")
        if len(parts) != 2 or not all(parts):
            return None
        return cls(author=parts[0], name=parts[1])


@dataclass(frozen=True)
class CatalogEntry:
    """A publishable plugin listed in the remote catalog."""

    name: str
    author: str
    description: str = ""

    @property
    def identity(self) -> RemoteIdentity:
        return RemoteIdentity(author=self.author, name=self.name)

    def matches(self, identity: RemoteIdentity | None) -> bool:
        return identity is not None and self.identity == identity

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "author": self.author,
            "description": self.description,
        }


@dataclass(frozen=True)
class ProbeResult:
    """Outcome of inspecting one folder as a git checkout."""

    is_repo: bool
    remote_url: str | None = None
    is_up_to_date: bool | None = None  # None: no tracking branch on origin
    branch: str | None = None
    ahead: int | None = None
    behind: int | None = None

    @classmethod
    def not_a_repository(cls) -> ProbeResult:
        return cls(is_repo=False)

    @classmethod
    def failed(cls) -> ProbeResult:
        return cls(is_repo=False, is_up_to_date=False)

    @property
    def has_tracking_branch(self) -> bool:
        return self.is_repo and self.is_up_to_date is not None


@dataclass(frozen=True)
class PluginRecord:
    """One plugin folder as seen by a single inventory scan."""

    folder_name: str
    folder_path: Path
    loaded_handle: LoadedPlugin | None = None
    is_version_controlled: bool = False
    is_up_to_date: bool = False
    has_tracking_branch: bool = False
    remote_url: str | None = None
    remote_identity: RemoteIdentity | None = None
    branch: str | None = None
    ahead: int | None = None
    behind: int | None = None
    catalog_entry: CatalogEntry | None = None

    @property
    def is_loaded(self) -> bool:
        return self.loaded_handle is not None

    @property
    def version_status(self) -> VersionStatus:
        if not self.is_version_controlled:
            return VersionStatus.NOT_A_REPOSITORY
        if not self.has_tracking_branch:
            return VersionStatus.UNTRACKED
        if self.is_up_to_date:
            return VersionStatus.LATEST
        return VersionStatus.UPDATE_AVAILABLE

    def to_dict(self) -> dict[str, Any]:
        return {
            "folder_name": self.folder_name,
            "folder_path": str(self.folder_path),
            "loaded": self.is_loaded,
            "is_version_controlled": self.is_version_controlled,
            "is_up_to_date": self.is_up_to_date,
            "version_status": self.version_status.name,
            "remote_url": self.remote_url,
            "remote_identity": str(self.remote_identity) if self.remote_identity else None,
            "branch": self.branch,
            "ahead": self.ahead,
            "behind": self.behind,
            "catalog": self.catalog_entry.to_dict() if self.catalog_entry else None,
        }


@dataclass(frozen=True)
class InventorySnapshot:
    """Immutable view of every plugin folder at one point in time."""

    records: tuple[PluginRecord, ...] = ()
    taken_at: datetime = field(default_factory=datetime.now)

    def __iter__(self) -> Iterator[PluginRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def get(self, folder_name: str) -> PluginRecord | None:
        for record in self.records:
            if record.folder_name == folder_name:
                return record
        return None

    def names(self) -> list[str]:
        return [record.folder_name for record in self.records]

    def find_by_identity(self, identity: RemoteIdentity) -> PluginRecord | None:
        for record in self.records:
            if record.remote_identity == identity:
                return record
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "taken_at": self.taken_at.isoformat(),
            "total_plugins": len(self.records),
            "plugins": [record.to_dict() for record in self.records],
        }


@dataclass(frozen=True)
class CatalogListing:
    """A catalog entry joined with the local checkout that provides it."""

    entry: CatalogEntry
    installed: PluginRecord | None = None

    @property
    def is_installed(self) -> bool:
        return self.installed is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.entry.to_dict(),
            "installed": self.is_installed,
            "folder_name": self.installed.folder_name if self.installed else None,
        }

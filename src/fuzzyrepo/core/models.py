"""
Core data models for fuzzyrepo.

Repository records come from three places (GitHub listing, local scan, the
on-disk cache) and are keyed by lower-cased ``full_name``.

Modified: 2025-11-20
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Dict, Optional

from dateutil import parser as date_parser


LOCAL_OWNER = "local"


class Affiliation(Enum):
    """How a repository relates to the user (GitHub affiliation, or local-only)."""

    OWNER = "owner"
    COLLABORATOR = "collaborator"
    ORGANIZATION_MEMBER = "organization_member"
    LOCAL = "local"

    @classmethod
    def parse(cls, value: str) -> "Affiliation":
        """Parse a stored affiliation string, falling back to LOCAL for unknown values."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.LOCAL


# Fetch order for remote affiliation classes. Deduplication keeps the first
# occurrence, so this order decides which tag wins.
AFFILIATION_PRIORITY = (
    Affiliation.OWNER,
    Affiliation.COLLABORATOR,
    Affiliation.ORGANIZATION_MEMBER,
)


def utcnow() -> datetime:
    """Timezone-aware current time (all stored timestamps are UTC)."""
    return datetime.now(timezone.utc)


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = date_parser.parse(str(value))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Repository:
    """
    A repository as shown in the launcher.

    ``search_text`` is derived from owner/name/full_name on every access, so it
    can never go stale and is never serialized.
    """

    owner: str
    name: str
    full_name: str
    ssh_url: str = ""
    local_path: str = ""
    exists_local: bool = False
    affiliation: Affiliation = Affiliation.LOCAL

    @property
    def key(self) -> str:
        """Case-insensitive identity key."""
        return self.full_name.lower()

    @property
    def search_text(self) -> str:
        return f"{self.owner} {self.name} {self.full_name}".lower()

    @property
    def is_local_only(self) -> bool:
        return self.affiliation is Affiliation.LOCAL

    @property
    def html_url(self) -> str:
        return f"https://github.com/{self.owner}/{self.name}"

    @property
    def pulls_url(self) -> str:
        return f"{self.html_url}/pulls"

    def copy(self, **changes: Any) -> "Repository":
        """Return a shallow copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_github_response(cls, data: Any, affiliation: Affiliation) -> "Repository":
        """
        Create a Repository from a GitHub REST repository payload.

        Args:
            data: Mapping (or attribute dict, as returned by ghapi) with
                ``name``, ``full_name``, ``ssh_url`` and ``owner.login``
            affiliation: Affiliation class the repo was listed under

        Returns:
            Repository instance with ``exists_local=False``
        """
        owner = data["owner"]["login"]
        name = data["name"]
        return cls(
            owner=owner,
            name=name,
            full_name=data.get("full_name") or f"{owner}/{name}",
            ssh_url=data.get("ssh_url") or "",
            local_path="",
            exists_local=False,
            affiliation=affiliation,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Repository":
        """Create a Repository from a cache record."""
        owner = data.get("owner") or LOCAL_OWNER
        name = data["name"]
        return cls(
            owner=owner,
            name=name,
            full_name=data.get("full_name") or f"{owner}/{name}",
            ssh_url=data.get("ssh_url") or "",
            local_path=data.get("local_path") or "",
            exists_local=bool(data.get("exists_local", False)),
            affiliation=Affiliation.parse(data.get("affiliation", Affiliation.LOCAL.value)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for the cache file."""
        return {
            "owner": self.owner,
            "name": self.name,
            "full_name": self.full_name,
            "ssh_url": self.ssh_url,
            "local_path": self.local_path,
            "exists_local": self.exists_local,
            "affiliation": self.affiliation.value,
        }


@dataclass
class UsageEntry:
    """Usage statistics for one repository."""

    count: int = 0
    last_used_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UsageEntry":
        return cls(
            count=int(data.get("count", 0)),
            last_used_at=_parse_timestamp(data.get("last_used_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "count": self.count,
            "last_used_at": self.last_used_at.isoformat() if self.last_used_at else None,
        }


@dataclass
class CacheMetadata:
    """
    Sync state shared between the interactive session and the detached sync.

    ``None`` timestamps mean "never". This only gates whether a refresh is
    due; mutual exclusion is the sync lock's job.
    """

    last_remote_sync: Optional[datetime] = None
    last_local_scan: Optional[datetime] = None

    local_scan_interval: timedelta = field(default=timedelta(hours=24), repr=False, compare=False)
    remote_sync_interval: timedelta = field(default=timedelta(days=7), repr=False, compare=False)

    def is_local_scan_due(self, now: Optional[datetime] = None) -> bool:
        if self.last_local_scan is None:
            return True
        now = now or utcnow()
        return now - self.last_local_scan > self.local_scan_interval

    def is_remote_sync_due(self, now: Optional[datetime] = None, cache_empty: bool = False) -> bool:
        if cache_empty or self.last_remote_sync is None:
            return True
        now = now or utcnow()
        return now - self.last_remote_sync > self.remote_sync_interval

    def mark_local_scan(self, now: Optional[datetime] = None) -> None:
        self.last_local_scan = now or utcnow()

    def mark_remote_sync(self, now: Optional[datetime] = None) -> None:
        self.last_remote_sync = now or utcnow()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheMetadata":
        return cls(
            last_remote_sync=_parse_timestamp(data.get("last_remote_sync")),
            last_local_scan=_parse_timestamp(data.get("last_local_scan")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_remote_sync": self.last_remote_sync.isoformat() if self.last_remote_sync else None,
            "last_local_scan": self.last_local_scan.isoformat() if self.last_local_scan else None,
        }

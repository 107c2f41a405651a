"""Records returned by the GitHub Packages REST API.

Only the fields the proxy reads (plus a few identifying ones) are modelled.
Every field is optional: GitHub omits keys freely and the translator decides
what to do with partial records.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional


def _as_mapping(value: Any) -> Optional[Mapping[str, Any]]:
    return value if isinstance(value, Mapping) else None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


@dataclass
class User:
    """Owner of a package (user or organization)."""

    login: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["User"]:
        data = _as_mapping(data)
        if data is None:
            return None
        return cls(login=_as_str(data.get("login")))


@dataclass
class Package:
    """A package hosted for some owner."""

    id: Optional[int] = None
    name: Optional[str] = None
    package_type: Optional[str] = None
    html_url: Optional[str] = None
    owner: Optional[User] = None

    @classmethod
    def from_dict(cls, data: Any) -> "Package":
        data = _as_mapping(data) or {}
        return cls(
            id=data.get("id"),
            name=_as_str(data.get("name")),
            package_type=_as_str(data.get("package_type")),
            html_url=_as_str(data.get("html_url")),
            owner=User.from_dict(data.get("owner")),
        )


@dataclass
class ContainerMetadata:
    tags: Optional[List[str]] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["ContainerMetadata"]:
        data = _as_mapping(data)
        if data is None:
            return None
        tags = data.get("tags")
        if not isinstance(tags, list):
            return cls(tags=None)
        return cls(tags=[tag for tag in tags if isinstance(tag, str)])


@dataclass
class PackageMetadata:
    package_type: Optional[str] = None
    container: Optional[ContainerMetadata] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["PackageMetadata"]:
        data = _as_mapping(data)
        if data is None:
            return None
        return cls(
            package_type=_as_str(data.get("package_type")),
            container=ContainerMetadata.from_dict(data.get("container")),
        )


@dataclass
class PackageVersion:
    """One published version of a package."""

    id: Optional[int] = None
    name: Optional[str] = None
    metadata: Optional[PackageMetadata] = None

    @classmethod
    def from_dict(cls, data: Any) -> "PackageVersion":
        data = _as_mapping(data) or {}
        return cls(
            id=data.get("id"),
            name=_as_str(data.get("name")),
            metadata=PackageMetadata.from_dict(data.get("metadata")),
        )


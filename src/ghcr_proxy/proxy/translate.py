"""Map GitHub Packages records onto Docker Registry V2 listings.

Partial records are skipped rather than reported: a package without a name
or owner login yields no repository, and a version whose
metadata -> container -> tags chain is broken yields no tags.
"""

from __future__ import annotations

from typing import Iterable, List

from ghcr_proxy.github.models import Package, PackageVersion


def repository_name(owner: str, name: str) -> str:
    return f"{owner}/{name}"


def repositories_from_packages(packages: Iterable[Package]) -> List[str]:
    """Return ``owner/name`` for every package carrying both fields, in order."""
    repositories: List[str] = []
    for package in packages or ():
        if package.name is None or package.owner is None or package.owner.login is None:
            continue
        repositories.append(repository_name(package.owner.login, package.name))
    return repositories


def tags_from_versions(versions: Iterable[PackageVersion]) -> List[str]:
    """Concatenate the container tags of every version, keeping source order.

    Tags are neither sorted nor deduplicated.
    """
    tags: List[str] = []
    for version in versions or ():
        metadata = version.metadata
        if metadata is None or metadata.container is None:
            continue
        if metadata.container.tags is None:
            continue
        tags.extend(metadata.container.tags)
    return tags

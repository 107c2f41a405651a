"""Tests for mapping GitHub records onto registry listings."""

from ghcr_proxy.github.models import (
    ContainerMetadata,
    Package,
    PackageMetadata,
    PackageVersion,
    User,
)
from ghcr_proxy.proxy.translate import repositories_from_packages, tags_from_versions


def _version(tags):
    return PackageVersion(metadata=PackageMetadata(container=ContainerMetadata(tags=tags)))


class TestRepositoriesFromPackages:
    """Tests for catalog translation."""

    def test_empty_input(self):
        """No packages gives an empty list, not None."""
        assert repositories_from_packages([]) == []
        assert repositories_from_packages(None) == []

    def test_keeps_order(self):
        """Repositories keep the order of the source packages."""
        owner = User(login="some-owner")
        packages = [
            Package(name="package-2", owner=owner),
            Package(name="package-1", owner=owner),
        ]
        assert repositories_from_packages(packages) == [
            "some-owner/package-2",
            "some-owner/package-1",
        ]

    def test_skips_partial_records(self):
        """Packages without a name or an owner login are dropped."""
        packages = [
            Package(owner=User(login="some-owner")),
            Package(name="no-login", owner=User()),
            Package(name="no-owner"),
            Package(name="ok", owner=User(login="other")),
        ]
        assert repositories_from_packages(packages) == ["other/ok"]


class TestTagsFromVersions:
    """Tests for tag list translation."""

    def test_empty_input(self):
        """No versions gives an empty list."""
        assert tags_from_versions([]) == []

    def test_concatenates_in_order(self):
        """Tags are concatenated in version order without sorting or dedup."""
        versions = [
            _version(["tag-2", "tag-1"]),
            _version([]),
            _version(["latest", "tag-1"]),
        ]
        assert tags_from_versions(versions) == ["tag-2", "tag-1", "latest", "tag-1"]

    def test_broken_metadata_chain_contributes_nothing(self):
        """Missing metadata, container or tags are skipped silently."""
        versions = [
            PackageVersion(),
            PackageVersion(metadata=PackageMetadata()),
            PackageVersion(metadata=PackageMetadata(container=ContainerMetadata())),
            _version(["v1"]),
        ]
        assert tags_from_versions(versions) == ["v1"]

"""Tests for decoding GitHub Packages records."""

from ghcr_proxy.github.models import Package, PackageVersion


def test_package_from_full_dict():
    """All modelled fields are read."""
    package = Package.from_dict({
        "id": 7,
        "name": "img",
        "package_type": "container",
        "html_url": "https://github.com/users/o/packages/container/package/img",
        "owner": {"login": "o", "id": 3},
    })
    assert package.id == 7
    assert package.name == "img"
    assert package.package_type == "container"
    assert package.owner.login == "o"


def test_package_missing_fields():
    """Missing or malformed fields become None."""
    assert Package.from_dict({}) == Package()
    assert Package.from_dict({"name": 5, "owner": "o"}) == Package()
    assert Package.from_dict(None) == Package()
    assert Package.from_dict({"owner": {}}).owner.login is None


def test_version_metadata_chain():
    """Each level of the metadata chain is independently optional."""
    assert PackageVersion.from_dict({}).metadata is None
    assert PackageVersion.from_dict({"metadata": {}}).metadata.container is None
    assert PackageVersion.from_dict(
        {"metadata": {"container": {}}}
    ).metadata.container.tags is None
    assert PackageVersion.from_dict(
        {"metadata": {"container": {"tags": []}}}
    ).metadata.container.tags == []


def test_version_drops_non_string_tags():
    """Only string tags are kept."""
    version = PackageVersion.from_dict({"metadata": {"container": {"tags": ["a", 1, None, "b"]}}})
    assert version.metadata.container.tags == ["a", "b"]

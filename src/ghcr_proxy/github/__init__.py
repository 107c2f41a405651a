"""GitHub Packages API access used to answer registry discovery requests."""

from .client import GitHubAPIError, GitHubPackagesClient, PackageDirectory
from .models import ContainerMetadata, Package, PackageMetadata, PackageVersion, User

__all__ = [
    "GitHubAPIError",
    "GitHubPackagesClient",
    "PackageDirectory",
    "ContainerMetadata",
    "Package",
    "PackageMetadata",
    "PackageVersion",
    "User",
]

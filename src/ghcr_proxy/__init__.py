"""Docker Registry V2 front end for GitHub Packages."""

__version__ = "1.0.0"

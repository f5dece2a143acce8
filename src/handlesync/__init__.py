"""Handle minting and Dublin Core reconciliation for Fedora 3 repositories."""

from __future__ import annotations

from importlib import metadata

try:
    __version__ = metadata.version("handlesync")
except metadata.PackageNotFoundError:
    __version__ = "0.0.0+local"

__all__ = ["__version__"]

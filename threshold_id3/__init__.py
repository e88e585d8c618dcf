"""Threshold ID3.

Binary decision trees for labeled numeric feature vectors, grown with the ID3
information-gain heuristic over threshold splits.
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__: str = _pkg_version("threshold-id3")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

__all__ = ["__version__"]

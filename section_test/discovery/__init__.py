"""Discovery module - suite loading and listing."""

from .finder import SUITE_PATTERNS, ManifestEntry, build_manifest, find_suite_files
from .loader import load_suite

__all__ = [
    "SUITE_PATTERNS",
    "ManifestEntry",
    "build_manifest",
    "find_suite_files",
    "load_suite",
]

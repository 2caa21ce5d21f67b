"""appwrite-sync utility modules."""

from appwrite_sync.utils.logging import configure_logging
from appwrite_sync.utils.paths import (
    IgnoreFilter,
    build_code_archive,
    extract_code_archive,
    normalize_path,
)

__all__ = [
    "IgnoreFilter",
    "build_code_archive",
    "configure_logging",
    "extract_code_archive",
    "normalize_path",
]

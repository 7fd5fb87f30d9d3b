"""
Core functionality for PawnKit.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_cache_dir,
    verify_directory_writable,
    DirectoryError,
)

from .platform import (
    detect_platform_id,
    normalize_platform_id,
    clear_platform_cache,
)

from .exceptions import (
    PawnKitError,
    OperationCancelledError,
    ConfigurationError,
    TemplateError,
    InvalidVersionError,
    UnsupportedPlatformError,
    ConfigError,
    FetchError,
    CacheError,
    CorruptCacheError,
    ExtractionError,
    MissingMemberError,
    CorruptArchiveError,
    InstallWriteError,
    AcquisitionStage,
    AcquisitionError,
)

__all__ = [
    "get_cache_dir",
    "verify_directory_writable",
    "DirectoryError",
    "detect_platform_id",
    "normalize_platform_id",
    "clear_platform_cache",
    "PawnKitError",
    "OperationCancelledError",
    "ConfigurationError",
    "TemplateError",
    "InvalidVersionError",
    "UnsupportedPlatformError",
    "ConfigError",
    "FetchError",
    "CacheError",
    "CorruptCacheError",
    "ExtractionError",
    "MissingMemberError",
    "CorruptArchiveError",
    "InstallWriteError",
    "AcquisitionStage",
    "AcquisitionError",
]

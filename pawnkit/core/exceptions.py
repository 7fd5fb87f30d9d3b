"""
Centralized exception hierarchy for PawnKit.

Every failure raised by the compiler acquisition pipeline derives from
PawnKitError, so callers can catch one base class or a specific stage.
"""

from enum import Enum
from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class PawnKitError(Exception):
    """Base exception for all PawnKit errors."""

    pass


class OperationCancelledError(PawnKitError):
    """Raised when a caller-supplied cancellation token is set mid-operation."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationError(PawnKitError):
    """Static catalog or caller input is invalid. Never retried."""

    pass


class TemplateError(ConfigurationError):
    """Template string uses unknown or unbalanced placeholder syntax."""

    def __init__(self, template: str, reason: str):
        self.template = template
        self.reason = reason
        super().__init__(f"Malformed template {template!r}: {reason}")


class InvalidVersionError(ConfigurationError):
    """Version string cannot be substituted into a template."""

    def __init__(self, version: str, reason: str):
        self.version = version
        self.reason = reason
        super().__init__(f"Invalid compiler version {version!r}: {reason}")


class UnsupportedPlatformError(ConfigurationError):
    """Raised when no package descriptor exists for a platform."""

    def __init__(self, platform: str, supported: tuple = ()):
        self.platform = platform
        self.supported = tuple(supported)
        msg = f"Unsupported platform: {platform!r}"
        if self.supported:
            msg += f" (supported: {', '.join(self.supported)})"
        super().__init__(msg)


class ConfigError(ConfigurationError):
    """Configuration file parsing or validation error."""

    pass


# ============================================================================
# Network Exceptions
# ============================================================================


class FetchError(PawnKitError):
    """Network, transport or HTTP status failure while downloading."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Failed to fetch {url}: {message}")


# ============================================================================
# Cache Exceptions
# ============================================================================


class CacheError(PawnKitError):
    """Cache directory could not be read or written."""

    pass


class CorruptCacheError(CacheError):
    """A cached artifact exists but cannot be extracted."""

    def __init__(self, filename: str, reason: str):
        self.filename = filename
        self.reason = reason
        super().__init__(f"Cached artifact {filename} is unusable: {reason}")


# ============================================================================
# Extraction Exceptions
# ============================================================================


class ExtractionError(PawnKitError):
    """Base exception for failures while installing archive members."""

    def __init__(self, archive: str, message: str, member: Optional[str] = None):
        self.archive = archive
        self.member = member
        self.detail = message
        if member:
            super().__init__(f"{archive}: member {member!r}: {message}")
        else:
            super().__init__(f"{archive}: {message}")


class MissingMemberError(ExtractionError):
    """A path-map member does not exist in the archive."""

    def __init__(self, archive: str, member: str):
        super().__init__(archive, "not found in archive", member=member)


class CorruptArchiveError(ExtractionError):
    """The archive file could not be decoded."""

    pass


class InstallWriteError(ExtractionError):
    """Writing an extracted member to its install path failed."""

    pass


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class AcquisitionStage(str, Enum):
    """Pipeline stage at which an acquisition failed."""

    RESOLVE = "resolve"
    CACHE = "cache"
    NETWORK = "network"
    EXTRACT = "extract"


class AcquisitionError(PawnKitError):
    """
    Terminal failure of a compiler acquisition.

    The underlying error is chained as ``__cause__``.
    """

    def __init__(
        self,
        stage: AcquisitionStage,
        platform: str,
        version: str,
        message: str,
    ):
        self.stage = stage
        self.platform = platform
        self.version = version
        super().__init__(
            f"Failed to acquire compiler {version} for {platform} "
            f"at {stage.value} stage: {message}"
        )

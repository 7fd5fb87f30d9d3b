"""
Compiler package catalog.

Maps each supported platform to a PackageDescriptor: where the Pawn compiler
release lives, how its archive is packed, and which archive members get
installed under which names. Descriptors carry version templates and are
resolved for a concrete version in a single pass before any I/O happens.

Example:
    >>> resolved = resolve_descriptor("linux", "3.10.10")
    >>> resolved.filename
    'pawnc-3.10.10-linux.tar.gz'
"""

import logging
import posixpath
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple
from urllib.parse import urlparse

from pawnkit.compiler.template import PLACEHOLDER, Template, validate_version
from pawnkit.core.exceptions import ConfigurationError, UnsupportedPlatformError
from pawnkit.core.filesystem import UnsafePathError, check_relative_path
from pawnkit.core.platform import normalize_platform_id

logger = logging.getLogger(__name__)

RELEASE_BASE_URL = "https://github.com/Zeex/pawn/releases/download/v{version}/"


class ArchiveFormat(str, Enum):
    """Archive packing of a compiler release."""

    ZIP = "zip"
    TAR_GZIP = "tar.gz"


@dataclass(frozen=True)
class PackageDescriptor:
    """Template-bearing description of one platform's compiler package."""

    locator: Template
    """Download URL template"""

    archive_format: ArchiveFormat
    """Extraction strategy tag"""

    paths: Tuple[Tuple[Template, Template], ...]
    """Ordered (archive member, install path) template pairs"""

    def __post_init__(self):
        """Validate descriptor shape."""
        # The archive file name is the cache key, so it must differ per version
        if not self.locator.has_placeholder:
            raise ConfigurationError(
                f"Locator must contain {PLACEHOLDER}: {self.locator.source!r}"
            )
        if not self.paths:
            raise ConfigurationError("Descriptor must install at least one member")
        members = [member.source for member, _ in self.paths]
        if len(set(members)) != len(members):
            raise ConfigurationError(
                f"Duplicate archive members in descriptor: {members}"
            )

    @classmethod
    def create(
        cls,
        locator: str,
        archive_format: ArchiveFormat,
        paths: Mapping[str, str],
    ) -> "PackageDescriptor":
        """
        Build a descriptor from plain template strings.

        Raises:
            TemplateError: If any template is malformed
            ConfigurationError: If the path map is empty or the locator does
                not contain the version placeholder
        """
        return cls(
            locator=Template(locator),
            archive_format=ArchiveFormat(archive_format),
            paths=tuple((Template(src), Template(dst)) for src, dst in paths.items()),
        )

    def resolve(self, version: str) -> "ResolvedDescriptor":
        """
        Instantiate every template of this descriptor for ``version``.

        Raises:
            InvalidVersionError: If the version is unusable
            ConfigurationError: If a resolved URL or path is malformed
        """
        validate_version(version)

        url = self.locator.resolve(version)
        filename = _filename_from_url(url)

        path_map = {}
        for member_tmpl, install_tmpl in self.paths:
            member = member_tmpl.resolve(version)
            install = install_tmpl.resolve(version)
            try:
                check_relative_path(member)
                check_relative_path(install)
            except UnsafePathError as e:
                raise ConfigurationError(
                    f"Invalid path mapping {member!r} -> {install!r}: {e}"
                ) from e
            path_map[member] = install

        if len(set(path_map.values())) != len(path_map):
            raise ConfigurationError(
                f"Path map installs two members to the same path: {path_map}"
            )

        return ResolvedDescriptor(
            version=version,
            url=url,
            filename=filename,
            archive_format=self.archive_format,
            path_map=MappingProxyType(path_map),
        )


@dataclass(frozen=True)
class ResolvedDescriptor:
    """Descriptor instantiated for one concrete version."""

    version: str
    url: str
    filename: str
    """Basename of the URL path; the cache key"""
    archive_format: ArchiveFormat
    path_map: Mapping[str, str]
    """Concrete archive member -> install path (relative to destination)"""


def _filename_from_url(url: str) -> str:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ConfigurationError(f"Locator is not an HTTP(S) URL: {url!r}")

    filename = posixpath.basename(parsed.path)
    if not filename or filename in (".", ".."):
        raise ConfigurationError(f"Locator URL has no file name: {url!r}")
    return filename


# ============================================================================
# Static Catalog
# ============================================================================


_CATALOG: Mapping[str, PackageDescriptor] = MappingProxyType(
    {
        "darwin": PackageDescriptor.create(
            RELEASE_BASE_URL + "pawnc-{version}-darwin.zip",
            ArchiveFormat.ZIP,
            {
                "pawnc-{version}-darwin/bin/pawncc": "pawncc",
                "pawnc-{version}-darwin/lib/libpawnc.dylib": "libpawnc.dylib",
            },
        ),
        "linux": PackageDescriptor.create(
            RELEASE_BASE_URL + "pawnc-{version}-linux.tar.gz",
            ArchiveFormat.TAR_GZIP,
            {
                "pawnc-{version}-linux/bin/pawncc": "pawncc",
                "pawnc-{version}-linux/lib/libpawnc.so": "libpawnc.so",
            },
        ),
        "windows": PackageDescriptor.create(
            RELEASE_BASE_URL + "pawnc-{version}-windows.zip",
            ArchiveFormat.ZIP,
            {
                "pawnc-{version}-windows/bin/pawncc.exe": "pawncc.exe",
                "pawnc-{version}-windows/bin/pawnc.dll": "pawnc.dll",
            },
        ),
    }
)


def supported_platforms() -> Tuple[str, ...]:
    """Get the sorted list of platforms with a compiler package."""
    return tuple(sorted(_CATALOG))


def lookup(platform: str) -> PackageDescriptor:
    """
    Look up the package descriptor for a platform.

    Args:
        platform: Platform identifier ('darwin', 'linux', 'windows')

    Returns:
        The platform's PackageDescriptor

    Raises:
        UnsupportedPlatformError: If the platform has no package
    """
    key = normalize_platform_id(platform) if isinstance(platform, str) else platform
    try:
        return _CATALOG[key]
    except (KeyError, TypeError):
        raise UnsupportedPlatformError(str(platform), supported_platforms()) from None


def resolve_descriptor(platform: str, version: str) -> ResolvedDescriptor:
    """
    Look up and resolve a platform's descriptor for one version.

    Raises:
        ConfigurationError: On unsupported platform, bad version or bad template
    """
    descriptor = lookup(platform)
    resolved = descriptor.resolve(version)
    logger.debug(f"Resolved {platform} {version} -> {resolved.url}")
    return resolved

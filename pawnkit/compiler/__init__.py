"""
Pawn compiler acquisition.

Resolves a (platform, version) pair to a release archive, serves it from the
local cache or downloads it, and installs the selected compiler files.
"""

from .acquisition import AcquisitionResult, CompilerAcquirer, acquire_compiler
from .cache import CacheEntry, CacheStore
from .catalog import (
    ArchiveFormat,
    PackageDescriptor,
    ResolvedDescriptor,
    lookup,
    resolve_descriptor,
    supported_platforms,
)
from .extraction import Extractor, TarGzipExtractor, ZipExtractor, extract
from .fetcher import NetworkFetcher
from .template import Template, resolve

__all__ = [
    "AcquisitionResult",
    "CompilerAcquirer",
    "acquire_compiler",
    "CacheEntry",
    "CacheStore",
    "ArchiveFormat",
    "PackageDescriptor",
    "ResolvedDescriptor",
    "lookup",
    "resolve_descriptor",
    "supported_platforms",
    "Extractor",
    "TarGzipExtractor",
    "ZipExtractor",
    "extract",
    "NetworkFetcher",
    "Template",
    "resolve",
]

"""
Archive fixtures for compiler acquisition tests.

Builds small zip and tar.gz archives shaped like real Pawn compiler releases.
"""

import io
import tarfile
import zipfile
from pathlib import Path
from typing import Dict, Iterable, Tuple, Union

from pawnkit.compiler.catalog import ArchiveFormat, resolve_descriptor

MemberSpec = Union[bytes, Tuple[bytes, int]]

EXECUTABLE_MODE = 0o755
LIBRARY_MODE = 0o644


def _split(spec: MemberSpec) -> Tuple[bytes, int]:
    if isinstance(spec, tuple):
        return spec
    return spec, LIBRARY_MODE


def make_zip(path: Path, members: Dict[str, MemberSpec]) -> Path:
    """Write a zip archive whose members carry Unix permission bits."""
    with zipfile.ZipFile(path, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, spec in members.items():
            content, mode = _split(spec)
            info = zipfile.ZipInfo(name)
            info.external_attr = (0o100000 | mode) << 16
            info.compress_type = zipfile.ZIP_DEFLATED
            zf.writestr(info, content)
    return path


def make_tar_gz(path: Path, members: Dict[str, MemberSpec]) -> Path:
    """Write a gzip-compressed tar archive of regular files."""
    with tarfile.open(path, "w:gz") as tf:
        for name, spec in members.items():
            content, mode = _split(spec)
            info = tarfile.TarInfo(name)
            info.size = len(content)
            info.mode = mode
            tf.addfile(info, io.BytesIO(content))
    return path


def member_content(member: str) -> bytes:
    """Deterministic fake content for an archive member."""
    return f"contents of {member}\n".encode()


def pawnc_members(
    platform: str, version: str, omit: Iterable[str] = ()
) -> Dict[str, MemberSpec]:
    """Members of a fake release archive, with compilers marked executable."""
    descriptor = resolve_descriptor(platform, version)
    omitted = set(omit)
    members: Dict[str, MemberSpec] = {}
    for member, install in descriptor.path_map.items():
        if install in omitted:
            continue
        mode = EXECUTABLE_MODE if install.startswith("pawncc") else LIBRARY_MODE
        members[member] = (member_content(member), mode)
    members[f"pawnc-{version}-{platform}/README.md"] = b"Pawn compiler\n"
    return members


def build_pawnc_archive(
    directory: Path, platform: str, version: str, omit: Iterable[str] = ()
) -> Path:
    """
    Build a fake release archive named like the real one.

    Args:
        directory: Where to write the archive
        platform: Catalog platform ('darwin', 'linux', 'windows')
        version: Compiler version
        omit: Install paths whose members are left out of the archive

    Returns:
        Path to the archive
    """
    descriptor = resolve_descriptor(platform, version)
    path = Path(directory) / descriptor.filename
    members = pawnc_members(platform, version, omit)
    if descriptor.archive_format is ArchiveFormat.ZIP:
        return make_zip(path, members)
    return make_tar_gz(path, members)


def pawnc_archive_bytes(platform: str, version: str, tmp_path: Path) -> bytes:
    """Build a fake release archive and return its bytes."""
    build_dir = tmp_path / "archive-build"
    build_dir.mkdir(exist_ok=True)
    return build_pawnc_archive(build_dir, platform, version).read_bytes()

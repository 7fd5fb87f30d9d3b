"""
Unit tests for selective archive extraction.
"""

import io
import os
import stat
import tarfile
import threading
import zipfile

import pytest

from pawnkit.compiler.catalog import ArchiveFormat
from pawnkit.compiler.extraction import (
    TarGzipExtractor,
    ZipExtractor,
    extract,
    get_extractor,
)
from pawnkit.core.exceptions import (
    CorruptArchiveError,
    ExtractionError,
    InstallWriteError,
    MissingMemberError,
    OperationCancelledError,
)
from pawnkit.core.filesystem import IS_WINDOWS
from tests.fixtures.archives import make_tar_gz, make_zip

posix_only = pytest.mark.skipif(IS_WINDOWS, reason="POSIX permission bits")


def _mode(path):
    return stat.S_IMODE(path.stat().st_mode)


@pytest.fixture(params=[ArchiveFormat.ZIP, ArchiveFormat.TAR_GZIP])
def archive_format(request):
    """Run a test against both archive formats."""
    return request.param


def _make_archive(archive_format, path, members):
    if archive_format is ArchiveFormat.ZIP:
        return make_zip(path.with_suffix(".zip"), members)
    return make_tar_gz(path.with_suffix(".tar.gz"), members)


class TestExtract:
    """Tests shared by both archive formats."""

    def test_installs_mapped_members(self, tmp_path, archive_format):
        """Test members are installed under their new names only."""
        archive = _make_archive(
            archive_format,
            tmp_path / "pawnc",
            {
                "pawnc/bin/pawncc": b"compiler",
                "pawnc/lib/libpawnc.so": b"library",
                "pawnc/README.md": b"readme",
            },
        )
        dest = tmp_path / "dest"

        installed = extract(
            archive_format,
            archive,
            dest,
            {"pawnc/bin/pawncc": "pawncc", "pawnc/lib/libpawnc.so": "libpawnc.so"},
        )

        assert installed == [
            (dest / "pawncc").resolve(),
            (dest / "libpawnc.so").resolve(),
        ]
        assert (dest / "pawncc").read_bytes() == b"compiler"
        assert (dest / "libpawnc.so").read_bytes() == b"library"
        assert sorted(p.name for p in dest.iterdir()) == ["libpawnc.so", "pawncc"]

    def test_nested_install_path(self, tmp_path, archive_format):
        """Test install paths may contain subdirectories."""
        archive = _make_archive(archive_format, tmp_path / "a", {"x/pawncc": b"c"})

        extract(archive_format, archive, tmp_path / "dest", {"x/pawncc": "bin/pawncc"})

        assert (tmp_path / "dest" / "bin" / "pawncc").read_bytes() == b"c"

    def test_overwrites_existing_file(self, tmp_path, archive_format):
        """Test installing replaces an existing file."""
        archive = _make_archive(archive_format, tmp_path / "a", {"pawncc": b"new"})
        dest = tmp_path / "dest"
        dest.mkdir()
        (dest / "pawncc").write_bytes(b"old")

        extract(archive_format, archive, dest, {"pawncc": "pawncc"})

        assert (dest / "pawncc").read_bytes() == b"new"

    @posix_only
    def test_preserves_permissions(self, tmp_path, archive_format):
        """Test executable bits recorded in the archive are kept."""
        archive = _make_archive(
            archive_format,
            tmp_path / "a",
            {"pawncc": (b"compiler", 0o755), "libpawnc.so": (b"lib", 0o644)},
        )
        dest = tmp_path / "dest"

        extract(
            archive_format,
            archive,
            dest,
            {"pawncc": "pawncc", "libpawnc.so": "libpawnc.so"},
        )

        assert _mode(dest / "pawncc") == 0o755
        assert _mode(dest / "libpawnc.so") == 0o644

    def test_missing_member_writes_nothing(self, tmp_path, archive_format):
        """Test a missing member fails before any file is written."""
        archive = _make_archive(
            archive_format, tmp_path / "a", {"pawnc/bin/pawncc": b"compiler"}
        )
        dest = tmp_path / "dest"
        dest.mkdir()

        with pytest.raises(MissingMemberError) as exc_info:
            extract(
                archive_format,
                archive,
                dest,
                {"pawnc/bin/pawncc": "pawncc", "pawnc/lib/libpawnc.so": "libpawnc.so"},
            )

        assert exc_info.value.member == "pawnc/lib/libpawnc.so"
        assert "not found" in str(exc_info.value)
        assert list(dest.iterdir()) == []

    def test_corrupt_archive(self, tmp_path, archive_format):
        """Test garbage bytes raise CorruptArchiveError."""
        archive = tmp_path / "broken.bin"
        archive.write_bytes(b"this is not an archive" * 10)

        with pytest.raises(CorruptArchiveError) as exc_info:
            extract(archive_format, archive, tmp_path / "dest", {"a": "a"})

        assert exc_info.value.archive == "broken.bin"

    def test_truncated_archive(self, tmp_path, archive_format):
        """Test a truncated download is detected as corrupt."""
        archive = _make_archive(
            archive_format, tmp_path / "a", {"pawncc": bytes(range(256)) * 400}
        )
        data = archive.read_bytes()
        archive.write_bytes(data[: len(data) // 2])

        with pytest.raises(CorruptArchiveError):
            extract(archive_format, archive, tmp_path / "dest", {"pawncc": "pawncc"})

        assert not (tmp_path / "dest" / "pawncc").exists()

    def test_archive_not_found(self, tmp_path, archive_format):
        """Test a missing archive file is an ExtractionError."""
        with pytest.raises(ExtractionError, match="archive not found"):
            extract(archive_format, tmp_path / "missing", tmp_path, {"a": "a"})

    def test_unsafe_install_path(self, tmp_path, archive_format):
        """Test install paths escaping the destination are refused."""
        archive = _make_archive(archive_format, tmp_path / "a", {"pawncc": b"c"})

        with pytest.raises(InstallWriteError):
            extract(archive_format, archive, tmp_path / "dest", {"pawncc": "../x"})

        assert not (tmp_path / "x").exists()

    def test_destination_not_writable(self, tmp_path, archive_format):
        """Test write failures raise InstallWriteError naming the member."""
        archive = _make_archive(archive_format, tmp_path / "a", {"pawncc": b"c"})
        blocker = tmp_path / "blocker"
        blocker.write_text("a file, not a directory")

        with pytest.raises(InstallWriteError) as exc_info:
            extract(archive_format, archive, blocker, {"pawncc": "pawncc"})

        assert exc_info.value.member == "pawncc"

    def test_cancelled(self, tmp_path, archive_format):
        """Test a set cancel event stops extraction."""
        archive = _make_archive(archive_format, tmp_path / "a", {"pawncc": b"c"})
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            extract(
                archive_format,
                archive,
                tmp_path / "dest",
                {"pawncc": "pawncc"},
                cancel=cancel,
            )

        assert not (tmp_path / "dest" / "pawncc").exists()

    def test_no_temp_files_left(self, tmp_path, archive_format):
        """Test only the installed files remain in the destination."""
        archive = _make_archive(archive_format, tmp_path / "a", {"pawncc": b"c"})
        dest = tmp_path / "dest"

        extract(archive_format, archive, dest, {"pawncc": "pawncc"})

        assert [p.name for p in dest.iterdir()] == ["pawncc"]


class TestZipExtractor:
    """Zip-specific behavior."""

    def test_directory_member_rejected(self, tmp_path):
        """Test naming a directory entry is an error."""
        archive = make_zip(tmp_path / "a.zip", {"bin/": b"", "bin/pawncc": b"c"})

        with pytest.raises(ExtractionError, match="directory"):
            ZipExtractor().extract(archive, tmp_path / "dest", {"bin/": "bin"})

    @posix_only
    def test_missing_mode_defaults(self, tmp_path):
        """Test members without Unix attributes get 0o644."""
        archive = tmp_path / "a.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr(zipfile.ZipInfo("pawncc.exe"), b"c")

        ZipExtractor().extract(archive, tmp_path / "dest", {"pawncc.exe": "pawncc.exe"})

        assert _mode(tmp_path / "dest" / "pawncc.exe") == 0o644

    def test_damaged_member_header_names_member(self, tmp_path):
        """Test a damaged local header is reported against its member."""
        archive = make_zip(
            tmp_path / "a.zip",
            {"bin/pawncc.exe": b"compiler", "bin/pawnc.dll": b"library"},
        )
        with zipfile.ZipFile(archive) as zf:
            offset = zf.getinfo("bin/pawnc.dll").header_offset
        data = bytearray(archive.read_bytes())
        data[offset : offset + 4] = b"XXXX"
        archive.write_bytes(bytes(data))

        with pytest.raises(CorruptArchiveError) as exc_info:
            ZipExtractor().extract(
                archive,
                tmp_path / "dest",
                {"bin/pawncc.exe": "pawncc.exe", "bin/pawnc.dll": "pawnc.dll"},
            )

        assert exc_info.value.member == "bin/pawnc.dll"
        assert "bin/pawnc.dll" in str(exc_info.value)

    @posix_only
    def test_symlink_followed(self, tmp_path):
        """Test Unix symlink entries are installed as copies of their target."""
        archive = make_zip(
            tmp_path / "a.zip", {"lib/libpawnc.dylib.3": (b"lib", 0o755)}
        )
        with zipfile.ZipFile(archive, "a") as zf:
            link = zipfile.ZipInfo("lib/libpawnc.dylib")
            link.external_attr = (stat.S_IFLNK | 0o777) << 16
            zf.writestr(link, "libpawnc.dylib.3")

        ZipExtractor().extract(
            archive, tmp_path / "dest", {"lib/libpawnc.dylib": "libpawnc.dylib"}
        )

        installed = tmp_path / "dest" / "libpawnc.dylib"
        assert not installed.is_symlink()
        assert installed.read_bytes() == b"lib"
        assert _mode(installed) == 0o755

    def test_dangling_symlink(self, tmp_path):
        """Test a zip link to a missing entry is a corrupt archive."""
        archive = tmp_path / "a.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            link = zipfile.ZipInfo("pawncc")
            link.external_attr = (stat.S_IFLNK | 0o777) << 16
            zf.writestr(link, "missing")

        with pytest.raises(CorruptArchiveError, match="link target") as exc_info:
            ZipExtractor().extract(archive, tmp_path / "dest", {"pawncc": "pawncc"})

        assert exc_info.value.member == "pawncc"
        assert not (tmp_path / "dest" / "pawncc").exists()

    def test_tar_given_to_zip_extractor(self, tmp_path):
        """Test a tarball is not a valid zip archive."""
        archive = make_tar_gz(tmp_path / "a.tar.gz", {"pawncc": b"c"})

        with pytest.raises(CorruptArchiveError, match="not a valid zip archive"):
            ZipExtractor().extract(archive, tmp_path / "dest", {"pawncc": "pawncc"})


class TestTarGzipExtractor:
    """Tar+gzip-specific behavior."""

    def test_dot_slash_prefix(self, tmp_path):
        """Test members stored as './name' are found by 'name'."""
        archive = make_tar_gz(tmp_path / "a.tar.gz", {"./bin/pawncc": b"c"})

        TarGzipExtractor().extract(archive, tmp_path / "dest", {"bin/pawncc": "pawncc"})

        assert (tmp_path / "dest" / "pawncc").read_bytes() == b"c"

    @posix_only
    def test_symlink_followed(self, tmp_path):
        """Test symlinks are installed as copies of their target."""
        archive = tmp_path / "a.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            info = tarfile.TarInfo("lib/libpawnc.so.3")
            info.size = 3
            info.mode = 0o755
            tf.addfile(info, io.BytesIO(b"lib"))
            link = tarfile.TarInfo("lib/libpawnc.so")
            link.type = tarfile.SYMTYPE
            link.linkname = "libpawnc.so.3"
            tf.addfile(link)

        TarGzipExtractor().extract(
            archive, tmp_path / "dest", {"lib/libpawnc.so": "libpawnc.so"}
        )

        installed = tmp_path / "dest" / "libpawnc.so"
        assert not installed.is_symlink()
        assert installed.read_bytes() == b"lib"
        assert _mode(installed) == 0o755

    def test_dangling_symlink(self, tmp_path):
        """Test a link to a missing entry is a corrupt archive."""
        archive = tmp_path / "a.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            link = tarfile.TarInfo("pawncc")
            link.type = tarfile.SYMTYPE
            link.linkname = "missing"
            tf.addfile(link)

        with pytest.raises(CorruptArchiveError, match="link target"):
            TarGzipExtractor().extract(archive, tmp_path / "dest", {"pawncc": "pawncc"})

    def test_directory_member_rejected(self, tmp_path):
        """Test naming a directory entry is an error."""
        archive = tmp_path / "a.tar.gz"
        with tarfile.open(archive, "w:gz") as tf:
            info = tarfile.TarInfo("bin")
            info.type = tarfile.DIRTYPE
            tf.addfile(info)

        with pytest.raises(ExtractionError, match="directory"):
            TarGzipExtractor().extract(archive, tmp_path / "dest", {"bin": "bin"})

    def test_truncated_entries_name_member(self, tmp_path):
        """Test damage found while locating a member is reported against it."""
        archive = make_tar_gz(
            tmp_path / "a.tar.gz", {"bin/pawncc": os.urandom(100_000)}
        )
        data = archive.read_bytes()
        archive.write_bytes(data[: len(data) // 2])

        with pytest.raises(CorruptArchiveError) as exc_info:
            TarGzipExtractor().extract(
                archive, tmp_path / "dest", {"bin/pawncc": "pawncc"}
            )

        assert exc_info.value.member == "bin/pawncc"

    def test_zip_given_to_tar_extractor(self, tmp_path):
        """Test a zip file is not a valid tar.gz archive."""
        archive = make_zip(tmp_path / "a.zip", {"pawncc": b"c"})

        with pytest.raises(CorruptArchiveError, match="not a valid tar.gz archive"):
            TarGzipExtractor().extract(archive, tmp_path / "dest", {"pawncc": "pawncc"})


class TestGetExtractor:
    """Test extractor dispatch."""

    def test_known_formats(self):
        """Test each format maps to its extractor."""
        assert isinstance(get_extractor(ArchiveFormat.ZIP), ZipExtractor)
        assert isinstance(get_extractor("tar.gz"), TarGzipExtractor)

    def test_unknown_format(self):
        """Test unsupported formats are rejected."""
        with pytest.raises(ExtractionError, match="no extractor"):
            get_extractor("rar")

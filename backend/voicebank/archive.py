"""
Archive access for voicebank imports.

Only zip containers are read here; the installer works against
``ArchiveEntry`` handles and never touches the container format itself.
"""

import zipfile
import zlib
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, List, Optional

from .errors import ArchiveError

# General purpose flag bit 11: the entry name is stored as UTF-8.
UTF8_FLAG = 0x800

# What zipfile raises for corrupt, encrypted or unsupported member data.
READ_ERRORS = (zipfile.BadZipFile, zlib.error, RuntimeError, NotImplementedError, EOFError)


@contextmanager
def reading(key: str):
    """Report member read failures as ArchiveError (an OSError)."""
    try:
        yield
    except READ_ERRORS as e:
        raise ArchiveError(f"Failed to read archive entry {key}: {e}") from e


@dataclass(frozen=True)
class ArchiveEntry:
    """Read-only handle to one archive member, valid for a single iteration."""
    key: str
    is_directory: bool
    opener: Callable[[], BinaryIO]

    def open(self) -> BinaryIO:
        return self.opener()


def raw_name(info: zipfile.ZipInfo) -> bytes:
    """The undecoded name bytes of a zip member."""
    if info.flag_bits & UTF8_FLAG:
        return info.filename.encode("utf-8")
    # zipfile decodes unflagged names as cp437, which round-trips every byte.
    return info.filename.encode("cp437")


def decode_name(info: zipfile.ZipInfo, encoding: str) -> str:
    if info.flag_bits & UTF8_FLAG:
        return info.filename
    return raw_name(info).decode(encoding, errors="replace")


class ZipArchive:
    """
    Zip archive reader.

    Usage:
        with ZipArchive("voicebank.zip") as archive:
            names = archive.raw_names()
            for entry in archive.entries("cp932"):
                with entry.open() as stream:
                    ...
    """

    def __init__(self, path):
        self.path = Path(path)
        self.zf: Optional[zipfile.ZipFile] = None

    def open(self) -> None:
        if not self.path.is_file():
            raise ArchiveError(f"Archive not found: {self.path}")
        try:
            self.zf = zipfile.ZipFile(self.path, "r")
        except zipfile.BadZipFile as e:
            raise ArchiveError(f"Not a readable zip archive: {self.path} ({e})") from e

    def close(self) -> None:
        if self.zf:
            self.zf.close()
            self.zf = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _infos(self) -> List[zipfile.ZipInfo]:
        if not self.zf:
            raise RuntimeError("Archive not open")
        return self.zf.infolist()

    def __len__(self) -> int:
        return len(self._infos())

    def raw_names(self) -> List[bytes]:
        return [raw_name(info) for info in self._infos()]

    def entries(self, encoding: str) -> Iterator[ArchiveEntry]:
        zf = self.zf
        for info in self._infos():
            yield ArchiveEntry(
                key=decode_name(info, encoding),
                is_directory=info.is_dir(),
                opener=lambda info=info: zf.open(info, "r"),
            )

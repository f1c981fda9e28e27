"""Minimal OLE2 CFBF reader implemented with the standard library."""

import logging
import struct
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .exceptions import DocFormatError

logger = logging.getLogger(__name__)

OLE_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
HEADER_SIZE = 512
HEADER_DIFAT_COUNT = 109
DIRECTORY_ENTRY_SIZE = 128

MAXREGSECT = 0xFFFFFFFA
DIFSECT = 0xFFFFFFFC
FATSECT = 0xFFFFFFFD
ENDOFCHAIN = 0xFFFFFFFE
FREESECT = 0xFFFFFFFF

STGTY_STORAGE = 1
STGTY_STREAM = 2
STGTY_ROOT = 5

# Iteration caps per traversal; a corrupt chain can never hang a call.
DIFAT_GUARD = 1_000
DIRECTORY_GUARD = 10_000
MINIFAT_GUARD = 10_000
STREAM_GUARD = 100_000


def _is_regular(sector: int) -> bool:
    return sector <= MAXREGSECT


def is_ole2(data: bytes) -> bool:
    """Return True if ``data`` starts with a complete OLE2 header."""
    return len(data) >= HEADER_SIZE and bytes(data[:8]) == OLE_SIGNATURE


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    object_type: int
    start_sector: int
    stream_size: int
    index: int

    @property
    def is_stream(self) -> bool:
        return self.object_type == STGTY_STREAM

    @property
    def is_root(self) -> bool:
        return self.object_type == STGTY_ROOT


class CompoundFile:
    """Flat, index-based view of the streams stored in a Compound File.

    Sector chains, the directory and the MiniFAT are kept as plain arrays;
    the directory tree (left/right/child links) is never followed because
    streams are only looked up by name.
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        if not is_ole2(self._data):
            raise DocFormatError("not an OLE2 container")
        self._read_header()
        self.fat: Sequence[int] = self._build_fat()
        self.entries: List[DirectoryEntry] = self._read_directory()
        self._root = next((entry for entry in self.entries if entry.is_root), None)
        self.minifat: Sequence[int] = self._build_mini_fat()
        self._mini_stream_data: Optional[bytes] = None

    def _read_header(self) -> None:
        header = self._data
        self.sector_shift = struct.unpack_from("<H", header, 0x1E)[0]
        if not 7 <= self.sector_shift <= 16:
            raise DocFormatError("unsupported sector shift %d" % self.sector_shift)
        self.mini_sector_shift = struct.unpack_from("<H", header, 0x20)[0]
        if self.mini_sector_shift > self.sector_shift:
            raise DocFormatError("unsupported mini sector shift %d" % self.mini_sector_shift)
        self.sector_size = 1 << self.sector_shift
        self.mini_sector_size = 1 << self.mini_sector_shift
        self.first_directory_sector = struct.unpack_from("<I", header, 0x30)[0]
        self.mini_stream_cutoff = struct.unpack_from("<I", header, 0x38)[0]
        self.first_minifat_sector = struct.unpack_from("<I", header, 0x3C)[0]
        self.first_difat_sector = struct.unpack_from("<I", header, 0x44)[0]
        self._difat_entries = struct.unpack_from(f"<{HEADER_DIFAT_COUNT}I", header, 0x4C)

    def _sector_offset(self, sector_index: int) -> int:
        return self.sector_size * (sector_index + 1)

    def _read_sector(self, sector_index: int) -> Optional[bytes]:
        offset = self._sector_offset(sector_index)
        if offset + self.sector_size > len(self._data):
            logger.debug("sector %d lies beyond the end of the file", sector_index)
            return None
        return self._data[offset : offset + self.sector_size]

    def _unpack_sector(self, sector: bytes, count: Optional[int] = None) -> Sequence[int]:
        if count is None:
            count = len(sector) // 4
        return struct.unpack_from(f"<{count}I", sector, 0)

    def _build_fat(self) -> Sequence[int]:
        fat_sectors = [idx for idx in self._difat_entries if _is_regular(idx)]
        entries_per_sector = self.sector_size // 4 - 1
        next_sector = self.first_difat_sector
        seen = set()
        while _is_regular(next_sector) and next_sector not in seen and len(seen) < DIFAT_GUARD:
            seen.add(next_sector)
            block = self._read_sector(next_sector)
            if block is None:
                break
            fat_sectors.extend(
                idx for idx in self._unpack_sector(block, entries_per_sector) if _is_regular(idx)
            )
            next_sector = struct.unpack_from("<I", block, entries_per_sector * 4)[0]

        fat: List[int] = []
        for sector in fat_sectors:
            block = self._read_sector(sector)
            if block is None:
                break
            fat.extend(self._unpack_sector(block))
        return tuple(fat)

    def _iter_chain(self, start_sector: int, table: Sequence[int], limit: int) -> Iterator[int]:
        """Yield the sectors of a chain, stopping on a sentinel, a loop or ``limit``."""
        sector = start_sector
        seen = set()
        while _is_regular(sector) and len(seen) < limit:
            if sector in seen:
                logger.debug("sector chain revisits sector %d", sector)
                return
            seen.add(sector)
            yield sector
            sector = table[sector] if sector < len(table) else ENDOFCHAIN

    def _read_directory(self) -> List[DirectoryEntry]:
        entries: List[DirectoryEntry] = []
        for sector in self._iter_chain(self.first_directory_sector, self.fat, DIRECTORY_GUARD):
            block = self._read_sector(sector)
            if block is None:
                break
            for offset in range(0, len(block), DIRECTORY_ENTRY_SIZE):
                entry = self._decode_entry(block[offset : offset + DIRECTORY_ENTRY_SIZE], len(entries))
                if entry is not None:
                    entries.append(entry)
        return entries

    @staticmethod
    def _decode_entry(raw: bytes, index: int) -> Optional[DirectoryEntry]:
        name_len = struct.unpack_from("<H", raw, 0x40)[0]
        if name_len == 0 or name_len > 64:
            return None
        name = raw[: max(0, name_len - 2)].decode("utf-16le", errors="ignore").rstrip("\x00")
        object_type = raw[0x42]
        start_sector = struct.unpack_from("<I", raw, 0x74)[0]
        stream_size = struct.unpack_from("<I", raw, 0x78)[0]
        return DirectoryEntry(name, object_type, start_sector, stream_size, index)

    def _build_mini_fat(self) -> Sequence[int]:
        if self._root is None or self._root.stream_size == 0:
            return ()
        minifat: List[int] = []
        for sector in self._iter_chain(self.first_minifat_sector, self.fat, MINIFAT_GUARD):
            block = self._read_sector(sector)
            if block is None:
                break
            minifat.extend(self._unpack_sector(block))
        return tuple(minifat)

    def _read_chain(self, start_sector: int, size: int) -> bytes:
        data = bytearray()
        for sector in self._iter_chain(start_sector, self.fat, STREAM_GUARD):
            if len(data) >= size:
                break
            offset = self._sector_offset(sector)
            chunk = min(self.sector_size, size - len(data))
            if offset + chunk > len(self._data):
                logger.debug("stream truncated at sector %d", sector)
                break
            data.extend(self._data[offset : offset + chunk])
        return bytes(data)

    def _mini_stream(self) -> Optional[bytes]:
        if self._mini_stream_data is None:
            if self._root is None or not _is_regular(self._root.start_sector):
                return None
            self._mini_stream_data = self._read_chain(self._root.start_sector, self._root.stream_size)
        return self._mini_stream_data

    def _read_mini_chain(self, start_sector: int, size: int) -> Optional[bytes]:
        container = self._mini_stream()
        if not container or not self.minifat:
            return None
        data = bytearray()
        for sector in self._iter_chain(start_sector, self.minifat, STREAM_GUARD):
            if len(data) >= size:
                break
            offset = sector * self.mini_sector_size
            chunk = min(self.mini_sector_size, size - len(data))
            if offset + chunk > len(container):
                break
            data.extend(container[offset : offset + chunk])
        if len(data) < size:
            return None
        return bytes(data)

    def find_entry(self, name: str) -> Optional[DirectoryEntry]:
        for entry in self.entries:
            if entry.name == name and entry.is_stream:
                return entry
        return None

    def stream_names(self) -> List[str]:
        return [entry.name for entry in self.entries if entry.is_stream]

    def read_stream(self, entry: Optional[DirectoryEntry]) -> Optional[bytes]:
        """Resolve the bytes of a stream entry.

        Small streams live in the mini stream; if that walk comes up short the
        regular FAT is tried, since some writers keep small streams in normal
        sectors. Broken chains give a truncated result rather than an error.
        """
        if entry is None or entry.stream_size == 0 or not _is_regular(entry.start_sector):
            return None
        if entry.stream_size < self.mini_stream_cutoff and entry.is_stream:
            data = self._read_mini_chain(entry.start_sector, entry.stream_size)
            if data is not None:
                return data
            logger.debug("mini stream read failed for %r, trying regular sectors", entry.name)
        return self._read_chain(entry.start_sector, entry.stream_size)


def parse_ole2(data: bytes) -> Optional[CompoundFile]:
    """Open ``data`` as a compound file, or return None if it is not one."""
    if not is_ole2(data):
        return None
    try:
        return CompoundFile(data)
    except DocFormatError as exc:
        logger.debug("rejecting compound file: %s", exc)
        return None

"""Decodes the Piece Table (PlcPcd) to enumerate document segments."""

import logging
import struct
from dataclasses import dataclass
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

PRC_MARKER = 0x01
PCDT_MARKER = 0x02
FC_COMPRESSED_BIT = 0x40000000
PCD_SIZE = 8
CLX_BLOCK_GUARD = 1_000


@dataclass(frozen=True)
class PieceDescriptor:
    cp_start: int
    cp_end: int
    file_offset: int
    unicode: bool

    @property
    def char_count(self) -> int:
        return max(0, self.cp_end - self.cp_start)

    @property
    def char_width(self) -> int:
        return 2 if self.unicode else 1


class PieceTable:
    """Translates the CLX/Pcdt into piece descriptors."""

    def __init__(self, table_stream: bytes, fc_clx: int, lcb_clx: int):
        if fc_clx + lcb_clx > len(table_stream):
            raise ValueError("Table stream is too short for CLX")
        self._table = table_stream
        self._pieces = self._parse(fc_clx, fc_clx + lcb_clx)

    def _find_pcdt(self, pos: int, end: int) -> int:
        """Skip the Prc blocks and return the offset just past the Pcdt marker."""
        for _ in range(CLX_BLOCK_GUARD):
            if pos >= end:
                break
            marker = self._table[pos]
            if marker == PCDT_MARKER:
                return pos + 1
            if marker != PRC_MARKER:
                raise ValueError("unexpected CLX block 0x%02X" % marker)
            if pos + 3 > end:
                raise ValueError("Prc header is truncated")
            cb_grpprl = struct.unpack_from("<h", self._table, pos + 1)[0]
            if cb_grpprl < 0:
                raise ValueError("Prc has a negative length")
            pos += 3 + cb_grpprl
        raise ValueError("Pcdt header missing in CLX")

    def _parse(self, start: int, end: int) -> List[PieceDescriptor]:
        pos = self._find_pcdt(start, end)
        if pos + 4 > end:
            raise ValueError("Pcdt length is truncated")
        length = struct.unpack_from("<I", self._table, pos)[0]
        pos += 4
        if pos + length > len(self._table):
            raise ValueError("PlcPcd overruns the Table stream")
        count, remainder = divmod(length - 4, 4 + PCD_SIZE)
        if count < 1 or remainder:
            raise ValueError("PlcPcd is malformed")

        cp_values = struct.unpack_from(f"<{count + 1}I", self._table, pos)
        pcds = pos + 4 * (count + 1)
        pieces: List[PieceDescriptor] = []
        for i in range(count):
            fc_raw = struct.unpack_from("<I", self._table, pcds + i * PCD_SIZE + 2)[0]
            compressed = bool(fc_raw & FC_COMPRESSED_BIT)
            # A compressed fc is stored doubled: one byte per character.
            file_offset = (fc_raw & ~FC_COMPRESSED_BIT) >> 1 if compressed else fc_raw
            pieces.append(PieceDescriptor(cp_values[i], cp_values[i + 1], file_offset, not compressed))
        return pieces

    def pieces(self) -> Iterable[PieceDescriptor]:
        return iter(self._pieces)


def parse_piece_table(table_stream: bytes, fc_clx: int, lcb_clx: int) -> Optional[List[PieceDescriptor]]:
    """Return the pieces described by the CLX, or None if it is malformed."""
    try:
        return list(PieceTable(table_stream, fc_clx, lcb_clx).pieces())
    except (ValueError, struct.error) as exc:
        logger.debug("invalid piece table: %s", exc)
        return None

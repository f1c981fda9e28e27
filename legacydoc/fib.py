"""Parses the File Information Block (FIB) from a WordDocument stream."""

import logging
import struct
from dataclasses import dataclass
from typing import Final, Optional

logger = logging.getLogger(__name__)

WORD_IDENT: Final[int] = 0xA5EC
FIB_MIN_SIZE: Final[int] = 68
FLAGS_OFFSET: Final[int] = 0x000A
WHICH_TBL_STM_FLAG: Final[int] = 0x0200
ENCRYPTED_FLAG: Final[int] = 0x0100
# FibBase is followed by csw/fibRgW, cslw/fibRgLw and cbRgFcLcb/fibRgFcLcb.
FIB_BASE_SIZE: Final[int] = 32
CCP_TEXT_INDEX: Final[int] = 3
CLX_PAIR_INDEX: Final[int] = 33


@dataclass(frozen=True)
class WordFIB:
    """Minimal view of the Fib needed to locate and bound the main text."""

    ident: int
    nFib: int
    fWhichTblStm: bool
    is_encrypted: bool
    ccpText: int
    fcClx: int
    lcbClx: int

    @property
    def table_stream_name(self) -> str:
        return "1Table" if self.fWhichTblStm else "0Table"

    @classmethod
    def from_bytes(cls, data: bytes) -> "WordFIB":
        if len(data) < FIB_MIN_SIZE:
            raise ValueError("WordDocument stream is too short to contain a FIB")
        ident, nFib = struct.unpack_from("<HH", data, 0)
        if ident != WORD_IDENT:
            raise ValueError("unexpected FIB ident 0x%04X" % ident)
        flags = struct.unpack_from("<H", data, FLAGS_OFFSET)[0]

        pos = FIB_BASE_SIZE
        csw = _read_count(data, pos, "csw")
        pos = _skip(data, pos + 2, csw * 2, "fibRgW")

        cslw = _read_count(data, pos, "cslw")
        if cslw <= CCP_TEXT_INDEX:
            raise ValueError("fibRgLw is too short to hold ccpText")
        rg_lw = pos + 2
        pos = _skip(data, rg_lw, cslw * 4, "fibRgLw")
        ccpText = struct.unpack_from("<I", data, rg_lw + CCP_TEXT_INDEX * 4)[0]

        cb_rg_fc_lcb = _read_count(data, pos, "cbRgFcLcb")
        if cb_rg_fc_lcb <= CLX_PAIR_INDEX:
            raise ValueError("fibRgFcLcb does not reach the CLX pair")
        clx_offset = pos + 2 + CLX_PAIR_INDEX * 8
        if clx_offset + 8 > len(data):
            raise ValueError("fibRgFcLcb overruns the WordDocument stream")
        fcClx, lcbClx = struct.unpack_from("<II", data, clx_offset)
        if lcbClx == 0:
            raise ValueError("document has no CLX")

        return cls(
            ident=ident,
            nFib=nFib,
            fWhichTblStm=bool(flags & WHICH_TBL_STM_FLAG),
            is_encrypted=bool(flags & ENCRYPTED_FLAG),
            ccpText=ccpText,
            fcClx=fcClx,
            lcbClx=lcbClx,
        )


def _read_count(data: bytes, pos: int, name: str) -> int:
    if pos + 2 > len(data):
        raise ValueError("FIB is truncated before %s" % name)
    return struct.unpack_from("<H", data, pos)[0]


def _skip(data: bytes, pos: int, length: int, name: str) -> int:
    if pos + length > len(data):
        raise ValueError("%s overruns the WordDocument stream" % name)
    return pos + length


def read_fib(data: bytes) -> Optional[WordFIB]:
    """Return the FIB of a WordDocument stream, or None if it is not valid."""
    try:
        return WordFIB.from_bytes(data)
    except ValueError as exc:
        logger.debug("invalid FIB: %s", exc)
        return None

"""Assembles the main document text from pieces and strips Word control codes."""

import logging
import re
from typing import Dict, Iterable, List

from .piece_table import PieceDescriptor

logger = logging.getLogger(__name__)

FIELD_BEGIN = "\x13"
FIELD_SEPARATOR = "\x14"
FIELD_END = "\x15"

_REPLACEMENTS = {
    "\r": "\n",
    "\x0b": "\n",
    "\x0c": "\n\n",
    "\x07": "\t",
}
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def _build_cp1252_overrides() -> Dict[int, int]:
    # Latin-1 already matches CP1252 outside 0x80-0x9F. Bytes CP1252 leaves
    # undefined (0x81, 0x8D, 0x8F, 0x90, 0x9D) keep their own code point.
    table = {}
    for byte in range(0x80, 0xA0):
        try:
            table[byte] = ord(bytes([byte]).decode("cp1252"))
        except UnicodeDecodeError:
            continue
    return table


_CP1252_OVERRIDES = _build_cp1252_overrides()


def decode_cp1252(raw: bytes) -> str:
    return raw.decode("latin-1").translate(_CP1252_OVERRIDES)


def extract_text_from_pieces(word_document: bytes, pieces: Iterable[PieceDescriptor], ccp_text: int) -> str:
    """Concatenate piece text until ``ccp_text`` characters have been read.

    Footnote, header and annotation text follows the main text in the same
    character stream, so the budget keeps it out.
    """
    parts: List[str] = []
    total = 0
    for piece in pieces:
        if total >= ccp_text:
            break
        count = min(piece.char_count, ccp_text - total)
        if count <= 0:
            continue
        end = piece.file_offset + count * piece.char_width
        if end > len(word_document):
            logger.debug("piece at 0x%X runs past the WordDocument stream", piece.file_offset)
            break
        raw = word_document[piece.file_offset : end]
        if piece.unicode:
            parts.append(raw.decode("utf-16le", errors="surrogatepass"))
        else:
            parts.append(decode_cp1252(raw))
        total += count
    return "".join(parts)


def clean_doc_text(text: str) -> str:
    """Turn raw Word text into plain text with newline-separated paragraphs.

    Fields look like ``0x13 instruction 0x14 result 0x15``; only the result
    survives. Fields nest, so each open field keeps its own state.
    """
    out: List[str] = []
    # One entry per open field: True while still inside its instruction.
    fields: List[bool] = []
    # Number of True entries in ``fields``.
    suppressed = 0
    for char in text:
        if char == FIELD_BEGIN:
            fields.append(True)
            suppressed += 1
            continue
        if char == FIELD_SEPARATOR:
            if fields and fields[-1]:
                fields[-1] = False
                suppressed -= 1
            continue
        if char == FIELD_END:
            if fields and fields.pop():
                suppressed -= 1
            continue
        if suppressed:
            continue

        replacement = _REPLACEMENTS.get(char)
        if replacement is not None:
            out.append(replacement)
        elif char < " " and char not in "\t\n":
            continue
        else:
            out.append(char)

    return _EXCESS_NEWLINES.sub("\n\n", "".join(out)).strip()

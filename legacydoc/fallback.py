"""Heuristic text recovery for documents whose structure cannot be parsed.

The scanner does not look at any container metadata: it collects long runs
of printable characters, first reading the bytes as UTF-16LE and then as
single-byte ASCII. The run thresholds are empirical; shorter runs are mostly
binary noise that happens to look like text.
"""

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

UTF16_MIN_RUN = 40
ASCII_MIN_RUN = 50
ASCII_SHORT_RUN = 30

# Anything below U+0020 except tab, LF and CR, plus the two non-characters.
_UTF16_BREAK = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]+")
_ASCII_RUN = re.compile(rb"[\x20-\x7e\t\n\r]+")
_CONTROL_CHARS = re.compile("[\x00-\x08\x0b\x0c\x0e-\x1f]")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


def clean_fallback_text(text: str) -> str:
    text = _CONTROL_CHARS.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    return _EXCESS_NEWLINES.sub("\n\n", text).strip()


def _join_chunks(chunks: List[str]) -> str:
    if not chunks:
        return ""
    return clean_fallback_text("\n\n".join(chunks))


def extract_utf16_chunks(data: bytes, min_run: int = UTF16_MIN_RUN) -> str:
    """Return the UTF-16LE runs of more than ``min_run`` printable units."""
    usable = len(data) - len(data) % 2
    text = bytes(data[:usable]).decode("utf-16le", errors="surrogatepass")
    return _join_chunks([run for run in _UTF16_BREAK.split(text) if _utf16_units(run) > min_run])


def _utf16_units(run: str) -> int:
    # Astral characters decode to one code point but occupy two units.
    return len(run.encode("utf-16le", errors="surrogatepass")) // 2


def extract_ascii_chunks(data: bytes, min_run: int = ASCII_MIN_RUN) -> str:
    """Return the printable ASCII runs longer than ``min_run`` bytes."""
    runs = _ASCII_RUN.findall(bytes(data))
    return _join_chunks([run.decode("ascii") for run in runs if len(run) > min_run])


def extract_doc_text_fallback(data: bytes) -> str:
    text = extract_utf16_chunks(data)
    if text:
        logger.debug("fallback recovered %d characters as UTF-16LE", len(text))
        return text
    text = extract_ascii_chunks(data)
    if text:
        logger.debug("fallback recovered %d characters as ASCII", len(text))
    return text


def extract_ascii_text(data: bytes) -> str:
    """Looser ASCII scan for inspecting damaged files by hand."""
    return extract_ascii_chunks(data, ASCII_SHORT_RUN)

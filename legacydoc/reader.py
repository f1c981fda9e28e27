"""Facade that exposes the steps needed to read text from binary .doc files."""

import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .cfbf import CompoundFile, parse_ole2
from .fallback import extract_doc_text_fallback
from .fib import read_fib
from .piece_table import parse_piece_table
from .text import clean_doc_text, extract_text_from_pieces

logger = logging.getLogger(__name__)

WORD_DOCUMENT_STREAM = "WordDocument"

Source = Union[str, Path, BinaryIO, bytes, bytearray, memoryview]


def extract_structured_text(data: bytes) -> Optional[str]:
    """Run container, FIB, piece table and text stages; None on the first miss."""
    container = parse_ole2(data)
    if container is None:
        logger.debug("not an OLE2 compound file")
        return None
    return _read_word_document(container)


def _read_word_document(container: CompoundFile) -> Optional[str]:
    word_bytes = container.read_stream(container.find_entry(WORD_DOCUMENT_STREAM))
    if not word_bytes:
        logger.debug("no %s stream", WORD_DOCUMENT_STREAM)
        return None
    fib = read_fib(word_bytes)
    if fib is None:
        return None
    if fib.is_encrypted:
        logger.debug("document is encrypted")
        return None
    table_bytes = container.read_stream(container.find_entry(fib.table_stream_name))
    if not table_bytes:
        logger.debug("no %s stream", fib.table_stream_name)
        return None
    pieces = parse_piece_table(table_bytes, fib.fcClx, fib.lcbClx)
    if not pieces:
        return None
    text = extract_text_from_pieces(word_bytes, pieces, fib.ccpText)
    if not text.strip():
        logger.debug("piece table produced no text")
        return None
    return clean_doc_text(text)


def extract_doc_text(data: bytes) -> str:
    text = extract_structured_text(data)
    if text:
        return text
    logger.info("structured parse failed, scanning %d bytes heuristically", len(data))
    return extract_doc_text_fallback(data)


class DocReader:
    """High-level API to load text from a binary Word document."""

    def __init__(self, source: Source):
        self._stream = self._open_source(source)
        self._owns_stream = isinstance(source, (str, Path))
        self._data: Optional[bytes] = None

    @staticmethod
    def _open_source(source: Source) -> BinaryIO:
        if isinstance(source, (bytes, bytearray, memoryview)):
            return io.BytesIO(bytes(source))
        if isinstance(source, (str, Path)):
            return open(source, "rb")
        if hasattr(source, "read") and hasattr(source, "seek"):
            return source
        raise TypeError("source must be path, bytes, or file-like")

    @property
    def data(self) -> bytes:
        if self._data is None:
            self._stream.seek(0)
            self._data = self._stream.read()
        return self._data

    def container(self) -> Optional[CompoundFile]:
        return parse_ole2(self.data)

    def read_structured_text(self) -> Optional[str]:
        return extract_structured_text(self.data)

    def read_text(self) -> str:
        return extract_doc_text(self.data)

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "DocReader":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()

"""legacydoc: pure-Python text extraction from Word 97-2003 binary documents."""

from .book import ParsedBook, ParsedChapter, parse_doc
from .cfbf import CompoundFile, DirectoryEntry, parse_ole2
from .exceptions import DocFormatError, TextExtractionError
from .fallback import extract_doc_text_fallback
from .fib import WordFIB, read_fib
from .piece_table import PieceDescriptor, PieceTable, parse_piece_table
from .reader import DocReader, extract_doc_text
from .text import clean_doc_text, extract_text_from_pieces

__all__ = [
    "CompoundFile",
    "DirectoryEntry",
    "DocFormatError",
    "DocReader",
    "ParsedBook",
    "ParsedChapter",
    "PieceDescriptor",
    "PieceTable",
    "TextExtractionError",
    "WordFIB",
    "clean_doc_text",
    "extract_doc_text",
    "extract_doc_text_fallback",
    "extract_text_from_pieces",
    "parse_doc",
    "parse_ole2",
    "parse_piece_table",
    "read_fib",
]

"""Renders extracted .doc text into the book structure shared by all importers."""

import html
import logging
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List

from .exceptions import TextExtractionError
from .reader import extract_doc_text

logger = logging.getLogger(__name__)

CHAPTER_ID = "chapter_1"

_DOC_SUFFIX = re.compile(r"\.doc$", re.IGNORECASE)
_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")


@dataclass
class ParsedChapter:
    id: str
    title: str
    html: str


@dataclass
class ParsedBook:
    title: str
    author: str = ""
    chapters: List[ParsedChapter] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def escape_html(text: str) -> str:
    return html.escape(text, quote=True).replace("&#x27;", "&#39;")


def render_paragraphs(text: str) -> str:
    paragraphs = [p.strip() for p in _PARAGRAPH_BREAK.split(text)]
    return "\n".join(
        "<p>%s</p>" % escape_html(p).replace("\n", "<br>") for p in paragraphs if p
    )


def render_chapter_html(title: str, text: str) -> str:
    return "<article>\n<h2>%s</h2>\n%s\n</article>" % (escape_html(title), render_paragraphs(text))


def parse_doc(buffer: bytes, file_name: str) -> ParsedBook:
    """Parse a binary Word document into a single-chapter book.

    Raises:
        TextExtractionError: if no text could be recovered at all.
    """
    title = _DOC_SUFFIX.sub("", file_name)
    text = extract_doc_text(buffer)
    if not text.strip():
        raise TextExtractionError(file_name=file_name)
    logger.info("Extracted DOC %r: %d characters", file_name, len(text))
    chapter = ParsedChapter(id=CHAPTER_ID, title=title, html=render_chapter_html(title, text))
    return ParsedBook(title=title, author="", chapters=[chapter])

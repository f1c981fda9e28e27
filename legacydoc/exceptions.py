"""Exceptions raised by the binary Word document reader."""

from typing import Optional


class DocFormatError(Exception):
    """Raised when a binary Word document cannot be interpreted."""


class TextExtractionError(DocFormatError):
    """Raised when neither the structured nor the fallback path yields text."""

    def __init__(self, message: str = "could not extract text from DOC", *, file_name: Optional[str] = None):
        self.file_name = file_name
        super().__init__(message)

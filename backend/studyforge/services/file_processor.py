"""Turn uploaded note files into plain text."""

import re
from dataclasses import dataclass
from pathlib import PurePath

# Control characters that Postgres TEXT/VARCHAR cannot store (NUL, etc.)
_ILLEGAL_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")

SUPPORTED_EXTENSIONS = (".pdf", ".docx", ".md", ".txt")


class UnsupportedFileTypeError(ValueError):
    """Raised for uploads whose extension has no processor."""


@dataclass
class ProcessedFile:
    """Extracted note content."""

    content: str
    title: str
    file_type: str


class FileProcessor:
    """Extracts note text from uploaded files by extension."""

    @staticmethod
    def process_file(file_name: str, data: bytes) -> ProcessedFile:
        """
        Extract text from an uploaded file.

        Markdown and plain text are decoded as UTF-8. PDF and DOCX uploads are
        accepted but stored with placeholder content; their text is not
        parsed.

        Raises:
            UnsupportedFileTypeError: if the extension is not supported.
        """
        path = PurePath(file_name)
        extension = path.suffix.lower()
        title = path.stem or file_name

        if extension not in SUPPORTED_EXTENSIONS:
            raise UnsupportedFileTypeError(
                f"Unsupported file type: {extension or file_name} "
                f"(supported: {', '.join(SUPPORTED_EXTENSIONS)})"
            )

        if extension == ".pdf":
            return ProcessedFile(
                content=(
                    f"PDF file: {title}\n\n"
                    "PDF text extraction is not enabled; this note only records the upload."
                ),
                title=title,
                file_type="pdf",
            )
        if extension == ".docx":
            return ProcessedFile(
                content=(
                    f"DOCX file: {title}\n\n"
                    "DOCX text extraction is not enabled; this note only records the upload."
                ),
                title=title,
                file_type="docx",
            )
        if extension == ".md":
            return ProcessedFile(content=_decode(data), title=title, file_type="markdown")
        return ProcessedFile(content=_decode(data), title=title, file_type="text")


def _decode(data: bytes) -> str:
    text = data.decode("utf-8", errors="replace")
    return _ILLEGAL_CHARS.sub("", text).strip()


# Singleton instance
file_processor = FileProcessor()

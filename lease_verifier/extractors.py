"""
Plain-text extraction from stored lease documents.

Dispatch is a lookup table keyed by declared media type — adding a format
means adding one table entry and one function. The extractor does not judge
content: a document that parses but has no text layer yields an empty string
and the understanding service decides what that means.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path, PurePath

import docx
import pypdf

from . import legacy_word
from .exceptions import ExtractionFailed, UnsupportedMediaType
from .models import MediaType
from .storage import DocumentHandle

logger = logging.getLogger(__name__)


# ─── Format Readers ─────────────────────────────────────────────────


def _extract_pdf(path: Path) -> str:
    """Read the PDF text layer page by page."""
    reader = pypdf.PdfReader(str(path))
    pages = []
    for page in reader.pages:
        text = page.extract_text()
        if text:
            pages.append(text)
    return "\n".join(pages)


def _extract_word(path: Path) -> str:
    """Read paragraph text, then table cell text, from a Word document body."""
    document = docx.Document(str(path))
    lines = [p.text for p in document.paragraphs if p.text]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def _extract_legacy_word(path: Path) -> str:
    """Read a Word 97-2003 binary document.

    Files sent as application/msword are often OOXML packages renamed by the
    uploader, so anything that is not an OLE container goes to python-docx.
    """
    if legacy_word.is_ole_file(path):
        return legacy_word.read_doc_text(path)
    return _extract_word(path)


_EXTRACTORS: dict[MediaType, Callable[[Path], str]] = {
    MediaType.PDF: _extract_pdf,
    MediaType.WORD_LEGACY: _extract_legacy_word,
    MediaType.WORD_MODERN: _extract_word,
}

MEDIA_TYPE_BY_EXTENSION: dict[str, MediaType] = {
    ".pdf": MediaType.PDF,
    ".doc": MediaType.WORD_LEGACY,
    ".docx": MediaType.WORD_MODERN,
}


# ─── Public API ──────────────────────────────────────────────────────


def resolve_media_type(declared_media_type: str) -> MediaType:
    """Normalise a declared media type and check it against the allow-list.

    Case, surrounding whitespace and MIME parameters (``; charset=...``)
    are ignored.

    Raises:
        UnsupportedMediaType: For anything outside the allow-list.
    """
    normalized = (declared_media_type or "").split(";", 1)[0].strip().lower()
    try:
        return MediaType(normalized)
    except ValueError:
        raise UnsupportedMediaType(
            f"Unsupported document type: {declared_media_type!r}",
            details={
                "declared_media_type": declared_media_type,
                "supported": [m.value for m in MediaType],
            },
        ) from None


def media_type_for_filename(filename: str) -> MediaType:
    """Guess the declared media type from a file extension."""
    suffix = PurePath(filename).suffix.lower()
    if suffix not in MEDIA_TYPE_BY_EXTENSION:
        raise UnsupportedMediaType(
            f"Unsupported document extension: {suffix or '(none)'!r}",
            details={"filename": filename, "supported": sorted(MEDIA_TYPE_BY_EXTENSION)},
        )
    return MEDIA_TYPE_BY_EXTENSION[suffix]


def extract_text(handle: DocumentHandle, declared_media_type: str) -> str:
    """Convert a stored document to plain text.

    Returns:
        The extracted text. May be empty or whitespace-only.

    Raises:
        UnsupportedMediaType: Before any parsing, if the type is not allowed.
        ExtractionFailed: If a supported document is corrupt or unreadable.
    """
    media_type = resolve_media_type(declared_media_type)
    extractor = _EXTRACTORS[media_type]

    try:
        text = extractor(handle.path)
    except Exception as e:
        logger.warning(
            "Extraction failed for handle %s (%s): %s",
            handle.handle_id,
            media_type.value,
            e,
        )
        raise ExtractionFailed(
            f"Could not extract text from {media_type.name} document: {e}",
            details={
                "media_type": media_type.value,
                "parser_error": f"{type(e).__name__}: {e}",
            },
        ) from e

    logger.info(
        "Extracted %d characters from %s document", len(text), media_type.value
    )
    return text

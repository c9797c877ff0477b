"""
Scoped, ephemeral storage for uploaded lease documents.

Each acquisition writes the bytes to its own uniquely named temp file and
hands back a DocumentHandle. The file exists only between acquire() and
release(); scoped() ties the two together so cleanup runs on every exit path,
including exceptions and interpreter interrupts.
"""

from __future__ import annotations

import logging
import os
import tempfile
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from .exceptions import StorageUnavailable
from .models import MediaType

logger = logging.getLogger(__name__)

_SUFFIXES: dict[str, str] = {
    MediaType.PDF.value: ".pdf",
    MediaType.WORD_LEGACY.value: ".doc",
    MediaType.WORD_MODERN.value: ".docx",
}


@dataclass
class DocumentHandle:
    """Reference to one stored document. Holds the path, never the bytes."""

    handle_id: str
    path: Path
    media_type: str
    size: int
    released: bool = False


class TempDocumentStore:
    """Stores one document per request in a process-local temp area."""

    def __init__(self, base_dir: str | Path | None = None):
        self.base_dir = Path(base_dir) if base_dir is not None else None

    def acquire(self, data: bytes, media_type: str) -> DocumentHandle:
        """Write the document to a fresh temp file.

        Raises:
            StorageUnavailable: If the temp area cannot be written. No partial
                file is left behind.
        """
        handle_id = uuid.uuid4().hex
        suffix = _SUFFIXES.get(media_type.strip().lower(), ".bin")

        try:
            fd, name = tempfile.mkstemp(
                prefix=f"lease-{handle_id}-",
                suffix=suffix,
                dir=str(self.base_dir) if self.base_dir is not None else None,
            )
        except OSError as e:
            raise StorageUnavailable(
                f"Temporary document storage is unavailable: {e}",
                details={"base_dir": str(self.base_dir), "reason": str(e)},
            ) from e

        path = Path(name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
        except OSError as e:
            path.unlink(missing_ok=True)
            raise StorageUnavailable(
                f"Could not write document to temporary storage: {e}",
                details={"base_dir": str(self.base_dir), "reason": str(e)},
            ) from e

        logger.debug("Acquired document handle %s (%d bytes)", handle_id, len(data))
        return DocumentHandle(
            handle_id=handle_id,
            path=path,
            media_type=media_type,
            size=len(data),
        )

    def release(self, handle: DocumentHandle) -> None:
        """Delete the stored document. Calling it again is a no-op."""
        if handle.released:
            return

        try:
            handle.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("Failed to delete document handle %s: %s", handle.handle_id, e)
            raise StorageUnavailable(
                f"Could not delete temporary document: {e}",
                details={"handle_id": handle.handle_id, "reason": str(e)},
            ) from e

        handle.released = True
        logger.debug("Released document handle %s", handle.handle_id)

    @contextmanager
    def scoped(self, data: bytes, media_type: str) -> Iterator[DocumentHandle]:
        """Acquire a handle for the body of a ``with`` block, then release it.

        If the body raised, that exception is what the caller sees; a failed
        delete is logged and does not replace it.
        """
        handle = self.acquire(data, media_type)
        try:
            yield handle
        except BaseException:
            self._release_after_failure(handle)
            raise
        self.release(handle)

    def _release_after_failure(self, handle: DocumentHandle) -> None:
        try:
            self.release(handle)
        except StorageUnavailable as e:
            logger.error(
                "Document handle %s left on disk while handling an earlier failure: %s",
                handle.handle_id,
                e,
            )

"""
Upload intake - validates an audio upload and stages it on disk.

The staged file belongs to a single request. Whoever receives the
StagedUpload must call release() on every exit path.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool

from dictation.config import Settings
from dictation.core.exceptions import PayloadTooLargeError, UnsupportedFormatError

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "audio/mpeg",
    "audio/mp3",
    "audio/wav",
    "audio/webm",
    "audio/mp4",
    "audio/m4a",
    "audio/ogg",
    "audio/x-m4a",
})

ALLOWED_EXTENSIONS = frozenset({".mp3", ".wav", ".webm", ".mp4", ".m4a", ".ogg"})

CHUNK_SIZE = 1024 * 1024


@dataclass
class StagedUpload:
    """An uploaded audio file written to a temporary location."""

    path: Path
    original_name: str
    mime_type: str
    size_bytes: int
    _released: bool = field(default=False, repr=False)

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        """Delete the staged file. Safe to call more than once."""
        if self._released:
            return
        self._released = True
        try:
            self.path.unlink(missing_ok=True)
            logger.debug(f"[UploadIntake] Removed staged file: {self.path}")
        except OSError as e:
            logger.warning(f"[UploadIntake] Failed to remove {self.path}: {e}")


def is_allowed_format(mime_type: str | None, filename: str | None) -> bool:
    """Accept when either the MIME type or the filename extension is allowed."""
    if mime_type:
        base_type = mime_type.split(";")[0].strip().lower()
        if base_type in ALLOWED_MIME_TYPES:
            return True
    if filename:
        return Path(filename).suffix.lower() in ALLOWED_EXTENSIONS
    return False


async def stage_upload(file: UploadFile, settings: Settings) -> StagedUpload:
    """
    Validate an uploaded audio file and write it to the upload directory.

    Args:
        file: Multipart upload from the request
        settings: Application settings (upload directory and size limit)

    Returns:
        StagedUpload pointing at a uniquely named file

    Raises:
        UnsupportedFormatError: If neither MIME type nor extension is allowed
        PayloadTooLargeError: If the payload exceeds settings.max_upload_bytes
    """
    filename = file.filename or "audio"
    mime_type = file.content_type or "application/octet-stream"

    if not is_allowed_format(mime_type, filename):
        logger.warning(f"[UploadIntake] Rejected {filename} ({mime_type})")
        raise UnsupportedFormatError(mime_type)

    settings.upload_dir.mkdir(parents=True, exist_ok=True)
    path = settings.upload_dir / f"{uuid4().hex}{Path(filename).suffix.lower()}"
    staged = StagedUpload(
        path=path,
        original_name=filename,
        mime_type=mime_type,
        size_bytes=0,
    )

    try:
        out = await run_in_threadpool(path.open, "wb")
        try:
            while chunk := await file.read(CHUNK_SIZE):
                staged.size_bytes += len(chunk)
                if staged.size_bytes > settings.max_upload_bytes:
                    raise PayloadTooLargeError(settings.max_upload_bytes)
                await run_in_threadpool(out.write, chunk)
        finally:
            await run_in_threadpool(out.close)
    except BaseException:
        staged.release()
        raise

    logger.info(
        f"[UploadIntake] Staged {filename} "
        f"({staged.size_bytes / 1024 / 1024:.2f}MB)"
    )
    return staged

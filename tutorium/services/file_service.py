"""
Tutorium Backend — File Storage Service
=========================================

What:  Validates, stores, locates and removes lesson attachment files.
How:   Files land in date-organized directories with UUID filenames; the
       database keeps only the path relative to STORAGE_ROOT.
Who:   Called by UploadService for POST /api/uploads and the download route.

Checks, cheapest first:
    1. Extension must be a teaching-material type (documents, slides,
       spreadsheets, audio, video, images, zip archives)
    2. Size must not exceed MAX_FILE_SIZE
    3. Content type is sniffed from the bytes with python-magic and must be
       one the extension allows; the client's Content-Type is ignored
    4. Stored name is <uuid><ext>; no user input reaches the filesystem,
       and resolved paths must stay under the storage root
"""

import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Tuple

import aiofiles
import magic

from tutorium.config import settings
from tutorium.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# ── Allowed File Types ────────────────────────────────────────────────────
# Extension → MIME types libmagic may report for genuine files of that kind.
# OOXML files are zip containers and legacy Office files are OLE compound
# documents; older libmagic builds report only the container.
_OLE = {"application/x-ole-storage", "application/CDFV2", "application/octet-stream"}
_OOXML = {"application/zip", "application/octet-stream"}

ALLOWED_EXTENSIONS = {
    ".pdf": {"application/pdf"},
    ".doc": {"application/msword"} | _OLE,
    ".docx": {"application/vnd.openxmlformats-officedocument.wordprocessingml.document"} | _OOXML,
    ".ppt": {"application/vnd.ms-powerpoint"} | _OLE,
    ".pptx": {"application/vnd.openxmlformats-officedocument.presentationml.presentation"} | _OOXML,
    ".xls": {"application/vnd.ms-excel"} | _OLE,
    ".xlsx": {"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"} | _OOXML,
    ".txt": {"text/plain"},
    ".mp3": {"audio/mpeg", "audio/x-mpeg", "audio/mp3"},
    ".wav": {"audio/wav", "audio/x-wav", "audio/vnd.wave"},
    ".mp4": {"video/mp4", "audio/mp4", "video/x-m4v"},
    ".png": {"image/png"},
    ".jpg": {"image/jpeg"},
    ".jpeg": {"image/jpeg"},
    ".gif": {"image/gif"},
    ".zip": {"application/zip", "application/x-zip-compressed"},
}


class FileService:
    """
    Directory structure:
        storage/
        └── 2026/
            └── 10/
                └── 19/
                    ├── a1b2c3d4-....pdf
                    └── e5f6g7h8-....mp3
    """

    def __init__(self, storage_root: Optional[str] = None):
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    # ── Validation ────────────────────────────────────────────────────────

    def validate_extension(self, filename: str) -> str:
        """Returns the normalized (lowercase, dotted) extension."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="files",
                context={"filename": filename, "extension": ext},
            )
        return ext

    def validate_size(self, filename: str, size: int) -> None:
        if size > settings.max_file_size:
            max_mb = settings.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=f"File '{filename}' exceeds the maximum size of {max_mb:.0f}MB.",
                field="files",
                context={"filename": filename, "size": size, "max_size": settings.max_file_size},
            )

    def detect_mime_type(self, filename: str, content: bytes) -> str:
        """MIME type libmagic reads from the file's own bytes."""
        try:
            return magic.from_buffer(content[:8192], mime=True)
        except Exception as e:
            logger.error("MIME detection failed for %s: %s", filename, str(e))
            raise FileStorageError(
                message="Could not determine the type of the uploaded file.",
                context={"filename": filename, "error": str(e)},
            )

    def validate_content(self, filename: str, extension: str, content: bytes) -> str:
        """
        Check the detected content type against the extension's allowlist.

        Returns the detected MIME type, which is what gets stored; a renamed
        HTML page or executable is rejected here.
        """
        detected = self.detect_mime_type(filename, content)
        allowed = ALLOWED_EXTENSIONS[extension]
        if detected not in allowed:
            logger.warning(
                "Rejected upload %s: content is %s, extension %s", filename, detected, extension
            )
            raise ValidationError(
                message=f"File '{filename}' content does not match its '{extension}' extension.",
                field="files",
                context={
                    "filename": filename,
                    "detected": detected,
                    "expected": sorted(allowed),
                },
            )
        return detected

    def validate(self, filename: str, content: bytes) -> Tuple[str, str]:
        """Run every check. Returns (extension, detected_mime_type)."""
        ext = self.validate_extension(filename)
        self.validate_size(filename, len(content))
        return ext, self.validate_content(filename, ext, content)

    # ── Storage ───────────────────────────────────────────────────────────

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        """Returns (absolute_path, relative_path) for YYYY/MM/DD/<uuid><ext>."""
        date_dir = datetime.now(timezone.utc).strftime("%Y/%m/%d")
        relative_path = f"{date_dir}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store_file(self, content: bytes, extension: str) -> Tuple[str, str]:
        """Write bytes to disk. Returns (absolute_path, relative_path)."""
        absolute_path, relative_path = self._generate_storage_path(extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded file. Please try again.",
                context={"path": relative_path, "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return str(absolute_path), relative_path

    async def validate_and_store(self, filename: str, content: bytes) -> Tuple[str, str, str]:
        """Validate then store. Returns (absolute_path, relative_path, mime_type)."""
        ext, mime_type = self.validate(filename, content)
        absolute_path, relative_path = await self.store_file(content, ext)
        return absolute_path, relative_path, mime_type

    def resolve_path(self, relative_path: str) -> Path:
        """Absolute path of a stored file; 404 if it is gone or escapes the root."""
        path = (self.storage_root / relative_path).resolve()
        if not path.is_relative_to(self.storage_root) or not path.is_file():
            raise NotFoundError(resource="File", message="File not found")
        return path

    async def cleanup_file(self, file_path: str) -> None:
        """Best-effort removal after a failed upload; never raises."""
        try:
            path = Path(file_path)
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
            else:
                logger.debug("Cleanup: file already gone: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", file_path, str(e))


# ── Singleton Instance ────────────────────────────────────────────────────
file_service = FileService()

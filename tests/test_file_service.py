"""
Tutorium Backend — File Service Unit Tests
============================================

What:  Tests for FileService validation, storage and lookup of attachments.
Why:   Uploads are a security boundary: only teaching-material types, a
       size cap, and no way to read outside the storage root.
How:   Each test gets its own storage root under tmp_path.

Test Strategy:
    ✅ Allowed extensions (documents, audio, images), case-insensitive
    ✅ Rejected extensions (.exe, .sh, none)
    ✅ Size limit boundary at MAX_FILE_SIZE
    ✅ Content type is sniffed from the bytes; renamed files are rejected
    ✅ Date-organized storage with UUID names
    ✅ resolve_path refuses traversal and missing files
"""

import re
from pathlib import Path
from unittest.mock import patch

import pytest

from tutorium.config import settings
from tutorium.exceptions import FileStorageError, NotFoundError, ValidationError
from tutorium.services.file_service import FileService


class TestFileValidation:
    """Tests for file validation logic in FileService."""

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)

    # ── Extension Validation ──────────────────────────────────────────────

    def test_validate_extension_pdf(self):
        """PDF worksheets should pass extension validation."""
        assert self.service.validate_extension("worksheet.pdf") == ".pdf"

    def test_validate_extension_audio_and_slides(self):
        """Audio and presentation files are teaching materials too."""
        assert self.service.validate_extension("dialogue.mp3") == ".mp3"
        assert self.service.validate_extension("lesson-3.pptx") == ".pptx"

    def test_validate_extension_uppercase(self):
        """Extension check should be case-insensitive and normalize to lowercase."""
        assert self.service.validate_extension("SCAN.JPG") == ".jpg"
        assert self.service.validate_extension("Notes.Docx") == ".docx"

    def test_validate_extension_exe_rejected(self):
        """Executable files should be rejected (security)."""
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension("malware.exe")

    def test_validate_extension_shell_script_rejected(self):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension("install.sh")

    def test_validate_extension_no_extension_rejected(self):
        """Files without extensions should be rejected."""
        with pytest.raises(ValidationError) as exc_info:
            self.service.validate_extension("noextension")
        assert exc_info.value.field == "files"

    # ── Size Validation ───────────────────────────────────────────────────

    def test_validate_size_within_limit(self):
        """Files within the size limit should pass."""
        self.service.validate_size("small.pdf", 1000)

    def test_validate_size_at_limit(self):
        """Files exactly at the limit should pass."""
        self.service.validate_size("exact.pdf", settings.max_file_size)

    def test_validate_size_over_limit(self):
        """Files exceeding the size limit should be rejected."""
        with pytest.raises(ValidationError, match="exceeds the maximum size") as exc_info:
            self.service.validate_size("huge.mp4", settings.max_file_size + 1)
        assert exc_info.value.context["max_size"] == settings.max_file_size

    # ── Content Detection ─────────────────────────────────────────────────

    def test_pdf_content_is_detected(self, sample_pdf_bytes):
        assert self.service.validate_content("worksheet.pdf", ".pdf", sample_pdf_bytes) == "application/pdf"

    def test_plain_text_is_detected(self):
        content = b"Lesson 4 vocabulary\nder Hund - dog\ndie Katze - cat\n"
        assert self.service.validate_content("words.txt", ".txt", content) == "text/plain"

    def test_html_renamed_to_pdf_is_rejected(self):
        """The extension alone never makes a file a PDF."""
        content = b"<html><head><script>alert(document.cookie)</script></head><body></body></html>"
        with pytest.raises(ValidationError, match="does not match") as exc_info:
            self.service.validate_content("worksheet.pdf", ".pdf", content)
        assert exc_info.value.field == "files"
        assert exc_info.value.context["detected"] == "text/html"
        assert exc_info.value.context["expected"] == ["application/pdf"]

    def test_pdf_renamed_to_png_is_rejected(self, sample_pdf_bytes):
        with pytest.raises(ValidationError):
            self.service.validate_content("scan.png", ".png", sample_pdf_bytes)

    def test_detection_failure_is_a_storage_error(self):
        with patch("tutorium.services.file_service.magic.from_buffer", side_effect=OSError("no magic db")):
            with pytest.raises(FileStorageError):
                self.service.detect_mime_type("notes.txt", b"hello")

    def test_validate_returns_extension_and_detected_type(self, sample_pdf_bytes):
        assert self.service.validate("Homework.PDF", sample_pdf_bytes) == (".pdf", "application/pdf")


class TestFileStorage:
    """Tests for writing, locating and removing stored files."""

    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage)
        self.root = Path(temp_storage).resolve()

    # ── Storage Path Generation ───────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_validate_and_store_creates_date_directory(self, sample_pdf_bytes):
        """Uploaded files should be stored in date-organized directories."""
        abs_path, rel_path, mime_type = await self.service.validate_and_store(
            "Homework 1.pdf", sample_pdf_bytes
        )

        assert re.match(r"^\d{4}/\d{2}/\d{2}/[0-9a-f-]{36}\.pdf$", rel_path)
        assert Path(abs_path).read_bytes() == sample_pdf_bytes
        assert mime_type == "application/pdf"

    @pytest.mark.asyncio
    async def test_validate_and_store_never_writes_rejected_files(self):
        """A rejected file must leave nothing behind on disk."""
        with pytest.raises(ValidationError):
            await self.service.validate_and_store("virus.exe", b"MZ")
        assert not any(p.is_file() for p in self.root.rglob("*"))

    @pytest.mark.asyncio
    async def test_validate_and_store_rejects_oversized_content(self):
        with patch("tutorium.services.file_service.settings") as mock_settings:
            mock_settings.max_file_size = 10
            with pytest.raises(ValidationError):
                await self.service.validate_and_store("notes.txt", b"x" * 11)

    # ── Lookup ────────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_resolve_path_finds_stored_file(self, sample_pdf_bytes):
        abs_path, rel_path = await self.service.store_file(sample_pdf_bytes, ".pdf")
        assert self.service.resolve_path(rel_path) == Path(abs_path).resolve()

    def test_resolve_path_rejects_traversal(self, tmp_path):
        """Relative paths may never escape the storage root."""
        secret = tmp_path / "secret.txt"
        secret.write_text("do not serve")
        with pytest.raises(NotFoundError):
            self.service.resolve_path("../secret.txt")

    def test_resolve_path_missing_file(self):
        with pytest.raises(NotFoundError, match="File not found"):
            self.service.resolve_path("2026/01/01/missing.pdf")

    # ── Cleanup ───────────────────────────────────────────────────────────

    @pytest.mark.asyncio
    async def test_cleanup_file_removes_file(self, tmp_path):
        """cleanup_file should remove the specified file."""
        test_file = tmp_path / "test.pdf"
        test_file.write_bytes(b"test content")
        assert test_file.exists()

        await self.service.cleanup_file(str(test_file))
        assert not test_file.exists()

    @pytest.mark.asyncio
    async def test_cleanup_file_nonexistent(self, tmp_path):
        """cleanup_file should not raise for non-existent files."""
        await self.service.cleanup_file(str(tmp_path / "nonexistent.pdf"))

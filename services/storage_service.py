"""
Storage Service - Upload storage for imported spreadsheets.

Uploaded workbooks are kept on disk under a hash-based name so that the
categories created from them can point back at their source file.
"""

import hashlib
import logging
from pathlib import Path
from typing import List, Optional

from services.exceptions import FileTooLargeError, ValidationError

logger = logging.getLogger(__name__)

# Default storage directory
DEFAULT_UPLOADS_DIR = 'uploads/'
DEFAULT_ALLOWED_EXTENSIONS = ['.xlsx', '.xlsm']
DEFAULT_MAX_FILE_SIZE_MB = 10


class StorageService:
    """
    Framework-agnostic storage service for uploaded spreadsheets.

    Handles hashing, validation and persistence of uploaded bytes.
    """

    def __init__(self, uploads_dir: str = DEFAULT_UPLOADS_DIR):
        """
        Initialize storage service.

        Args:
            uploads_dir: Directory to store uploaded files (default: 'uploads/')
        """
        self.uploads_dir = uploads_dir

    def _ensure_directory_exists(self):
        """Ensure the uploads directory exists."""
        Path(self.uploads_dir).mkdir(parents=True, exist_ok=True)
        logger.debug(f"Storage directory ensured: {self.uploads_dir}")

    @staticmethod
    def compute_hash(content: bytes) -> str:
        """Compute SHA256 hex digest of uploaded bytes."""
        return hashlib.sha256(content).hexdigest()

    def path_for(self, content: bytes, filename: str) -> str:
        """
        Get the storage path for uploaded content.

        The stored name is the first 16 hash characters plus the original
        extension, so re-uploading the same file maps to the same path.
        """
        file_hash = self.compute_hash(content)
        ext = Path(filename).suffix.lower()
        return str(Path(self.uploads_dir) / f"{file_hash[:16]}{ext}")

    def store_bytes(self, content: bytes, filename: str) -> str:
        """
        Store uploaded content in the uploads directory.

        Args:
            content: Raw file bytes
            filename: Original filename (used for its extension)

        Returns:
            Path to stored file
        """
        self._ensure_directory_exists()

        dest_path = Path(self.path_for(content, filename))

        if dest_path.exists():
            logger.info(f"Upload already stored: {dest_path}")
            return str(dest_path)

        dest_path.write_bytes(content)
        logger.info(f"Stored upload: {filename} -> {dest_path}")

        return str(dest_path)


def validate_file_extension(filename: Optional[str],
                            allowed_extensions: Optional[List[str]] = None):
    """
    Verify file has an allowed extension.

    Raises:
        ValidationError: If extension is not allowed
    """
    if allowed_extensions is None:
        allowed_extensions = DEFAULT_ALLOWED_EXTENSIONS

    ext = Path(filename or '').suffix.lower()

    if ext not in [e.lower() for e in allowed_extensions]:
        logger.warning(f"Invalid file extension: {ext!r} (allowed: {allowed_extensions})")
        raise ValidationError(
            f"File extension '{ext}' not allowed. "
            f"Allowed extensions: {', '.join(allowed_extensions)}",
            details={'filename': filename, 'allowed_extensions': allowed_extensions}
        )


def validate_file_size(size_bytes: int, max_size_mb: int = DEFAULT_MAX_FILE_SIZE_MB):
    """
    Verify uploaded file size is within limit.

    Raises:
        FileTooLargeError: If file is too large
    """
    size_mb = size_bytes / (1024 * 1024)

    if size_mb > max_size_mb:
        logger.warning(f"File size {size_mb:.2f} MB exceeds limit of {max_size_mb} MB")
        raise FileTooLargeError(size_mb, max_size_mb)

"""
Local blob store for uploaded files.

Uploaded bytes are written to the configured upload directory under a
timestamp-derived name and exposed under the public static path. Chat
messages refer to uploads with the "File uploaded: <path>" marker.
"""

import asyncio
import time
from pathlib import Path

from ..exceptions import ValidationError
from ..structured_logging.enhanced_logging_config import get_logger
from ..utils.error_logging import create_error_context, log_and_raise

logger = get_logger(__name__)

FILE_REFERENCE_PREFIX = "File uploaded: "


def file_reference(file_path: str) -> str:
    """Build the message content that refers to an uploaded file."""
    return f"{FILE_REFERENCE_PREFIX}{file_path}"


def parse_file_reference(content: str) -> str | None:
    """Return the file path referenced by content, or None for plain text."""
    if not content.startswith(FILE_REFERENCE_PREFIX):
        return None
    path = content[len(FILE_REFERENCE_PREFIX) :].strip()
    return path or None


class LocalBlobStore:
    """Filesystem-backed store returning a public reference path per blob."""

    def __init__(self, directory: str | Path, public_path: str = "/uploads", max_file_size: int = 20 * 1024 * 1024):
        self.directory = Path(directory)
        self.public_path = "/" + public_path.strip("/")
        self.max_file_size = max_file_size

    def ensure_directory(self) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    def _reserve_path(self, extension: str) -> Path:
        # Names are the upload time in epoch milliseconds; bump on collision.
        # Exclusive create makes the claim atomic across concurrent uploads.
        stamp = int(time.time() * 1000)
        while True:
            candidate = self.directory / f"{stamp}{extension}"
            try:
                candidate.touch(exist_ok=False)
            except FileExistsError:
                stamp += 1
                continue
            return candidate

    async def store(self, filename: str | None, content: bytes) -> str:
        """
        Store an uploaded file.

        Args:
            filename: Client-supplied filename; only its extension is kept
            content: File bytes

        Returns:
            str: Public reference path, e.g. "/uploads/1700000000000.png"

        Raises:
            ValidationError: If the file exceeds the maximum size
        """
        if len(content) > self.max_file_size:
            context = create_error_context()
            context.metadata["filename"] = filename
            log_and_raise(
                ValidationError,
                f"File too large: {len(content)} bytes (max {self.max_file_size})",
                context=context,
                field="file",
                user_friendly="File too large.",
            )

        # Basename only, so the client cannot influence the target directory
        extension = Path(Path(filename or "").name).suffix
        await asyncio.to_thread(self.ensure_directory)
        destination = await asyncio.to_thread(self._reserve_path, extension)
        try:
            await asyncio.to_thread(destination.write_bytes, content)
        except OSError as e:
            logger.error("Upload write failed", filename=filename, file_path=str(destination), error=str(e))
            await asyncio.to_thread(destination.unlink, missing_ok=True)
            raise

        reference = f"{self.public_path}/{destination.name}"
        logger.info("Upload stored", filename=filename, size=len(content), file_path=reference)
        return reference

"""
Utilities for turning uploaded resume files and pasted text into generation payloads.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional

from data_models import MediaPayload, UploadedFile
from errors import EmptyClipboardError, PayloadTooLargeError, UnsupportedFormatError

LOGGER = logging.getLogger(__name__)

ACCEPTED_MIME_TYPES = ("application/pdf", "image/png", "image/jpeg", "image/webp")


def is_supported_media_type(mime_type: str) -> bool:
    """Return True for PDF documents and any image subtype."""
    mime_type = (mime_type or "").strip().lower()
    return mime_type == "application/pdf" or mime_type.startswith("image/")


def load_upload(path: Path) -> UploadedFile:
    """
    Read a resume file from disk.

    Args:
        path: Location of the PDF or image.

    Returns:
        UploadedFile with a MIME type guessed from the file name.
    """
    mime_type, _ = mimetypes.guess_type(path.name)
    return UploadedFile(
        name=path.name,
        mime_type=mime_type or "application/octet-stream",
        data=path.read_bytes(),
    )


def check_upload(upload: UploadedFile, max_bytes: Optional[int] = None) -> None:
    """
    Reject files the generation service cannot read.

    Raises:
        UnsupportedFormatError: The MIME type is not a PDF or image.
        PayloadTooLargeError: ``max_bytes`` is set and the file exceeds it.
    """
    if not is_supported_media_type(upload.mime_type):
        LOGGER.info("Rejected upload %s with type %s", upload.name, upload.mime_type)
        raise UnsupportedFormatError()
    if max_bytes is not None and upload.size > max_bytes:
        LOGGER.info("Rejected upload %s: %d bytes > %d", upload.name, upload.size, max_bytes)
        raise PayloadTooLargeError(
            f"The selected file is too large ({upload.size} bytes, limit {max_bytes})."
        )


def encode_upload(upload: UploadedFile) -> MediaPayload:
    """Base64-encode an upload for transmission."""
    encoded = base64.b64encode(upload.data).decode("ascii")
    LOGGER.debug("Encoded %s (%d bytes -> %d chars)", upload.name, upload.size, len(encoded))
    return MediaPayload(mime_type=upload.mime_type, data=encoded)


def normalize_pasted_text(text: Optional[str]) -> str:
    """
    Validate clipboard text before it is sent for reformatting.

    Raises:
        EmptyClipboardError: The clipboard held nothing but whitespace.
    """
    if not text or not text.strip():
        raise EmptyClipboardError()
    return text.replace("\r\n", "\n").strip()

"""
Format Detector - Classifies an upload as pdf, docx, txt or image.

The declared MIME type wins when it is a known value; the filename extension
is the fallback signal.
"""
from typing import Optional

from syllabus_parser.core.exceptions import UnsupportedFormat
from syllabus_parser.models.document import DocumentFormat

MIME_TYPES = {
    "application/pdf": DocumentFormat.PDF,
    "application/x-pdf": DocumentFormat.PDF,
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": DocumentFormat.DOCX,
    "text/plain": DocumentFormat.TEXT,
    "text/markdown": DocumentFormat.TEXT,
}

EXTENSIONS = {
    ".pdf": DocumentFormat.PDF,
    ".docx": DocumentFormat.DOCX,
    ".txt": DocumentFormat.TEXT,
    ".text": DocumentFormat.TEXT,
    ".md": DocumentFormat.TEXT,
    ".png": DocumentFormat.IMAGE,
    ".jpg": DocumentFormat.IMAGE,
    ".jpeg": DocumentFormat.IMAGE,
    ".gif": DocumentFormat.IMAGE,
    ".bmp": DocumentFormat.IMAGE,
    ".tif": DocumentFormat.IMAGE,
    ".tiff": DocumentFormat.IMAGE,
    ".webp": DocumentFormat.IMAGE,
}


def _from_mime(mime_type: Optional[str]) -> Optional[DocumentFormat]:
    if not mime_type:
        return None
    # 'text/plain; charset=utf-8' -> 'text/plain'
    mime = mime_type.split(";", 1)[0].strip().lower()
    if mime in MIME_TYPES:
        return MIME_TYPES[mime]
    if mime.startswith("image/"):
        return DocumentFormat.IMAGE
    return None


def _from_extension(filename: Optional[str]) -> Optional[DocumentFormat]:
    if not filename or "." not in filename:
        return None
    suffix = "." + filename.rsplit(".", 1)[-1].strip().lower()
    return EXTENSIONS.get(suffix)


def detect_format(mime_type: Optional[str], filename: Optional[str]) -> DocumentFormat:
    """
    Classify an upload.

    Raises:
        UnsupportedFormat: when neither signal matches
    """
    detected = _from_mime(mime_type) or _from_extension(filename)
    if detected is None:
        raise UnsupportedFormat(mime_type or "", filename or "")
    return detected

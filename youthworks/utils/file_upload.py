"""
CV file handling: validate an upload and pull plain text out of it.

PDF goes through PyPDF2, DOCX through python-docx and TXT is decoded
directly. Uploads are capped at MAX_FILE_SIZE_MB.
"""

import io
import os
import re
from typing import NamedTuple

from docx import Document
from fastapi import HTTPException, UploadFile
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

MAX_FILE_SIZE_MB = 5
MAX_FILE_SIZE_BYTES = MAX_FILE_SIZE_MB * 1024 * 1024

_INLINE_SPACE = re.compile(r"[ \t\r\f\v]+")
_BLANK_LINES = re.compile(r"\n{3,}")


class ExtractedCV(NamedTuple):
    text: str
    filename: str
    size_bytes: int


def pdf_to_text(content: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PdfReadError, ValueError) as e:
        raise HTTPException(status_code=400, detail=f"Error reading PDF: {e}")
    return "\n".join(pages)


def docx_to_text(content: bytes) -> str:
    """Paragraphs first, then table rows joined with ' | '."""
    try:
        doc = Document(io.BytesIO(content))
    except Exception as e:
        # python-docx raises zipfile/KeyError/PackageNotFoundError for broken files
        raise HTTPException(status_code=400, detail=f"Error reading DOCX: {e}")

    parts = [para.text for para in doc.paragraphs]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n".join(parts)


def txt_to_text(content: bytes) -> str:
    for encoding in ("utf-8-sig", "cp1252"):
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    # latin-1 maps every byte
    return content.decode("latin-1")


# extension -> (display name, extractor); order is the order shown to clients
FORMATS = {
    ".pdf": ("PDF", pdf_to_text),
    ".docx": ("Word Document", docx_to_text),
    ".txt": ("Plain Text", txt_to_text),
}


def get_file_extension(filename: str) -> str:
    _, ext = os.path.splitext(filename)
    return ext.lower()


def safe_filename(filename: str) -> str:
    """Drop any client-side directory part, Windows paths included."""
    return os.path.basename(filename.replace("\\", "/")).strip()


def clean_text(text: str) -> str:
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in text.replace("\x00", "").split("\n")]
    return _BLANK_LINES.sub("\n\n", "\n".join(lines)).strip()


async def extract_text_from_file(file: UploadFile) -> ExtractedCV:
    """
    Validate an uploaded CV and return its text.

    Raises HTTPException 400 for a missing name, unsupported type or
    unreadable/empty file, and 413 when the upload exceeds the size cap.
    """
    filename = safe_filename(file.filename or "")
    if not filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = get_file_extension(filename)
    if ext not in FORMATS:
        allowed = ", ".join(e.lstrip(".").upper() for e in FORMATS)
        raise HTTPException(status_code=400, detail=f"Unsupported file type '{ext}'. Allowed: {allowed}")

    # One byte past the cap is enough to know it is too large
    content = await file.read(MAX_FILE_SIZE_BYTES + 1)
    if len(content) > MAX_FILE_SIZE_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size: {MAX_FILE_SIZE_MB}MB")

    _, extractor = FORMATS[ext]
    text = clean_text(extractor(content))
    if not text:
        raise HTTPException(
            status_code=400,
            detail="Could not extract text from file. File may be empty or corrupted.",
        )

    return ExtractedCV(text=text, filename=filename, size_bytes=len(content))


def get_supported_formats() -> dict:
    return {
        "supported_formats": [{"extension": ext, "name": name} for ext, (name, _) in FORMATS.items()],
        "max_size_mb": MAX_FILE_SIZE_MB,
    }

"""
Resume upload helpers - turn an uploaded PDF/DOCX/TXT into plain text.

The extracted text is what the student profile stores as resume_text and
what the resume reviewer and interview prompts read.
"""

import io
import logging
import zipfile
from typing import Tuple

from docx import Document
from fastapi import HTTPException, UploadFile
from PyPDF2 import PdfReader
from PyPDF2.errors import PyPdfError

logger = logging.getLogger(__name__)

MAX_RESUME_MB = 5
MAX_RESUME_BYTES = MAX_RESUME_MB * 1024 * 1024
PREVIEW_CHARS = 200

FORMATS = {
    ".pdf": "PDF",
    ".docx": "Word Document",
    ".txt": "Plain Text",
}


def file_extension(filename: str) -> str:
    """Lowercase extension including the dot, or '' when there is none."""
    if "." not in filename:
        return ""
    return "." + filename.rsplit(".", 1)[1].lower()


def pdf_to_text(content: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(content))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError) as e:
        logger.warning("Unreadable PDF upload: %s", e)
        raise HTTPException(status_code=400, detail=f"Error reading PDF: {e}") from e
    return "\n".join(page for page in pages if page)


def docx_to_text(content: bytes) -> str:
    """Paragraphs first, then table rows joined with ' | '."""
    try:
        doc = Document(io.BytesIO(content))
    except (zipfile.BadZipFile, KeyError, ValueError) as e:
        logger.warning("Unreadable DOCX upload: %s", e)
        raise HTTPException(status_code=400, detail=f"Error reading DOCX: {e}") from e

    lines = [para.text for para in doc.paragraphs if para.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                lines.append(" | ".join(cells))
    return "\n".join(lines)


def txt_to_text(content: bytes) -> str:
    for encoding in ("utf-8", "cp1252", "latin-1"):
        try:
            return content.decode(encoding)
        except UnicodeDecodeError:
            continue
    raise HTTPException(status_code=400, detail="Could not decode text file")


EXTRACTORS = {
    ".pdf": pdf_to_text,
    ".docx": docx_to_text,
    ".txt": txt_to_text,
}


async def extract_resume_text(file: UploadFile) -> Tuple[str, str]:
    """
    Read an uploaded resume and return (text, filename).

    Raises HTTPException 400 for a missing name, unsupported type or
    empty/unreadable content, and 413 above the size limit.
    """
    if not file.filename:
        raise HTTPException(status_code=400, detail="No filename provided")

    ext = file_extension(file.filename)
    if ext not in EXTRACTORS:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{ext}'. Allowed: PDF, DOCX, TXT"
        )

    content = await file.read()
    if len(content) > MAX_RESUME_BYTES:
        raise HTTPException(status_code=413, detail=f"File too large. Maximum size: {MAX_RESUME_MB}MB")

    text = EXTRACTORS[ext](content).strip()
    if not text:
        raise HTTPException(
            status_code=400,
            detail="Could not extract text from file. File may be empty or corrupted."
        )

    logger.info("Extracted %d characters from %s", len(text), file.filename)
    return text, file.filename


def supported_formats() -> dict:
    return {
        "supported_formats": [
            {"extension": ext, "name": name, "available": True} for ext, name in FORMATS.items()
        ],
        "max_size_mb": MAX_RESUME_MB,
    }

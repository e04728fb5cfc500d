from __future__ import annotations

from pathlib import Path

import fitz  # PyMuPDF

from .chunkers.base import Page
from .clean import normalize_text
from .errors import EmptyInputError


def extract_pdf_pages(pdf_path: Path) -> list[Page]:
    """Extract text per page using PyMuPDF."""
    doc = fitz.open(pdf_path)
    pages: list[Page] = []
    try:
        for i in range(doc.page_count):
            page = doc.load_page(i)
            pages.append(Page(page=i + 1, text=page.get_text("text")))
    finally:
        doc.close()
    return pages


def read_document(path: Path | str) -> str:
    """Return the raw text of a document.

    PDFs are read page by page and joined with blank lines; anything else is
    read as UTF-8 text.
    """
    path = Path(path)
    if path.suffix.lower() == ".pdf":
        text = "\n\n".join(normalize_text(p.text) for p in extract_pdf_pages(path))
    else:
        text = path.read_text(encoding="utf-8")

    if not text.strip():
        raise EmptyInputError(f"{path.name} contains no readable text", details={"file_name": path.name})
    return text

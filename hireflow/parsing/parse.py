from __future__ import annotations

from pathlib import Path

from docx import Document
from pypdf import PdfReader

from .models import ParsedDoc


def _parse_txt(file_path: Path) -> tuple[str, list[str]]:
    return file_path.read_text(encoding="utf-8", errors="replace"), []


def _parse_pdf(file_path: Path) -> tuple[str, list[str]]:
    warnings: list[str] = []
    try:
        reader = PdfReader(str(file_path))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except Exception as exc:
        warnings.append(f"PDF parsing failed: {exc}")
        return "", warnings

    text_parts = [page_text for page_text in pages if page_text]
    if not text_parts:
        warnings.append("No extractable text found in PDF.")
    return "\n".join(text_parts), warnings


def _parse_docx(file_path: Path) -> tuple[str, list[str]]:
    warnings: list[str] = []
    try:
        document = Document(str(file_path))
    except Exception as exc:
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", warnings

    paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
    for table in document.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text and cell.text.strip()]
            if cells:
                paragraphs.append(" | ".join(cells))
    if not paragraphs:
        warnings.append("No extractable text found in DOCX.")
    return "\n".join(paragraphs), warnings


_PARSERS = {
    ".txt": ("txt", _parse_txt),
    ".pdf": ("pdf", _parse_pdf),
    ".docx": ("docx", _parse_docx),
}


def parse_document(file_path: str | Path) -> ParsedDoc:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input document not found: '{path}'")

    extension = path.suffix.lower()
    if extension not in _PARSERS:
        raise NotImplementedError(
            f"Unsupported file type '{extension}'. Supported types: .txt, .pdf, .docx"
        )

    source_type, parser = _PARSERS[extension]
    text, warnings = parser(path)
    return ParsedDoc(source_type=source_type, text=text, parsing_warnings=warnings)

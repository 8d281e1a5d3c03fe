from __future__ import annotations

import re
import time
from io import BytesIO
from pathlib import Path
from zipfile import BadZipFile, ZipFile

from hireflow.core.config import settings
from hireflow.core.matching_config import get_matching_value

RESUME_CONTENT_TYPE_EXTENSIONS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
}

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")

_storage_root_override: Path | None = None


class FileStorageError(RuntimeError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def configure_storage_root(path: str | Path | None) -> None:
    global _storage_root_override
    _storage_root_override = Path(path) if path is not None else None


def storage_root() -> Path:
    return _storage_root_override or Path(settings.resume_storage_dir)


def ensure_storage_root() -> Path:
    root = storage_root()
    root.mkdir(parents=True, exist_ok=True)
    return root


def _allowed_extensions() -> set[str]:
    configured = get_matching_value("resumes.allowed_extensions", ["pdf", "docx"]) or []
    return {str(item).lower() for item in configured}


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
    except BadZipFile:
        return False
    return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)


def extension_from_filename(filename: str) -> str:
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1].strip().lower()


def resolve_resume_extension(filename: str, content_type: str | None) -> str:
    """Pick the resume format from the declared content type, falling back to the extension."""
    sanitized = (content_type or "").split(";")[0].strip().lower()
    explicit = RESUME_CONTENT_TYPE_EXTENSIONS.get(sanitized)
    if explicit:
        return explicit
    return extension_from_filename(filename)


def validate_upload_signature(*, extension: str, content: bytes) -> None:
    if extension == "pdf":
        if not content.startswith(PDF_MAGIC):
            raise FileStorageError("File signature does not match .pdf content.")
        return

    if extension == "docx":
        if not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",)):
            raise FileStorageError("File signature does not match .docx content.")
        return

    raise FileStorageError(f"Unsupported resume format '.{extension}'.")


def validate_resume_upload(*, filename: str, content_type: str | None, content: bytes) -> str:
    """Validate an uploaded resume and return its normalized extension."""
    extension = resolve_resume_extension(filename, content_type)
    if extension == "doc":
        raise FileStorageError("Legacy .doc is not supported. Convert to .docx.")
    if extension not in _allowed_extensions():
        raise FileStorageError("Please upload a PDF or DOCX file.")
    if not content:
        raise FileStorageError("Uploaded file is empty.")
    if len(content) > settings.resume_max_bytes:
        max_mb = settings.resume_max_bytes / (1024 * 1024)
        raise FileStorageError(f"File size must be less than {max_mb:g}MB.", status_code=413)
    validate_upload_signature(extension=extension, content=content)
    return extension


def safe_filename(filename: str, extension: str) -> str:
    base = Path(filename or "").name
    stem = base.rsplit(".", 1)[0] if "." in base else base
    stem = _UNSAFE_FILENAME_RE.sub("-", stem).strip("-.")[:120] or "resume"
    return f"{stem}.{extension}"


def save_resume_file(*, user_id: int, filename: str, extension: str, content: bytes) -> str:
    """Write the file under ``<root>/<user_id>/`` and return its path relative to the root."""
    root = ensure_storage_root()
    relative = Path(str(user_id)) / f"{int(time.time() * 1000)}-{safe_filename(filename, extension)}"
    target = root / relative
    target.parent.mkdir(parents=True, exist_ok=True)
    try:
        target.write_bytes(content)
    except OSError as exc:
        raise FileStorageError(f"Failed to store resume: {exc}", status_code=500) from exc
    return relative.as_posix()


def resolve_resume_path(relative_path: str) -> Path:
    root = storage_root().resolve()
    candidate = (root / relative_path).resolve()
    if root != candidate and root not in candidate.parents:
        raise FileStorageError("Resume path escapes storage root.", status_code=400)
    return candidate


def read_resume_file(relative_path: str) -> bytes:
    path = resolve_resume_path(relative_path)
    if not path.exists():
        raise FileStorageError("Failed to download resume: file not found.", status_code=404)
    try:
        return path.read_bytes()
    except OSError as exc:
        raise FileStorageError(f"Failed to download resume: {exc}", status_code=500) from exc

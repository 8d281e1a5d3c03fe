import tempfile
from io import BytesIO
from pathlib import Path
from zipfile import ZipFile

from hireflow.storage.db import configure_database, init_db
from hireflow.storage.files import configure_storage_root

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\ntrailer\n<< /Root 1 0 R >>\n%%EOF\n"


def make_docx_bytes() -> bytes:
    buffer = BytesIO()
    with ZipFile(buffer, "w") as archive:
        archive.writestr("[Content_Types].xml", "<Types/>")
        archive.writestr("word/document.xml", "<w:document/>")
    return buffer.getvalue()


class TempStorage:
    """Point the SQLite database and resume storage at a throwaway directory."""

    def __init__(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.resume_root = self.root / "resumes"

    def start(self) -> None:
        configure_database(str(self.root / "hireflow-test.db"))
        configure_storage_root(self.resume_root)
        init_db()

    def stop(self) -> None:
        configure_database(None)
        configure_storage_root(None)
        self._tmp.cleanup()

from pathlib import Path
from typing import Protocol

from docwf.domain.constants import DOCUMENT_TEMP_SUFFIX
from docwf.domain.errors import MissingFile
from docwf.domain.models.documents import DocumentName


class DocumentStore(Protocol):
    """Read/write access to the project documents by logical name."""

    def read(self, name: DocumentName) -> str:
        """Return the document text. Raises MissingFile when absent."""
        ...

    def write(self, name: DocumentName, text: str) -> None:
        ...

    def exists(self, name: DocumentName) -> bool:
        ...


class FileDocumentStore:
    """Handles persistence of the project documents in one directory"""

    def __init__(self, project_dir: Path):
        """
        Initialize the document store.

        Args:
            project_dir: Directory holding Overview.md, Tasks.md, ...
        """
        self.project_dir = Path(project_dir)
        self._line_endings: dict[DocumentName, str] = {}

    def path_for(self, name: DocumentName) -> Path:
        return self.project_dir / DocumentName(name).value

    def read(self, name: DocumentName) -> str:
        """
        Read a document.

        CRLF documents come back with ``\\n`` line endings; the store
        remembers the style and restores it on the next write.

        Args:
            name: Logical document name

        Returns:
            The document text

        Raises:
            MissingFile: If the document does not exist
        """
        name = DocumentName(name)
        path = self.path_for(name)
        if not path.is_file():
            raise MissingFile(name.value, str(path))
        with open(path, encoding="utf-8", newline="") as f:
            raw = f.read()
        if "\r\n" in raw:
            self._line_endings[name] = "\r\n"
            return raw.replace("\r\n", "\n")
        self._line_endings[name] = "\n"
        return raw

    def write(self, name: DocumentName, text: str) -> None:
        """
        Replace a document's text.

        Args:
            name: Logical document name
            text: Full replacement content

        Raises:
            OSError: If the write fails
        """
        name = DocumentName(name)
        self.project_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        temp_file = path.with_suffix(DOCUMENT_TEMP_SUFFIX)
        if self._line_endings.get(name) == "\r\n":
            text = text.replace("\r\n", "\n").replace("\n", "\r\n")

        # Write atomically - write to temp, then rename
        with open(temp_file, "w", encoding="utf-8", newline="") as f:
            f.write(text)

        temp_file.replace(path)

    def exists(self, name: DocumentName) -> bool:
        return self.path_for(name).is_file()


class InMemoryDocumentStore:
    """Dict-backed store for tests and dry runs."""

    def __init__(self, documents: dict[DocumentName, str] | None = None):
        self.documents: dict[DocumentName, str] = dict(documents or {})

    def read(self, name: DocumentName) -> str:
        if name not in self.documents:
            raise MissingFile(DocumentName(name).value)
        return self.documents[name]

    def write(self, name: DocumentName, text: str) -> None:
        self.documents[name] = text

    def exists(self, name: DocumentName) -> bool:
        return name in self.documents

from enum import Enum


class DocumentName(str, Enum):
    """The six project documents, addressed by logical name."""

    OVERVIEW = "Overview.md"
    ROADMAP = "Roadmap.md"
    TASKS = "Tasks.md"
    LOG = "Log.md"
    IDEAS = "Ideas.md"
    ARCHIVE = "Archive.md"

    @classmethod
    def from_file_name(cls, file_name: str) -> "DocumentName | None":
        """Resolve a file name as written by a diff header (``b/Log.md``, ``log``)."""
        name = file_name.strip().split("/")[-1]
        if not name.lower().endswith(".md"):
            name = f"{name}.md"
        for member in cls:
            if member.value.lower() == name.lower():
                return member
        return None

"""Status and node type enumerations."""

from enum import Enum


class IngestionStatus(str, Enum):
    """Ingestion state of a title container."""

    IN_PROGRESS = "In Progress"
    COMPLETE = "Complete"

    def __str__(self) -> str:
        return self.value


class BookMetadataStatus(str, Enum):
    """How many of a book's chapter folders carry metadata."""

    MISSING = "Missing"  # none of the chapters
    PARTIAL = "Partial"  # some of the chapters
    COMPLETED = "Completed"  # all of the chapters

    def __str__(self) -> str:
        return self.value


class ChapterMetadataStatus(str, Enum):
    """Whether a chapter folder has received its metadata."""

    MISSING = "Missing"
    COMPLETED = "Completed"

    def __str__(self) -> str:
        return self.value


class NodeType(str, Enum):
    """Types of nodes held by the content store."""

    FOLDER = "folder"
    CONTENT = "content"
    BOOK_FOLDER = "bookFolder"
    CHAPTER_FOLDER = "chapterFolder"

    @property
    def is_folder(self) -> bool:
        return self is not NodeType.CONTENT

    def __str__(self) -> str:
        return self.value

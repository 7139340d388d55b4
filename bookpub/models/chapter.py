"""Chapter data models."""

from pydantic import BaseModel, Field

from bookpub.models.status import ChapterMetadataStatus

CHAPTER_FOLDER_NAME_PREFIX = "chapter"
MAX_CHAPTER_NUMBER = 200


def chapter_folder_name(chapter_number: int) -> str:
    """Return the folder name used for a chapter number, e.g. ``chapter-3``."""
    return f"{CHAPTER_FOLDER_NAME_PREFIX}-{chapter_number}"


class ChapterMetadataInfo(BaseModel):
    """Chapter metadata extracted from a chapter metadata text file."""

    number: int = Field(ge=0, le=MAX_CHAPTER_NUMBER)
    title: str = ""
    author: str = ""
    source_filename: str = ""


class Chapter(BaseModel):
    """Typed view of a chapter container in the content store."""

    number: int
    title: str = ""
    author: str = ""
    folder_name: str = ""
    metadata_status: ChapterMetadataStatus = ChapterMetadataStatus.MISSING
    node_ref: str | None = None

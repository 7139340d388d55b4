"""Title (book) data models."""

from datetime import datetime

from pydantic import BaseModel, Field

from bookpub.models.status import BookMetadataStatus, IngestionStatus


class BookInfo(BaseModel):
    """Descriptive book metadata as delivered in a metadata text file."""

    title: str = ""
    genre: str = ""
    authors: list[str] = Field(default_factory=list)
    nr_of_chapters: int = 0
    nr_of_pages: int = 0


class Title(BaseModel):
    """Typed view of a title container in the content store.

    ``node_ref`` is only set for titles read back from the store.
    """

    isbn: str
    node_ref: str | None = None
    ingestion_status: IngestionStatus = IngestionStatus.IN_PROGRESS
    info: BookInfo = Field(default_factory=BookInfo)
    metadata_status: BookMetadataStatus = BookMetadataStatus.MISSING
    published_version: str | None = None
    published_date: datetime | None = None

    @property
    def is_published(self) -> bool:
        return bool(self.published_version)

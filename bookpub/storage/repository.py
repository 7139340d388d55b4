"""Typed access to title and chapter containers.

This is the only place where ``Title`` and ``Chapter`` records are mapped
to and from the content store's generic key/value properties.
"""

import logging
from datetime import datetime

from bookpub.models.chapter import Chapter, ChapterMetadataInfo, chapter_folder_name
from bookpub.models.status import (
    BookMetadataStatus,
    ChapterMetadataStatus,
    IngestionStatus,
    NodeType,
)
from bookpub.models.title import BookInfo, Title
from bookpub.storage.content_store import ContentStore, NodeRef

logger = logging.getLogger(__name__)

# Title container properties
PROP_INGESTION_STATUS = "ingestionStatus"
PROP_ISBN = "ISBN"
PROP_BOOK_TITLE = "bookTitle"
PROP_BOOK_GENRE = "bookGenre"
PROP_BOOK_AUTHORS = "bookAuthors"
PROP_BOOK_NR_OF_CHAPTERS = "nrOfChapters"
PROP_BOOK_NR_OF_PAGES = "nrOfPages"
PROP_BOOK_METADATA_STATUS = "bookMetadataStatus"
PROP_WEB_PUBLISHED_VERSION = "webPublishedVersion"
PROP_WEB_PUBLISHED_DATE = "webPublishedDate"

# Chapter container properties
PROP_CHAPTER_NUMBER = "chapterNumber"
PROP_CHAPTER_TITLE = "chapterTitle"
PROP_CHAPTER_AUTHOR = "chapterAuthor"
PROP_CHAPTER_METADATA_STATUS = "chapterMetadataStatus"


class TitleRepository:
    """Reads and writes typed title and chapter records.

    Title containers live directly below the shared incoming folder and are
    named by ISBN.

    Args:
        store: The content store holding the containers.
        incoming_folder_path: Display path of the shared incoming folder.
    """

    def __init__(self, store: ContentStore, incoming_folder_path: str) -> None:
        self.store = store
        self._incoming_folder_path = incoming_folder_path

    def incoming_folder(self) -> NodeRef:
        """Return the shared incoming folder, creating it on first use."""
        return self.store.get_or_create_path(self._incoming_folder_path)

    # ── Titles ───────────────────────────────────────────────────────────

    def find_title_container(self, isbn: str) -> NodeRef | None:
        ref = self.store.get_child_by_name(self.incoming_folder(), isbn)
        if ref is None or self.store.get_type(ref) is not NodeType.BOOK_FOLDER:
            return None
        return ref

    def get_ingestion_status(self, title_ref: NodeRef) -> IngestionStatus | None:
        value = self.store.get_property(title_ref, PROP_INGESTION_STATUS)
        return IngestionStatus(value) if value else None

    def set_ingestion_status(self, title_ref: NodeRef, status: IngestionStatus) -> None:
        self.store.set_property(title_ref, PROP_INGESTION_STATUS, status.value)

    def create_title(self, parent: NodeRef, isbn: str, info: BookInfo | None = None) -> NodeRef:
        """Create a title container in the IN_PROGRESS state.

        Args:
            parent: Folder to create the title container in.
            isbn: The ISBN naming the container.
            info: Book metadata, if a metadata file was delivered.

        Returns:
            Reference to the new title container.
        """
        info = info or BookInfo()
        title_ref = self.store.create_container(parent, isbn, NodeType.BOOK_FOLDER)
        self.store.set_properties(
            title_ref,
            {
                PROP_ISBN: isbn,
                PROP_INGESTION_STATUS: IngestionStatus.IN_PROGRESS.value,
                PROP_BOOK_TITLE: info.title,
                PROP_BOOK_GENRE: info.genre,
                PROP_BOOK_AUTHORS: list(info.authors),
                PROP_BOOK_NR_OF_CHAPTERS: info.nr_of_chapters,
                PROP_BOOK_NR_OF_PAGES: info.nr_of_pages,
                PROP_BOOK_METADATA_STATUS: BookMetadataStatus.MISSING.value,
            },
        )
        logger.debug("Created ISBN folder %s", self.store.get_display_path(title_ref))
        return title_ref

    def load_title(self, title_ref: NodeRef) -> Title:
        props = self.store.get_properties(title_ref)
        published_date = props.get(PROP_WEB_PUBLISHED_DATE)
        return Title(
            isbn=props.get(PROP_ISBN) or self.store.get_name(title_ref),
            node_ref=title_ref,
            ingestion_status=props.get(PROP_INGESTION_STATUS, IngestionStatus.IN_PROGRESS),
            info=BookInfo(
                title=props.get(PROP_BOOK_TITLE) or "",
                genre=props.get(PROP_BOOK_GENRE) or "",
                authors=props.get(PROP_BOOK_AUTHORS) or [],
                nr_of_chapters=props.get(PROP_BOOK_NR_OF_CHAPTERS) or 0,
                nr_of_pages=props.get(PROP_BOOK_NR_OF_PAGES) or 0,
            ),
            metadata_status=props.get(PROP_BOOK_METADATA_STATUS, BookMetadataStatus.MISSING),
            published_version=props.get(PROP_WEB_PUBLISHED_VERSION),
            published_date=datetime.fromisoformat(published_date) if published_date else None,
        )

    def delete_title(self, title_ref: NodeRef) -> None:
        """Delete a title container with all its chapter folders and content."""
        self.store.delete_container(title_ref)

    # ── Chapters ─────────────────────────────────────────────────────────

    def create_chapter_folder(
        self,
        title_ref: NodeRef,
        number: int,
        info: ChapterMetadataInfo | None = None,
        folder_name: str | None = None,
    ) -> NodeRef:
        """Create a chapter folder below a title container.

        The folder is called ``chapter-{number}`` unless ``folder_name`` is given.

        The chapter metadata status is COMPLETED when chapter metadata was
        supplied and MISSING otherwise.
        """
        chapter_ref = self.store.create_container(
            title_ref, folder_name or chapter_folder_name(number), NodeType.CHAPTER_FOLDER
        )
        status = ChapterMetadataStatus.COMPLETED if info else ChapterMetadataStatus.MISSING
        self.store.set_properties(
            chapter_ref,
            {
                PROP_CHAPTER_NUMBER: number,
                PROP_CHAPTER_TITLE: info.title if info else "",
                PROP_CHAPTER_AUTHOR: info.author if info else "",
                PROP_CHAPTER_METADATA_STATUS: status.value,
            },
        )
        logger.debug(
            "Created chapter folder %s [chapterTitle=%s]",
            self.store.get_display_path(chapter_ref),
            info.title if info else "",
        )
        return chapter_ref

    def create_chapter_folders(
        self, title_ref: NodeRef, chapters: list[ChapterMetadataInfo]
    ) -> list[NodeRef]:
        return [self.create_chapter_folder(title_ref, chapter.number, chapter) for chapter in chapters]

    def load_chapters(self, title_ref: NodeRef) -> list[Chapter]:
        """Return the title's chapters sorted by chapter number."""
        chapters = []
        for chapter_ref in self.store.list_children(title_ref, NodeType.CHAPTER_FOLDER):
            props = self.store.get_properties(chapter_ref)
            chapters.append(
                Chapter(
                    number=int(props.get(PROP_CHAPTER_NUMBER, 0)),
                    title=props.get(PROP_CHAPTER_TITLE) or "",
                    author=props.get(PROP_CHAPTER_AUTHOR) or "",
                    metadata_status=props.get(
                        PROP_CHAPTER_METADATA_STATUS, ChapterMetadataStatus.MISSING
                    ),
                    folder_name=self.store.get_name(chapter_ref),
                    node_ref=chapter_ref,
                )
            )
        return sorted(chapters, key=lambda chapter: chapter.number)

    def update_book_metadata_status(self, title_ref: NodeRef) -> BookMetadataStatus:
        """Recompute the book metadata status from the chapter statuses."""
        chapters = self.load_chapters(title_ref)
        completed = sum(
            1 for chapter in chapters if chapter.metadata_status is ChapterMetadataStatus.COMPLETED
        )
        if chapters and completed == len(chapters):
            status = BookMetadataStatus.COMPLETED
        elif completed:
            status = BookMetadataStatus.PARTIAL
        else:
            status = BookMetadataStatus.MISSING
        self.store.set_property(title_ref, PROP_BOOK_METADATA_STATUS, status.value)
        return status

    # ── Publishing ───────────────────────────────────────────────────────

    def get_published_version(self, title_ref: NodeRef) -> str | None:
        return self.store.get_property(title_ref, PROP_WEB_PUBLISHED_VERSION)

    def get_published_date(self, title_ref: NodeRef) -> datetime | None:
        value = self.store.get_property(title_ref, PROP_WEB_PUBLISHED_DATE)
        return datetime.fromisoformat(value) if value else None

    def record_publish(self, title_ref: NodeRef, version: str, published_at: datetime) -> None:
        self.store.set_properties(
            title_ref,
            {
                PROP_WEB_PUBLISHED_VERSION: version,
                PROP_WEB_PUBLISHED_DATE: published_at.isoformat(timespec="microseconds"),
            },
        )

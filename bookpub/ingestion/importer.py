"""Archive importers: extract a delivered ZIP into a title container."""

import logging
import mimetypes
import zipfile
from abc import ABC, abstractmethod
from pathlib import Path, PurePosixPath

from bookpub.constants import (
    ARTWORK_FOLDER_NAME,
    EPUB_PACKAGE_FILE_FILENAME,
    IMAGE_EXTENSIONS,
    STYLES_FOLDER_NAME,
    STYLESHEET_EXTENSIONS,
    SUPPLEMENTARY_FOLDER_NAME,
)
from bookpub.errors import BookPubError, ImportFailedError, ProcessingErrorCode
from bookpub.ingestion.chapters import ChapterFolderResolver
from bookpub.ingestion.isbn import extract_isbn
from bookpub.ingestion.metadata import MetadataParser
from bookpub.models.chapter import ChapterMetadataInfo
from bookpub.models.status import IngestionStatus
from bookpub.models.title import BookInfo
from bookpub.storage.content_store import NodeRef
from bookpub.storage.repository import TitleRepository

logger = logging.getLogger(__name__)

DEFAULT_MIMETYPE = "application/octet-stream"
EXTRA_MIMETYPES = {
    ".opf": "application/oebps-package+xml",
    ".xhtml": "application/xhtml+xml",
    ".ncx": "application/x-dtbncx+xml",
}


def guess_mimetype(filename: str) -> str:
    suffix = PurePosixPath(filename).suffix.lower()
    if suffix in EXTRA_MIMETYPES:
        return EXTRA_MIMETYPES[suffix]
    return mimetypes.guess_type(filename)[0] or DEFAULT_MIMETYPE


class ArchiveImporter(ABC):
    """Imports one delivered archive below a target container."""

    @abstractmethod
    def import_archive(self, archive_file: Path, target_container: NodeRef, isbn: str) -> bool:
        """Import ``archive_file`` for ``isbn`` below ``target_container``.

        Returns True when the title ended up COMPLETE with its full chapter
        set. On failure nothing of the import is left in the store and
        False is returned (or an exception raised).
        """


class ZipArchiveImporter(ArchiveImporter):
    """Imports content and metadata ZIPs into a new title container.

    Entries are classified by name: ``package.opf`` is stored on the title
    container, metadata text files become title and chapter properties,
    chapter files go to their chapter folder, stylesheets to ``Styles``,
    images to ``Artwork`` and everything else to ``Supplementary``.

    Args:
        repository: Typed access to title and chapter containers.
        resolver: Maps chapter filenames to chapter folders.
        metadata_parser: Parser for the metadata text files.
    """

    def __init__(
        self,
        repository: TitleRepository,
        resolver: ChapterFolderResolver,
        metadata_parser: MetadataParser | None = None,
    ) -> None:
        self._repository = repository
        self._store = repository.store
        self._resolver = resolver
        self._metadata_parser = metadata_parser or MetadataParser()

    def import_archive(self, archive_file: Path, target_container: NodeRef, isbn: str) -> bool:
        archive_file = Path(archive_file)
        logger.info("Importing [%s] for ISBN %s", archive_file.name, isbn)

        try:
            entries = self._read_entries(archive_file)
        except (zipfile.BadZipFile, ImportFailedError, OSError) as e:
            logger.error("Error extracting the zip file [%s]: %s", archive_file.name, e)
            return False

        try:
            self._import_entries(entries, target_container, isbn)
        except (BookPubError, OSError, ValueError) as e:
            logger.error("Could not import [%s] for ISBN %s: %s", archive_file.name, isbn, e)
            return False

        logger.info("Imported [%s] with %d entries for ISBN %s", archive_file.name, len(entries), isbn)
        return True

    def _read_entries(self, archive_file: Path) -> dict[str, bytes]:
        """Read all file entries, flattened to their base names."""
        entries: dict[str, bytes] = {}
        with zipfile.ZipFile(archive_file) as zf:
            for info in zf.infolist():
                if info.is_dir():
                    continue
                name = PurePosixPath(info.filename).name
                if not name or name.startswith(".") or info.filename.startswith("__MACOSX/"):
                    continue
                if name in entries:
                    raise ImportFailedError(
                        f"Duplicate entry name [{name}] in {archive_file.name}",
                        ProcessingErrorCode.CONTENT_INGESTION_EXTRACT_ZIP,
                    )
                entries[name] = zf.read(info)
        return entries

    def _import_entries(self, entries: dict[str, bytes], target_container: NodeRef, isbn: str) -> NodeRef:
        """Create the title container and store all entries below it.

        The title container is removed again if anything fails.
        """
        parser = self._metadata_parser

        book_info = BookInfo()
        chapter_infos: dict[int, ChapterMetadataInfo] = {}
        chapter_files: dict[str, bytes] = {}
        package_file: bytes | None = None
        styles: dict[str, bytes] = {}
        artwork: dict[str, bytes] = {}
        supplementary: dict[str, bytes] = {}

        for name, data in entries.items():
            suffix = PurePosixPath(name).suffix.lower()
            if name == EPUB_PACKAGE_FILE_FILENAME:
                package_file = data
            elif parser.is_book_info_file(name):
                book_info = parser.parse_book_info(data, name)
            elif parser.is_chapter_info_file(name):
                chapter_info = parser.parse_chapter_info(data, name)
                chapter_infos[chapter_info.number] = chapter_info
            elif self._resolver.is_chapter_file(name):
                if extract_isbn(name) != isbn:
                    raise ImportFailedError(
                        f"Chapter file [{name}] does not belong to ISBN {isbn}",
                        ProcessingErrorCode.CONTENT_INGESTION_HANDLE_CHAPTERS,
                    )
                chapter_files[name] = data
            elif suffix in STYLESHEET_EXTENSIONS:
                styles[name] = data
            elif suffix in IMAGE_EXTENSIONS:
                artwork[name] = data
            else:
                supplementary[name] = data

        chapters = self._chapter_list(chapter_infos, chapter_files)
        if book_info.nr_of_chapters and book_info.nr_of_chapters != len(chapters):
            logger.warning(
                "ISBN %s declares %d chapters but the archive has %d",
                isbn,
                book_info.nr_of_chapters,
                len(chapters),
            )
        if not book_info.nr_of_chapters:
            book_info.nr_of_chapters = len(chapters)

        title_ref = self._repository.create_title(target_container, isbn, book_info)
        try:
            for chapter in chapters:
                info = chapter_infos.get(chapter.number)
                self._repository.create_chapter_folder(
                    title_ref, chapter.number, info, self._resolver.folder_name_for(chapter.number)
                )

            for name, data in chapter_files.items():
                chapter_ref = self._resolver.resolve(name, title_ref)
                if chapter_ref is None:
                    raise ImportFailedError(
                        f"No chapter folder for [{name}]",
                        ProcessingErrorCode.CONTENT_INGESTION_CHAPTER_FILES_MISMATCH,
                    )
                self._store.create_content(chapter_ref, name, data, guess_mimetype(name))

            if package_file is not None:
                self._store.create_content(
                    title_ref, EPUB_PACKAGE_FILE_FILENAME, package_file, guess_mimetype(EPUB_PACKAGE_FILE_FILENAME)
                )
            self._store_folder(title_ref, STYLES_FOLDER_NAME, styles)
            self._store_folder(title_ref, ARTWORK_FOLDER_NAME, artwork)
            self._store_folder(title_ref, SUPPLEMENTARY_FOLDER_NAME, supplementary)

            self._repository.update_book_metadata_status(title_ref)
            self._repository.set_ingestion_status(title_ref, IngestionStatus.COMPLETE)
        except Exception:
            self._discard(title_ref, isbn)
            raise
        return title_ref

    def _chapter_list(
        self, chapter_infos: dict[int, ChapterMetadataInfo], chapter_files: dict[str, bytes]
    ) -> list[ChapterMetadataInfo]:
        """Chapters from metadata files, or from chapter filenames when there are none."""
        if chapter_infos:
            return sorted(chapter_infos.values(), key=lambda chapter: chapter.number)

        numbers = set()
        for name in chapter_files:
            number = self._resolver.chapter_number(name)
            if number is None:
                raise ImportFailedError(
                    f"Could not get chapter number from [{name}]",
                    ProcessingErrorCode.CONTENT_INGESTION_HANDLE_CHAPTERS,
                )
            numbers.add(number)
        return [ChapterMetadataInfo(number=number) for number in sorted(numbers)]

    def _store_folder(self, title_ref: NodeRef, folder_name: str, files: dict[str, bytes]) -> None:
        if not files:
            return
        folder_ref = self._store.get_or_create_folder(title_ref, folder_name)
        for name, data in sorted(files.items()):
            self._store.create_content(folder_ref, name, data, guess_mimetype(name))
        logger.debug("Stored %d files in %s", len(files), folder_name)

    def _discard(self, title_ref: NodeRef, isbn: str) -> None:
        if not self._store.exists(title_ref):
            return
        logger.warning("Removing partially imported title container for ISBN %s", isbn)
        self._repository.delete_title(title_ref)

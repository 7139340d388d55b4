"""Parser for the book and chapter metadata text files found in archives."""

import logging
import re

import chardet
from pydantic import ValidationError

from bookpub.errors import ImportFailedError, ProcessingErrorCode
from bookpub.models.chapter import ChapterMetadataInfo
from bookpub.models.title import BookInfo

logger = logging.getLogger(__name__)

BOOK_METADATA_TITLE_PROP_NAME = "bookTitle"
BOOK_METADATA_GENRE_PROP_NAME = "bookGenre"
BOOK_METADATA_AUTHORS_PROP_NAME = "bookAuthors"
BOOK_METADATA_NR_OF_CHAPTERS_PROP_NAME = "nrOfChapters"
BOOK_METADATA_NR_OF_PAGES_PROP_NAME = "nrOfPages"
CHAPTER_METADATA_NUMBER_PROP_NAME = "chapterNumber"
CHAPTER_METADATA_TITLE_PROP_NAME = "chapterTitle"
CHAPTER_METADATA_AUTHOR_PROP_NAME = "chapterAuthor"

BOOK_GENRES: list[str] = [
    "Non-fiction",
    "Comedy",
    "Drama",
    "Fantasy",
    "Fiction",
    "Horror",
    "Mythology",
    "Mystery",
    "Romance",
    "Satire",
    "Tragedy",
    "Tragicomedy",
]

# Such as 9780486282145.txt and 9780486282145_Chapter_1.txt
BOOK_INFO_FILE_PATTERN = re.compile(r"^[0-9]{13}\.txt$", re.IGNORECASE)
CHAPTER_INFO_FILE_PATTERN = re.compile(r"^[0-9]{13}_Chapter_([0-9]+)\.txt$", re.IGNORECASE)

# Markup that sometimes leaks into delivered metadata values
SPECIAL_CHARACTERS = ("<b>", "</b>", "<i>", "</i>", ">>")


class MetadataParser:
    """Parses ``key=value`` metadata text files into typed records.

    Book information comes from ``{ISBN}.txt`` and chapter information
    from ``{ISBN}_Chapter_{N}.txt``. Lines starting with ``#`` or ``!``
    are comments; ``:`` is accepted as separator as well as ``=``.
    """

    def is_book_info_file(self, filename: str) -> bool:
        return BOOK_INFO_FILE_PATTERN.match(filename) is not None

    def is_chapter_info_file(self, filename: str) -> bool:
        return CHAPTER_INFO_FILE_PATTERN.match(filename) is not None

    def parse_book_info(self, raw: bytes, source_name: str = "") -> BookInfo:
        """Parse a book information file.

        Raises:
            ImportFailedError: If a numeric field is not a number.
        """
        props = self.parse_properties(self.decode(raw, source_name))
        genre = props.get(BOOK_METADATA_GENRE_PROP_NAME, "")
        if genre and genre not in BOOK_GENRES:
            logger.warning("Unknown genre [%s] in %s", genre, source_name)

        authors = re.split(r"[,|]", props.get(BOOK_METADATA_AUTHORS_PROP_NAME, ""))
        return BookInfo(
            title=props.get(BOOK_METADATA_TITLE_PROP_NAME, ""),
            genre=genre,
            authors=[author.strip() for author in authors if author.strip()],
            nr_of_chapters=self._to_int(props, BOOK_METADATA_NR_OF_CHAPTERS_PROP_NAME, source_name),
            nr_of_pages=self._to_int(props, BOOK_METADATA_NR_OF_PAGES_PROP_NAME, source_name),
        )

    def parse_chapter_info(self, raw: bytes, source_name: str) -> ChapterMetadataInfo:
        """Parse a chapter information file.

        The chapter number comes from the ``chapterNumber`` property, or from
        the filename when the property is absent.

        Raises:
            ImportFailedError: If the chapter number is missing or out of range.
        """
        props = self.parse_properties(self.decode(raw, source_name))
        if CHAPTER_METADATA_NUMBER_PROP_NAME in props:
            number = self._to_int(props, CHAPTER_METADATA_NUMBER_PROP_NAME, source_name)
        else:
            match = CHAPTER_INFO_FILE_PATTERN.match(source_name)
            if match is None:
                raise ImportFailedError(
                    f"No chapter number in {source_name}",
                    ProcessingErrorCode.CONTENT_INGESTION_HANDLE_METADATA_FILE,
                )
            number = int(match.group(1))

        try:
            return ChapterMetadataInfo(
                number=number,
                title=props.get(CHAPTER_METADATA_TITLE_PROP_NAME, ""),
                author=props.get(CHAPTER_METADATA_AUTHOR_PROP_NAME, ""),
                source_filename=source_name,
            )
        except ValidationError as e:
            raise ImportFailedError(
                f"Invalid chapter metadata in {source_name}: {e}",
                ProcessingErrorCode.CONTENT_INGESTION_HANDLE_METADATA_FILE,
            ) from e

    def parse_properties(self, text: str) -> dict[str, str]:
        props: dict[str, str] = {}
        for line in text.splitlines():
            stripped = line.strip().lstrip("\ufeff")
            if not stripped or stripped[0] in "#!":
                continue
            match = re.match(r"([^=:]+?)\s*[=:]\s*(.*)$", stripped)
            if match is None:
                logger.debug("Ignoring metadata line without separator: %r", stripped)
                continue
            props[match.group(1).strip()] = self._clean(match.group(2))
        return props

    def decode(self, raw: bytes, source_name: str = "") -> str:
        """Decode a metadata file with encoding detection.

        Tries UTF-8 first, then uses chardet, then windows-1252.
        """
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            pass

        detected = chardet.detect(raw)
        encoding = detected.get("encoding") or "utf-8"
        confidence = detected.get("confidence", 0)

        if confidence < 0.7:
            logger.warning(
                "Low confidence encoding detection for %s: %s (%.0f%%)",
                source_name,
                encoding,
                confidence * 100,
            )

        try:
            return raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            try:
                return raw.decode("windows-1252")
            except UnicodeDecodeError:
                logger.error("Failed to decode metadata file: %s", source_name)
                return raw.decode("utf-8", errors="replace")

    def _to_int(self, props: dict[str, str], key: str, source_name: str) -> int:
        value = props.get(key, "").strip()
        if not value:
            return 0
        try:
            return int(value)
        except ValueError as e:
            raise ImportFailedError(
                f"Property {key}={value!r} in {source_name} is not a number",
                ProcessingErrorCode.CONTENT_INGESTION_HANDLE_METADATA_FILE,
            ) from e

    @staticmethod
    def _clean(value: str) -> str:
        for special in SPECIAL_CHARACTERS:
            value = value.replace(special, "")
        return value.strip()

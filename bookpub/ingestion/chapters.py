"""Resolving chapter content files to their chapter folders."""

import logging
import re

from bookpub.config import ChapterConvention
from bookpub.models.chapter import CHAPTER_FOLDER_NAME_PREFIX, MAX_CHAPTER_NUMBER, chapter_folder_name
from bookpub.storage.content_store import ContentStore, NodeRef

logger = logging.getLogger(__name__)

# Such as 9780486282145-Chapter-001.xhtml
CONVENTION_A_PATTERN = re.compile(r"^[0-9]{13}-Chapter-[0-9]{3}\.[^.]+$")
# Such as 9780203807217-chapter8.pdf
CONVENTION_B_PATTERN = re.compile(r"^[0-9]{13}-chapter[0-9]+\.[^.]+$", re.IGNORECASE)


class ChapterFolderResolver:
    """Maps chapter content filenames to existing chapter folders.

    The filename convention is fixed when the resolver is built. The
    resolver only looks folders up, it never creates them.

    Args:
        store: Content store holding the title containers.
        convention: The active chapter filename convention.
    """

    def __init__(self, store: ContentStore, convention: ChapterConvention = ChapterConvention.A) -> None:
        self._store = store
        self.convention = convention

    def is_chapter_file(self, filename: str) -> bool:
        pattern = CONVENTION_A_PATTERN if self.convention is ChapterConvention.A else CONVENTION_B_PATTERN
        return pattern.match(filename) is not None

    def chapter_number(self, filename: str) -> int | None:
        """Return the chapter number encoded in a filename, or None.

        Under convention A the number is the three characters before the
        last dot. Under convention B it is the trailing digits of the folder
        name part, when there are any. Either way it must lie in
        ``[0, 200]``.
        """
        if self.convention is ChapterConvention.A:
            index_of_dot = filename.rfind(".")
            digits = filename[max(index_of_dot - 3, 0):index_of_dot] if index_of_dot > 0 else ""
            if not (digits.isascii() and digits.isdigit()):
                logger.error("Incorrect chapter number from filename [%s]", filename)
                return None
        else:
            match = re.search(r"([0-9]+)$", self.chapter_folder_name(filename) or "")
            if match is None:
                return None
            digits = match.group(1)

        chapter_nr = int(digits)
        if chapter_nr < 0 or chapter_nr > MAX_CHAPTER_NUMBER:
            logger.error("Incorrect chapter number from filename [%s]", filename)
            return None
        return chapter_nr

    def folder_name_for(self, chapter_number: int) -> str:
        """Name of the folder created for a chapter number under this convention."""
        if self.convention is ChapterConvention.A:
            return chapter_folder_name(chapter_number)
        return f"{CHAPTER_FOLDER_NAME_PREFIX}{chapter_number}"

    def chapter_folder_name(self, filename: str) -> str | None:
        """Compute the destination folder name for a chapter file."""
        if self.convention is ChapterConvention.A:
            chapter_nr = self.chapter_number(filename)
            return chapter_folder_name(chapter_nr) if chapter_nr is not None else None

        index_of_dash = filename.find("-")
        index_of_dot = filename.rfind(".")
        folder_name = filename[index_of_dash + 1:index_of_dot] if 0 <= index_of_dash < index_of_dot else ""
        if not folder_name.strip():
            logger.error("Could not extract chapter folder name from filename [%s]", filename)
            return None
        return folder_name.lower()

    def resolve(self, filename: str, title_ref: NodeRef) -> NodeRef | None:
        """Return the chapter folder a file belongs in, or None if there is none."""
        folder_name = self.chapter_folder_name(filename)
        if folder_name is None:
            return None
        return self._store.get_child_by_name(title_ref, folder_name)

"""Building the EPUB artifact ZIP from a title container."""

import logging
import zipfile
from pathlib import Path, PurePosixPath

from bookpub.constants import (
    ARTWORK_FOLDER_NAME,
    EPUB_CONTAINER_FILENAME,
    EPUB_IMAGES_FOLDER_NAME,
    EPUB_META_INF_FOLDER_NAME,
    EPUB_MIMETYPE_FILENAME,
    EPUB_OPEN_PUBLICATION_STRUCTURE_FOLDER_NAME,
    EPUB_PACKAGE_FILE_FILENAME,
    EPUB_STYLESHEET_FOLDER_NAME,
    STYLES_FOLDER_NAME,
    SUPPLEMENTARY_FOLDER_NAME,
)
from bookpub.errors import AssemblyFailedError, BookPubError
from bookpub.models.status import NodeType
from bookpub.storage.content_store import ContentStore, NodeRef
from bookpub.storage.repository import PROP_CHAPTER_NUMBER

logger = logging.getLogger(__name__)

CONTAINER_XML = (
    '<?xml version="1.0" encoding="UTF-8" ?>\n'
    '<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">\n'
    "   <rootfiles>\n"
    f'      <rootfile full-path="{EPUB_OPEN_PUBLICATION_STRUCTURE_FOLDER_NAME}/{EPUB_PACKAGE_FILE_FILENAME}"'
    ' media-type="application/oebps-package+xml"/>\n'
    "   </rootfiles>\n"
    "</container>"
)


class ArtifactAssembler:
    """Writes a title container out as an EPUB archive.

    The entry order is fixed: ``mimetype`` (stored, not compressed),
    ``META-INF/container.xml``, ``OPS/package.opf``, the ``Styles``,
    ``Artwork`` and ``Supplementary`` folders and finally the chapter
    folders in chapter number order.

    Args:
        store: Content store holding the title container.
        mimetype: Content of the ``mimetype`` entry.
    """

    def __init__(self, store: ContentStore, mimetype: str = "application/epub+zip") -> None:
        self._store = store
        self.mimetype = mimetype

    def assemble(self, title_ref: NodeRef, isbn: str, output_path: str | Path) -> Path:
        """Write the artifact for a title to ``output_path``.

        Args:
            title_ref: The title container.
            isbn: The title's ISBN, used in log messages.
            output_path: File to write the archive to. It is removed again
                if assembly fails.

        Returns:
            The path of the written archive.

        Raises:
            AssemblyFailedError: If ``package.opf`` is missing, an entry
                would be written twice or the store or filesystem fails.
        """
        output_path = Path(output_path)
        logger.debug("Assembling EPUB for ISBN %s into %s", isbn, output_path)
        try:
            with zipfile.ZipFile(output_path, "w", zipfile.ZIP_DEFLATED) as zf:
                writer = _EntryWriter(zf)
                writer.write(EPUB_MIMETYPE_FILENAME, self.mimetype.encode("ascii"), zipfile.ZIP_STORED)
                writer.write(
                    f"{EPUB_META_INF_FOLDER_NAME}/{EPUB_CONTAINER_FILENAME}", CONTAINER_XML.encode("utf-8")
                )
                self._add_package_file(writer, title_ref, isbn)
                self._add_title_folders(writer, title_ref, isbn)
        except (BookPubError, OSError, ValueError, zipfile.BadZipFile) as e:
            output_path.unlink(missing_ok=True)
            if isinstance(e, AssemblyFailedError):
                raise
            raise AssemblyFailedError(f"Could not assemble EPUB for ISBN {isbn}: {e}") from e

        logger.debug("Assembled EPUB for ISBN %s with %d entries", isbn, len(writer.written))
        return output_path

    def _add_package_file(self, writer: "_EntryWriter", title_ref: NodeRef, isbn: str) -> None:
        package_ref = self._store.get_child_by_name(title_ref, EPUB_PACKAGE_FILE_FILENAME)
        if package_ref is None:
            raise AssemblyFailedError(
                f"EPUB {EPUB_PACKAGE_FILE_FILENAME} file with book layout is missing for ISBN {isbn}"
            )
        writer.write(
            f"{EPUB_OPEN_PUBLICATION_STRUCTURE_FOLDER_NAME}/{EPUB_PACKAGE_FILE_FILENAME}",
            self._store.read_content(package_ref),
        )

    def _add_title_folders(self, writer: "_EntryWriter", title_ref: NodeRef, isbn: str) -> None:
        ops = EPUB_OPEN_PUBLICATION_STRUCTURE_FOLDER_NAME
        folders = [
            (STYLES_FOLDER_NAME, f"{ops}/{EPUB_STYLESHEET_FOLDER_NAME}"),
            (ARTWORK_FOLDER_NAME, f"{ops}/{EPUB_IMAGES_FOLDER_NAME}"),
            (SUPPLEMENTARY_FOLDER_NAME, ops),
        ]
        for folder_name, path_in_artifact in folders:
            folder_ref = self._store.get_child_by_name(title_ref, folder_name)
            if folder_ref is None:
                logger.info("Skipping %s in EPUB for ISBN %s as it is missing", folder_name, isbn)
                continue
            self._add_folder(writer, folder_ref, path_in_artifact)

        chapter_refs = self._store.list_children(title_ref, NodeType.CHAPTER_FOLDER)
        for chapter_ref in sorted(chapter_refs, key=self._chapter_number):
            self._add_folder(writer, chapter_ref, ops)
        logger.debug("Added %d chapter folders to %s for ISBN %s", len(chapter_refs), ops, isbn)

    def _add_folder(self, writer: "_EntryWriter", folder_ref: NodeRef, path_in_artifact: str) -> None:
        for child_ref in self._store.list_children(folder_ref):
            path = str(PurePosixPath(path_in_artifact) / self._store.get_name(child_ref))
            if self._store.get_type(child_ref) is NodeType.CONTENT:
                writer.write(path, self._store.read_content(child_ref))
            else:
                self._add_folder(writer, child_ref, path)

    def _chapter_number(self, chapter_ref: NodeRef) -> int:
        return int(self._store.get_property(chapter_ref, PROP_CHAPTER_NUMBER) or 0)


class _EntryWriter:
    """Writes ZIP entries and refuses to write the same path twice."""

    def __init__(self, zf: zipfile.ZipFile) -> None:
        self._zf = zf
        self.written: set[str] = set()

    def write(self, path: str, data: bytes, compress_type: int = zipfile.ZIP_DEFLATED) -> None:
        if path in self.written:
            raise AssemblyFailedError(f"Duplicate entry [{path}] in EPUB")
        self._zf.writestr(zipfile.ZipInfo(path), data, compress_type=compress_type)
        self.written.add(path)

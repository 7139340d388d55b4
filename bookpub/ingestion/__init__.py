"""Book ingestion: drop folder scanning, reconciliation and archive import."""

from bookpub.ingestion.chapters import ChapterFolderResolver
from bookpub.ingestion.importer import ArchiveImporter, ZipArchiveImporter
from bookpub.ingestion.isbn import extract_isbn, is_isbn
from bookpub.ingestion.metadata import MetadataParser
from bookpub.ingestion.quarantine import FAILED_PROCESSING_DIR_NAME, quarantine
from bookpub.ingestion.reconciler import IngestionReconciler
from bookpub.ingestion.scanner import list_archives, validate_drop_directory

__all__ = [
    "ArchiveImporter",
    "ChapterFolderResolver",
    "FAILED_PROCESSING_DIR_NAME",
    "IngestionReconciler",
    "MetadataParser",
    "ZipArchiveImporter",
    "extract_isbn",
    "is_isbn",
    "list_archives",
    "quarantine",
    "validate_drop_directory",
]

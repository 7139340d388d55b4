"""Data models for book ingestion and publishing."""

from bookpub.models.chapter import (
    CHAPTER_FOLDER_NAME_PREFIX,
    MAX_CHAPTER_NUMBER,
    Chapter,
    ChapterMetadataInfo,
    chapter_folder_name,
)
from bookpub.models.results import (
    ArchiveOutcome,
    ReconcileAction,
    RunStatistics,
    ScanCycleResult,
)
from bookpub.models.status import (
    BookMetadataStatus,
    ChapterMetadataStatus,
    IngestionStatus,
    NodeType,
)
from bookpub.models.title import BookInfo, Title
from bookpub.models.workflow import ProcessContext

__all__ = [
    "ArchiveOutcome",
    "BookInfo",
    "BookMetadataStatus",
    "CHAPTER_FOLDER_NAME_PREFIX",
    "Chapter",
    "ChapterMetadataInfo",
    "ChapterMetadataStatus",
    "IngestionStatus",
    "MAX_CHAPTER_NUMBER",
    "NodeType",
    "ProcessContext",
    "ReconcileAction",
    "RunStatistics",
    "ScanCycleResult",
    "Title",
    "chapter_folder_name",
]

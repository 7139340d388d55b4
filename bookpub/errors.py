"""Error codes and exception hierarchy for ingestion and publishing."""

from enum import Enum


class ProcessingErrorCode(Enum):
    """Numeric processing error codes with a human readable description."""

    INGESTION_DIR_NOT_FOUND = (1, "Directory to check does not exist.")
    INGESTION_DIR_IS_FILE = (2, "The file path must be to a directory.")
    INGESTION_NO_ISBN_IN_ZIP_NAME = (3, "No ISBN in ZIP name")
    CONTENT_INGESTION_GENERAL = (100, "Content ingestion general error")
    CONTENT_INGESTION_EXTRACT_ZIP = (101, "Error extracting the content zip file")
    CONTENT_INGESTION_HANDLE_CHAPTERS = (102, "Error extracting and importing chapters")
    CONTENT_INGESTION_HANDLE_SUPPLEMENTARY_FILES = (
        103,
        "Error extracting and importing supplementary files",
    )
    CONTENT_INGESTION_HANDLE_ARTWORK_FILES = (104, "Error extracting and importing artwork files")
    CONTENT_INGESTION_HANDLE_METADATA_FILE = (105, "Error extracting and importing metadata file")
    CONTENT_INGESTION_CHAPTER_FILES_MISMATCH = (107, "Chapter files do not match chapter folders")
    PUBLISHING_ASSEMBLY = (300, "Error assembling the publishing artifact")
    PUBLISHING_DELIVERY = (301, "Error delivering the publishing artifact")
    CONTENT_STORE_NODE_NOT_FOUND = (400, "Content store node not found")

    @property
    def code(self) -> int:
        return self.value[0]

    @property
    def description(self) -> str:
        return self.value[1]


class BookPubError(Exception):
    """Base class for all ingestion and publishing errors.

    Args:
        message: Detail about this occurrence of the error.
        error_code: The processing error code classifying it.
    """

    default_code = ProcessingErrorCode.CONTENT_INGESTION_GENERAL

    def __init__(self, message: str = "", error_code: ProcessingErrorCode | None = None) -> None:
        self.error_code = error_code or self.default_code
        super().__init__(message or self.error_code.description)

    @property
    def code(self) -> int:
        return self.error_code.code


class DirectoryNotFoundError(BookPubError):
    """The drop directory to scan does not exist."""

    default_code = ProcessingErrorCode.INGESTION_DIR_NOT_FOUND


class PathNotADirectoryError(BookPubError):
    """The drop directory path points at a file."""

    default_code = ProcessingErrorCode.INGESTION_DIR_IS_FILE


class InvalidTitleKeyError(BookPubError):
    """A filename does not start with a valid ISBN-13."""

    default_code = ProcessingErrorCode.INGESTION_NO_ISBN_IN_ZIP_NAME


class ImportFailedError(BookPubError):
    """The archive importer could not import an archive."""

    default_code = ProcessingErrorCode.CONTENT_INGESTION_GENERAL


class AssemblyFailedError(BookPubError):
    """The artifact could not be assembled."""

    default_code = ProcessingErrorCode.PUBLISHING_ASSEMBLY


class PublishDeliveryFailedError(BookPubError):
    """The assembled artifact could not be delivered to the pickup directory."""

    default_code = ProcessingErrorCode.PUBLISHING_DELIVERY


class NodeNotFoundError(BookPubError):
    """A content store node reference does not resolve to a node."""

    default_code = ProcessingErrorCode.CONTENT_STORE_NODE_NOT_FOUND

"""Scan cycles over a drop directory and per-archive reconciliation."""

import logging
from pathlib import Path

from bookpub.config import InvalidNamePolicy
from bookpub.errors import InvalidTitleKeyError
from bookpub.ingestion.importer import ArchiveImporter
from bookpub.ingestion.isbn import is_isbn
from bookpub.ingestion.quarantine import quarantine
from bookpub.ingestion.scanner import list_archives, validate_drop_directory
from bookpub.locks import TITLE_LOCKS, KeyedLockRegistry
from bookpub.models.results import ArchiveOutcome, ReconcileAction, RunStatistics, ScanCycleResult
from bookpub.models.status import IngestionStatus
from bookpub.models.workflow import ProcessContext
from bookpub.storage.content_store import NodeRef
from bookpub.storage.repository import TitleRepository

logger = logging.getLogger(__name__)


class IngestionReconciler:
    """Reconciles delivered archives against the titles already in the store.

    For each archive the title container named by its ISBN decides what
    happens: no container means a first import, a COMPLETE container is a
    republished title and an IN_PROGRESS container is an interrupted
    ingestion. In the last two cases the old container is deleted before the
    archive is imported again. A successfully imported archive is deleted,
    anything else ends up in the drop directory's quarantine.

    Args:
        repository: Typed access to the title containers.
        importer: Importer invoked for every archive with a valid name.
        drop_directory: Directory the archives are delivered to.
        extension: Archive file extension.
        invalid_name_policy: Whether a cycle continues after an archive
            without an ISBN name.
        locks: Lock registry shared with the publisher.
    """

    def __init__(
        self,
        repository: TitleRepository,
        importer: ArchiveImporter,
        drop_directory: str | Path,
        extension: str = "zip",
        invalid_name_policy: InvalidNamePolicy = InvalidNamePolicy.CONTINUE,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        self._repository = repository
        self._importer = importer
        self.drop_directory = Path(drop_directory)
        self.extension = extension
        self.invalid_name_policy = invalid_name_policy
        self._locks = locks if locks is not None else TITLE_LOCKS

    def run_scan_cycle(
        self,
        stats: RunStatistics | None = None,
        context: ProcessContext | None = None,
    ) -> ScanCycleResult:
        """Process every archive found in the drop directory.

        Archives are processed in filename order. A failing archive never
        stops the cycle, except that the ``abort`` policy ends it after an
        archive with an invalid name has been quarantined.

        Args:
            stats: Run statistics to update, if the caller keeps any.
            context: Process context to report the outcome to.

        Returns:
            The outcome of every archive processed in this cycle.

        Raises:
            DirectoryNotFoundError: If the drop directory does not exist.
            PathNotADirectoryError: If the drop directory is a file.
        """
        drop_directory = validate_drop_directory(self.drop_directory)
        with self._locks.hold(f"drop:{drop_directory.resolve()}"):
            archives = list_archives(drop_directory, self.extension)
            result = ScanCycleResult(drop_directory=drop_directory, archives_found=len(archives))
            logger.info("Found %d archives in %s", len(archives), drop_directory)

            if stats is not None:
                stats.last_run_time = result.started_at
                stats.number_of_runs += 1
                stats.queue_size = len(archives)

            for archive_file in archives:
                try:
                    outcome = self.reconcile_archive(archive_file)
                except Exception as e:
                    logger.exception("Unexpected error while processing [%s]", archive_file.name)
                    outcome = ArchiveOutcome(archive_name=archive_file.name, success=False, error=str(e))
                    if archive_file.exists():
                        try:
                            outcome.quarantined_to = quarantine(archive_file, drop_directory)
                        except OSError:
                            logger.exception("Could not quarantine [%s]", archive_file.name)
                finally:
                    if stats is not None:
                        stats.queue_size = max(stats.queue_size - 1, 0)
                result.outcomes.append(outcome)

                if (
                    outcome.action is ReconcileAction.REJECT
                    and outcome.quarantined_to is not None
                    and self.invalid_name_policy is InvalidNamePolicy.ABORT
                ):
                    logger.warning(
                        "Aborting scan of %s after invalid archive name [%s]",
                        drop_directory,
                        archive_file.name,
                    )
                    result.aborted = True
                    break

        logger.info(
            "Scan of %s done: %d imported, %d quarantined, %d remaining",
            drop_directory,
            result.imported,
            result.quarantined,
            result.remaining,
        )
        if context is not None:
            self._update_context(context, result)
        return result

    def reconcile_archive(self, archive_file: str | Path) -> ArchiveOutcome:
        """Reconcile and import a single archive.

        Holds the ISBN's lock from the state decision until the archive has
        been deleted or quarantined.

        Args:
            archive_file: The archive in the drop directory.

        Returns:
            What was done with the archive.
        """
        archive_file = Path(archive_file)
        isbn = archive_file.stem.strip()
        if not is_isbn(isbn):
            invalid = InvalidTitleKeyError(f"Could not extract ISBN number from [{archive_file.name}]")
            logger.error("%s", invalid)
            quarantined_to = quarantine(archive_file, self.drop_directory)
            return ArchiveOutcome(
                archive_name=archive_file.name,
                action=ReconcileAction.REJECT,
                success=False,
                quarantined_to=quarantined_to,
                error=str(invalid),
            )

        with self._locks.hold(isbn):
            action = None
            error = None
            try:
                title_ref = self._repository.find_title_container(isbn)
                action = self._decide_action(isbn, title_ref)
                if title_ref is not None:
                    self._repository.delete_title(title_ref)
                target = self._repository.incoming_folder()
                if self._importer.import_archive(archive_file, target, isbn):
                    archive_file.unlink()
                    logger.info("Imported ISBN %s and deleted [%s]", isbn, archive_file.name)
                    return ArchiveOutcome(
                        archive_name=archive_file.name, isbn=isbn, action=action, success=True
                    )
            except Exception as e:
                logger.exception("Processing [%s] failed", archive_file.name)
                error = str(e)

            logger.error("Could not import [%s] for ISBN %s", archive_file.name, isbn)
            quarantined_to = quarantine(archive_file, self.drop_directory)
            return ArchiveOutcome(
                archive_name=archive_file.name,
                isbn=isbn,
                action=action,
                success=False,
                quarantined_to=quarantined_to,
                error=error or f"Import of {archive_file.name} failed",
            )

    def _decide_action(self, isbn: str, title_ref: NodeRef | None) -> ReconcileAction:
        if title_ref is None:
            logger.debug("ISBN %s is new", isbn)
            return ReconcileAction.ACCEPT_NEW

        if self._repository.get_ingestion_status(title_ref) is IngestionStatus.COMPLETE:
            logger.info("ISBN %s was ingested before, replacing its content", isbn)
            return ReconcileAction.REPLACE_AND_REIMPORT
        logger.warning("ISBN %s has an interrupted ingestion, importing it again", isbn)
        return ReconcileAction.RESUME_INTERRUPTED

    @staticmethod
    def _update_context(context: ProcessContext, result: ScanCycleResult) -> None:
        context.content_found = result.imported > 0
        context.content_error_found = result.quarantined > 0
        processed = [outcome.isbn for outcome in result.outcomes if outcome.isbn]
        if processed:
            context.related_isbn = processed[-1]

"""Publishing a title: assemble, deliver atomically, then record the version."""

import logging
import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path

from bookpub.errors import AssemblyFailedError, PublishDeliveryFailedError
from bookpub.locks import TITLE_LOCKS, KeyedLockRegistry
from bookpub.models.status import IngestionStatus
from bookpub.publishing.assembler import ArtifactAssembler
from bookpub.publishing.versioning import get_next_version
from bookpub.storage.content_store import NodeRef
from bookpub.storage.repository import TitleRepository

logger = logging.getLogger(__name__)


class PublishCoordinator:
    """Publishes titles as ``{ISBN}.epub`` into the pickup directory.

    The artifact is built under a temporary ``.part`` name outside the
    pickup directory, moved into the pickup directory under that name and
    only then renamed to its final name, so the pickup side never sees a
    partially written file. The publish record of the title is updated
    after the rename.

    Args:
        repository: Typed access to the title containers.
        assembler: Builds the artifact from a title container.
        pickup_dir: Directory the artifacts are delivered to.
        artifact_extension: Extension of the delivered artifact.
        temp_dir: Where artifacts are built, the system temp directory when None.
        locks: Lock registry shared with the reconciler.
    """

    def __init__(
        self,
        repository: TitleRepository,
        assembler: ArtifactAssembler,
        pickup_dir: str | Path,
        artifact_extension: str = "epub",
        temp_dir: str | Path | None = None,
        locks: KeyedLockRegistry | None = None,
    ) -> None:
        self._repository = repository
        self._assembler = assembler
        self.pickup_dir = Path(pickup_dir)
        self.artifact_extension = artifact_extension.lstrip(".")
        self.temp_dir = temp_dir
        self._locks = locks if locks is not None else TITLE_LOCKS

    def artifact_path(self, isbn: str) -> Path:
        return self.pickup_dir / f"{isbn}.{self.artifact_extension}"

    def publish(self, isbn: str) -> bool:
        """Assemble and deliver the artifact for a title.

        Args:
            isbn: The title to publish.

        Returns:
            True if the artifact was delivered and the publish record
            updated. False otherwise, in which case the publish record is
            unchanged and no temporary file is left behind.
        """
        with self._locks.hold(isbn):
            title_ref = self._repository.find_title_container(isbn)
            if title_ref is None:
                logger.error("No title container for ISBN %s, cannot publish", isbn)
                return False

            status = self._repository.get_ingestion_status(title_ref)
            if status is not IngestionStatus.COMPLETE:
                logger.error("Ingestion of ISBN %s is not complete (%s), cannot publish", isbn, status)
                return False

            try:
                version = get_next_version(self._repository, title_ref)
            except ValueError:
                logger.error(
                    "Invalid published version [%s] for ISBN %s",
                    self._repository.get_published_version(title_ref),
                    isbn,
                )
                return False

            logger.info("Publishing ISBN %s as version %s to %s", isbn, version, self.pickup_dir)
            temp_file = None
            try:
                temp_file = self._create_temp_file(isbn)
                self._assembler.assemble(title_ref, isbn, temp_file)
                final_path = self._deliver(temp_file, isbn, title_ref, version)
            except (AssemblyFailedError, PublishDeliveryFailedError) as e:
                logger.error("Could not publish ISBN %s: %s", isbn, e)
                return False
            finally:
                if temp_file is not None:
                    temp_file.unlink(missing_ok=True)

            logger.info("Published ISBN %s version %s to %s", isbn, version, final_path)
            return True

    def _create_temp_file(self, isbn: str) -> Path:
        try:
            fd, temp_name = tempfile.mkstemp(suffix=".part", prefix=f"{isbn}-", dir=self.temp_dir)
        except OSError as e:
            raise AssemblyFailedError(f"Could not create temporary EPUB file in {self.temp_dir}: {e}") from e
        os.close(fd)
        return Path(temp_name)

    def _deliver(self, temp_file: Path, isbn: str, title_ref: NodeRef, version: str) -> Path:
        """Move the built artifact into the pickup directory, rename it and record the publish.

        A previous artifact is copied aside first. If recording the publish
        fails, the previous artifact is put back, or the new one removed when
        there was none.

        Raises:
            PublishDeliveryFailedError: If the move, the rename or the publish
                record fails. The temporary files in the pickup directory are
                removed.
        """
        final_path = self.artifact_path(isbn)
        try:
            self.pickup_dir.mkdir(parents=True, exist_ok=True)
            staged = Path(shutil.move(str(temp_file), str(self.pickup_dir / temp_file.name)))
        except OSError as e:
            raise PublishDeliveryFailedError(
                f"Could not move EPUB for ISBN {isbn} to {self.pickup_dir}: {e}"
            ) from e

        backup = staged.with_suffix(".bak")
        try:
            if final_path.exists():
                logger.warning("EPUB %s already exists and will be overwritten", final_path)
                shutil.copy2(final_path, backup)
            self._rename(staged, final_path)
        except OSError as e:
            staged.unlink(missing_ok=True)
            backup.unlink(missing_ok=True)
            raise PublishDeliveryFailedError(
                f"Could not rename EPUB [temp={staged}][final={final_path}]: {e}"
            ) from e

        try:
            self._repository.record_publish(title_ref, version, datetime.now())
        except Exception as e:
            logger.exception("Could not record version %s of ISBN %s, withdrawing %s", version, isbn, final_path)
            try:
                if backup.exists():
                    self._rename(backup, final_path)
                else:
                    final_path.unlink(missing_ok=True)
            except OSError:
                logger.exception("Could not withdraw %s", final_path)
            raise PublishDeliveryFailedError(f"Could not record publish of ISBN {isbn}: {e}") from e
        finally:
            backup.unlink(missing_ok=True)
        return final_path

    @staticmethod
    def _rename(source: Path, final_path: Path) -> None:
        try:
            os.replace(source, final_path)
        except OSError:
            # Some platforms refuse to rename over an existing file
            if not final_path.exists():
                raise
            final_path.unlink()
            os.rename(source, final_path)

    def find_latest_modification(self, title_ref: NodeRef, since: datetime) -> datetime | None:
        """Latest modification below a title container after ``since``, or None."""
        return self._repository.store.find_modified_since(title_ref, since)

    def needs_republish(self, isbn: str) -> bool:
        """Return True if a title was never published or changed since its last publish."""
        title_ref = self._repository.find_title_container(isbn)
        if title_ref is None:
            return False
        published_date = self._repository.get_published_date(title_ref)
        if published_date is None:
            return True
        latest = self.find_latest_modification(title_ref, published_date)
        if latest is not None:
            logger.debug("ISBN %s was modified at %s after its last publish", isbn, latest)
        return latest is not None

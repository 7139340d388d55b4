"""Moving archives that failed processing out of the drop directory."""

import errno
import logging
import os
import shutil
from pathlib import Path
from uuid import uuid4

logger = logging.getLogger(__name__)

FAILED_PROCESSING_DIR_NAME = "failedProcessing"


def quarantine(file: str | Path, base_dir: str | Path) -> Path:
    """Move a failed archive into ``base_dir/failedProcessing``.

    The quarantine directory is created on first use. A file with the same
    name already in quarantine is overwritten. Across filesystems the file
    is copied to a temporary name in the quarantine directory first and then
    renamed, so a partial copy never shows under the final name.

    Args:
        file: The archive to move.
        base_dir: Directory the quarantine directory lives in, normally the
            drop directory.

    Returns:
        The archive's path in quarantine.
    """
    source = Path(file)
    failed_dir = Path(base_dir) / FAILED_PROCESSING_DIR_NAME
    failed_dir.mkdir(parents=True, exist_ok=True)
    destination = failed_dir / source.name

    try:
        os.replace(source, destination)
    except OSError as e:
        if e.errno != errno.EXDEV:
            raise
        temp_destination = failed_dir / f".{source.name}.{uuid4().hex}.part"
        try:
            shutil.copy2(source, temp_destination)
            os.replace(temp_destination, destination)
        finally:
            temp_destination.unlink(missing_ok=True)
        source.unlink()

    logger.warning("Moved [%s] to %s", source.name, failed_dir)
    return destination

"""Tests for moving failed archives into quarantine."""

import errno
import os
from pathlib import Path
from unittest.mock import patch

from bookpub.ingestion.quarantine import FAILED_PROCESSING_DIR_NAME, quarantine


class TestQuarantine:
    def test_moves_file(self, tmp_path: Path) -> None:
        archive = tmp_path / "invalidname.zip"
        archive.write_bytes(b"data")

        destination = quarantine(archive, tmp_path)

        assert destination == tmp_path / FAILED_PROCESSING_DIR_NAME / "invalidname.zip"
        assert destination.read_bytes() == b"data"
        assert not archive.exists()

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        failed_dir = tmp_path / FAILED_PROCESSING_DIR_NAME
        failed_dir.mkdir()
        (failed_dir / "9780486282145.zip").write_bytes(b"old")
        archive = tmp_path / "9780486282145.zip"
        archive.write_bytes(b"new")

        destination = quarantine(archive, tmp_path)

        assert destination.read_bytes() == b"new"

    def test_cross_filesystem_move(self, tmp_path: Path) -> None:
        archive = tmp_path / "9780486282145.zip"
        archive.write_bytes(b"data")
        real_replace = os.replace
        calls = []

        def replace(src: object, dst: object) -> None:
            calls.append((Path(src), Path(dst)))
            if Path(src) == archive:
                raise OSError(errno.EXDEV, "Invalid cross-device link")
            real_replace(src, dst)

        with patch("bookpub.ingestion.quarantine.os.replace", side_effect=replace):
            destination = quarantine(archive, tmp_path)

        assert destination.read_bytes() == b"data"
        assert not archive.exists()
        # Second replace renames the temporary copy inside the quarantine directory
        assert calls[1][0].parent == destination.parent
        assert calls[1][0].name.endswith(".part")
        assert list(destination.parent.iterdir()) == [destination]

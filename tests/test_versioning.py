"""Tests for published version numbering."""

from datetime import datetime
from pathlib import Path

import pytest

from bookpub.publishing.versioning import get_next_version, next_version
from bookpub.storage import SqliteContentStore, TitleRepository


class TestNextVersion:
    @pytest.mark.parametrize(
        ("current", "expected"),
        [
            (None, "1.0"),
            ("", "1.0"),
            ("   ", "1.0"),
            ("1.0", "2.0"),
            ("10.3", "11.0"),
            ("7", "8.0"),
        ],
    )
    def test_progression(self, current: str | None, expected: str) -> None:
        assert next_version(current) == expected

    def test_invalid_major(self) -> None:
        with pytest.raises(ValueError):
            next_version("x.1")


class TestGetNextVersion:
    def test_reads_publish_record(self, tmp_path: Path) -> None:
        store = SqliteContentStore(tmp_path / "content.db")
        repository = TitleRepository(store, "/BestPub/Incoming/Content")
        title_ref = repository.create_title(repository.incoming_folder(), "9780486282145")

        assert get_next_version(repository, title_ref) == "1.0"
        repository.record_publish(title_ref, "1.0", datetime.now())
        assert get_next_version(repository, title_ref) == "2.0"
        store.close()

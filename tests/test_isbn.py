"""Tests for ISBN validation and extraction."""

import logging

import pytest

from bookpub.errors import InvalidTitleKeyError
from bookpub.ingestion.isbn import extract_isbn, is_isbn


class TestIsIsbn:
    @pytest.mark.parametrize("value", ["9780486282145", "9791234567896", "9780203807217"])
    def test_valid(self, value: str) -> None:
        assert is_isbn(value)

    @pytest.mark.parametrize(
        "value",
        [
            "",
            "978048628214",  # 12 digits
            "97804862821450",  # 14 digits
            "9770486282145",  # wrong prefix
            "978048628214X",
            " 9780486282145",
            "978" + "١" * 10,  # Arabic-Indic digits
            "978048628214５",  # fullwidth digit
        ],
    )
    def test_invalid(self, value: str) -> None:
        assert not is_isbn(value)


class TestExtractIsbn:
    def test_from_archive_name(self) -> None:
        assert extract_isbn("9780203807217.zip") == "9780203807217"

    def test_from_chapter_filename(self) -> None:
        assert extract_isbn("9780486282145-Chapter-001.xhtml") == "9780486282145"

    def test_trims_whitespace(self) -> None:
        assert extract_isbn("  9780486282145.zip") == "9780486282145"

    def test_isbn_not_at_start(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR), pytest.raises(InvalidTitleKeyError) as exc_info:
            extract_isbn("book-9780486282145.zip")
        assert exc_info.value.code == 3
        assert "book-9780486282145.zip" in caplog.text

    def test_invalid_name(self) -> None:
        with pytest.raises(InvalidTitleKeyError):
            extract_isbn("invalidname.zip")

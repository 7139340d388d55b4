"""Tests for EPUB artifact assembly."""

import zipfile
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from bookpub.errors import AssemblyFailedError
from bookpub.models.status import NodeType
from bookpub.publishing.assembler import ArtifactAssembler
from bookpub.storage import SqliteContentStore, TitleRepository

ISBN = "9780486282145"


@pytest.fixture
def repository(tmp_path: Path) -> Iterator[TitleRepository]:
    store = SqliteContentStore(tmp_path / "content.db")
    yield TitleRepository(store, "/BestPub/Incoming/Content")
    store.close()


def build_title(repository: TitleRepository, with_package: bool = True) -> str:
    store = repository.store
    title_ref = repository.create_title(repository.incoming_folder(), ISBN)
    if with_package:
        store.create_content(title_ref, "package.opf", b"<package/>", "application/oebps-package+xml")
    styles = store.create_container(title_ref, "Styles")
    store.create_content(styles, "book.css", b"body {}", "text/css")
    artwork = store.create_container(title_ref, "Artwork")
    store.create_content(artwork, "cover.jpg", b"\xff\xd8", "image/jpeg")
    # Created out of order on purpose
    for number in (10, 2, 1):
        chapter_ref = repository.create_chapter_folder(title_ref, number)
        name = f"{ISBN}-Chapter-{number:03d}.xhtml"
        store.create_content(chapter_ref, name, f"<html>{number}</html>".encode(), "application/xhtml+xml")
    return title_ref


class TestAssemble:
    def test_entry_order_and_layout(self, tmp_path: Path, repository: TitleRepository) -> None:
        title_ref = build_title(repository)
        output = tmp_path / "out.epub"

        ArtifactAssembler(repository.store).assemble(title_ref, ISBN, output)

        with zipfile.ZipFile(output) as zf:
            names = zf.namelist()
            assert names == [
                "mimetype",
                "META-INF/container.xml",
                "OPS/package.opf",
                "OPS/css/book.css",
                "OPS/images/cover.jpg",
                f"OPS/{ISBN}-Chapter-001.xhtml",
                f"OPS/{ISBN}-Chapter-002.xhtml",
                f"OPS/{ISBN}-Chapter-010.xhtml",
            ]
            assert len(set(names)) == len(names)
            assert zf.read("mimetype") == b"application/epub+zip"
            assert zf.getinfo("mimetype").compress_type == zipfile.ZIP_STORED
            assert b'full-path="OPS/package.opf"' in zf.read("META-INF/container.xml")
            assert zf.read("OPS/package.opf") == b"<package/>"

    def test_supplementary_merged_into_ops(self, tmp_path: Path, repository: TitleRepository) -> None:
        title_ref = build_title(repository)
        supplementary = repository.store.create_container(title_ref, "Supplementary")
        repository.store.create_content(supplementary, "toc.xhtml", b"<html/>", "application/xhtml+xml")
        output = tmp_path / "out.epub"

        ArtifactAssembler(repository.store).assemble(title_ref, ISBN, output)

        with zipfile.ZipFile(output) as zf:
            names = zf.namelist()
        assert names.index("OPS/toc.xhtml") == names.index("OPS/images/cover.jpg") + 1

    def test_missing_optional_folders(self, tmp_path: Path, repository: TitleRepository) -> None:
        store = repository.store
        title_ref = repository.create_title(repository.incoming_folder(), ISBN)
        store.create_content(title_ref, "package.opf", b"<package/>", "application/oebps-package+xml")
        output = tmp_path / "out.epub"

        ArtifactAssembler(store).assemble(title_ref, ISBN, output)

        with zipfile.ZipFile(output) as zf:
            assert zf.namelist() == ["mimetype", "META-INF/container.xml", "OPS/package.opf"]

    def test_missing_package_file(self, tmp_path: Path, repository: TitleRepository) -> None:
        title_ref = build_title(repository, with_package=False)
        output = tmp_path / "out.epub"

        with pytest.raises(AssemblyFailedError) as exc_info:
            ArtifactAssembler(repository.store).assemble(title_ref, ISBN, output)
        assert exc_info.value.code == 300
        assert not output.exists()

    def test_duplicate_entry(self, tmp_path: Path, repository: TitleRepository) -> None:
        title_ref = build_title(repository)
        supplementary = repository.store.create_container(title_ref, "Supplementary")
        # Same path as the chapter 1 file once merged into OPS
        repository.store.create_content(supplementary, f"{ISBN}-Chapter-001.xhtml", b"<html/>", "application/xhtml+xml")
        output = tmp_path / "out.epub"

        with pytest.raises(AssemblyFailedError):
            ArtifactAssembler(repository.store).assemble(title_ref, ISBN, output)
        assert not output.exists()

    def test_store_error(self, tmp_path: Path, repository: TitleRepository) -> None:
        title_ref = build_title(repository)
        output = tmp_path / "out.epub"

        with patch.object(repository.store, "read_content", side_effect=OSError("read failed")):
            with pytest.raises(AssemblyFailedError):
                ArtifactAssembler(repository.store).assemble(title_ref, ISBN, output)
        assert not output.exists()

    def test_nested_folders(self, tmp_path: Path, repository: TitleRepository) -> None:
        title_ref = build_title(repository)
        styles = repository.store.get_child_by_name(title_ref, "Styles")
        fonts = repository.store.create_container(styles, "fonts", NodeType.FOLDER)
        repository.store.create_content(fonts, "serif.otf", b"font", "font/otf")
        output = tmp_path / "out.epub"

        ArtifactAssembler(repository.store).assemble(title_ref, ISBN, output)

        with zipfile.ZipFile(output) as zf:
            assert "OPS/css/fonts/serif.otf" in zf.namelist()

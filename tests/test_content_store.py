"""Tests for the SQLite content store."""

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest

from bookpub.errors import NodeNotFoundError
from bookpub.models.status import NodeType
from bookpub.storage.content_store import SqliteContentStore


@pytest.fixture
def store(tmp_path: Path) -> Iterator[SqliteContentStore]:
    content_store = SqliteContentStore(tmp_path / "content.db")
    yield content_store
    content_store.close()


class TestNodes:
    def test_create_and_find_child(self, store: SqliteContentStore) -> None:
        folder = store.create_container(store.root(), "Styles")
        assert store.get_child_by_name(store.root(), "Styles") == folder
        assert store.get_child_by_name(store.root(), "Artwork") is None
        assert store.get_type(folder) is NodeType.FOLDER
        assert store.get_name(folder) == "Styles"

    def test_name_clash(self, store: SqliteContentStore) -> None:
        store.create_container(store.root(), "9780486282145", NodeType.BOOK_FOLDER)
        with pytest.raises(FileExistsError):
            store.create_container(store.root(), "9780486282145", NodeType.BOOK_FOLDER)

    def test_content_node_is_not_a_container(self, store: SqliteContentStore) -> None:
        with pytest.raises(ValueError):
            store.create_container(store.root(), "file", NodeType.CONTENT)

    def test_list_children_in_creation_order(self, store: SqliteContentStore) -> None:
        title = store.create_container(store.root(), "9780486282145", NodeType.BOOK_FOLDER)
        chapter_2 = store.create_container(title, "chapter-2", NodeType.CHAPTER_FOLDER)
        styles = store.create_container(title, "Styles")
        chapter_1 = store.create_container(title, "chapter-1", NodeType.CHAPTER_FOLDER)

        assert store.list_children(title) == [chapter_2, styles, chapter_1]
        assert store.list_children(title, NodeType.CHAPTER_FOLDER) == [chapter_2, chapter_1]

    def test_missing_node(self, store: SqliteContentStore) -> None:
        assert not store.exists("nope")
        with pytest.raises(NodeNotFoundError):
            store.get_name("nope")

    def test_create_under_missing_parent(self, store: SqliteContentStore) -> None:
        with pytest.raises(NodeNotFoundError):
            store.create_container("nope", "child")


class TestContent:
    def test_read_and_write(self, store: SqliteContentStore) -> None:
        ref = store.create_content(store.root(), "package.opf", b"<package/>", "application/oebps-package+xml")
        assert store.read_content(ref) == b"<package/>"

        store.write_content(ref, "application/oebps-package+xml", b"<package version='3.0'/>")
        assert store.read_content(ref) == b"<package version='3.0'/>"

    def test_read_folder_fails(self, store: SqliteContentStore) -> None:
        folder = store.create_container(store.root(), "Styles")
        with pytest.raises(ValueError):
            store.read_content(folder)


class TestProperties:
    def test_set_and_get(self, store: SqliteContentStore) -> None:
        ref = store.create_container(store.root(), "9780486282145", NodeType.BOOK_FOLDER)
        store.set_property(ref, "ingestionStatus", "In Progress")
        store.set_properties(ref, {"bookAuthors": ["Lewis Carroll"], "nrOfChapters": 12})

        assert store.get_property(ref, "ingestionStatus") == "In Progress"
        assert store.get_property(ref, "missing") is None
        assert store.get_properties(ref) == {
            "ingestionStatus": "In Progress",
            "bookAuthors": ["Lewis Carroll"],
            "nrOfChapters": 12,
        }


class TestDelete:
    def test_delete_cascades(self, store: SqliteContentStore) -> None:
        title = store.create_container(store.root(), "9780486282145", NodeType.BOOK_FOLDER)
        chapter = store.create_container(title, "chapter-1", NodeType.CHAPTER_FOLDER)
        content = store.create_content(chapter, "9780486282145-Chapter-001.xhtml", b"<html/>", "application/xhtml+xml")

        store.delete_container(title)

        assert not store.exists(title)
        assert not store.exists(chapter)
        assert not store.exists(content)

    def test_root_cannot_be_deleted(self, store: SqliteContentStore) -> None:
        with pytest.raises(ValueError):
            store.delete_container(store.root())


class TestPaths:
    def test_get_or_create_path(self, store: SqliteContentStore) -> None:
        ref = store.get_or_create_path("/BestPub/Incoming/Content")
        assert store.get_or_create_path("/BestPub/Incoming/Content") == ref
        assert store.get_node_by_path("/BestPub/Incoming/Content") == ref
        assert store.get_node_by_path("/BestPub/Outgoing") is None
        assert store.get_display_path(ref) == "/BestPub/Incoming/Content"


class TestFindModifiedSince:
    def test_only_descendants_count(self, store: SqliteContentStore) -> None:
        title = store.create_container(store.root(), "9780486282145", NodeType.BOOK_FOLDER)
        chapter = store.create_container(title, "chapter-1", NodeType.CHAPTER_FOLDER)
        since = datetime.now()

        assert store.find_modified_since(title, since) is None

        store.set_property(title, "webPublishedVersion", "1.0")
        assert store.find_modified_since(title, since) is None

        store.create_content(chapter, "9780486282145-Chapter-001.xhtml", b"<html/>", "application/xhtml+xml")
        latest = store.find_modified_since(title, since)
        assert latest is not None
        assert latest >= since

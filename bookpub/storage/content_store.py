"""Content store: a tree of folder and content nodes with properties.

The ingestion and publishing code only depends on the abstract
``ContentStore`` interface. ``SqliteContentStore`` is the bundled
implementation, keeping the whole tree in a single SQLite table.
"""

import json
import logging
import sqlite3
import threading
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any
from uuid import uuid4

from bookpub.errors import NodeNotFoundError
from bookpub.models.status import NodeType
from bookpub.storage.database import ROOT_NODE_ID, get_connection, initialize_database

logger = logging.getLogger(__name__)

NodeRef = str


class ContentStore(ABC):
    """Node storage consumed by the reconciler, importer and publisher."""

    @abstractmethod
    def root(self) -> NodeRef:
        """Return the root folder of the store."""

    @abstractmethod
    def get_child_by_name(self, parent: NodeRef, name: str) -> NodeRef | None:
        """Return the child of ``parent`` called ``name``, or None."""

    @abstractmethod
    def list_children(self, parent: NodeRef, node_type: NodeType | None = None) -> list[NodeRef]:
        """Return the children of ``parent`` in creation order."""

    @abstractmethod
    def create_container(self, parent: NodeRef, name: str, node_type: NodeType = NodeType.FOLDER) -> NodeRef:
        """Create a folder-like node. Raises FileExistsError on a name clash."""

    @abstractmethod
    def create_content(self, parent: NodeRef, name: str, data: bytes, mimetype: str) -> NodeRef:
        """Create a content node. Raises FileExistsError on a name clash."""

    @abstractmethod
    def delete_container(self, ref: NodeRef) -> None:
        """Delete a node and everything below it."""

    @abstractmethod
    def get_property(self, ref: NodeRef, key: str) -> Any:
        """Return a property value, or None when unset."""

    @abstractmethod
    def get_properties(self, ref: NodeRef) -> dict[str, Any]:
        """Return all properties of a node."""

    @abstractmethod
    def set_property(self, ref: NodeRef, key: str, value: Any) -> None:
        """Set a single property."""

    @abstractmethod
    def set_properties(self, ref: NodeRef, values: dict[str, Any]) -> None:
        """Merge ``values`` into the node's properties."""

    @abstractmethod
    def read_content(self, ref: NodeRef) -> bytes:
        """Return the content bytes of a content node."""

    @abstractmethod
    def write_content(self, ref: NodeRef, mimetype: str, data: bytes) -> None:
        """Replace the content of a content node."""

    @abstractmethod
    def exists(self, ref: NodeRef) -> bool:
        """Return True if ``ref`` resolves to a node."""

    @abstractmethod
    def get_type(self, ref: NodeRef) -> NodeType:
        """Return the node type."""

    @abstractmethod
    def get_name(self, ref: NodeRef) -> str:
        """Return the node name."""

    @abstractmethod
    def find_modified_since(self, ref: NodeRef, since: datetime) -> datetime | None:
        """Return the latest modification time below ``ref`` that is after ``since``."""

    def get_node_by_path(self, path: str) -> NodeRef | None:
        """Resolve a ``/``-separated display path from the root."""
        ref = self.root()
        for name in (part for part in path.split("/") if part):
            child = self.get_child_by_name(ref, name)
            if child is None:
                return None
            ref = child
        return ref

    def get_or_create_folder(
        self, parent: NodeRef, name: str, node_type: NodeType = NodeType.FOLDER
    ) -> NodeRef:
        existing = self.get_child_by_name(parent, name)
        if existing is not None:
            return existing
        return self.create_container(parent, name, node_type)

    def get_or_create_path(self, path: str) -> NodeRef:
        """Resolve a display path, creating missing folders along the way."""
        ref = self.root()
        for name in (part for part in path.split("/") if part):
            ref = self.get_or_create_folder(ref, name)
        return ref

    @abstractmethod
    def get_display_path(self, ref: NodeRef) -> str:
        """Display path of a node, used in log messages."""


class SqliteContentStore(ContentStore):
    """Content store backed by the ``nodes`` table of a SQLite database.

    One connection is shared by all callers and guarded by a lock, so the
    store can be used from several worker threads.

    Args:
        db_path: Path to the SQLite database file. The schema is created
            if missing.
    """

    def __init__(self, db_path: str | Path) -> None:
        initialize_database(db_path)
        self._db_path = Path(db_path)
        self._conn = get_connection(db_path, check_same_thread=False)
        self._lock = threading.RLock()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def root(self) -> NodeRef:
        return ROOT_NODE_ID

    # ── Queries ──────────────────────────────────────────────────────────

    def _fetch(self, ref: NodeRef) -> sqlite3.Row:
        with self._lock:
            row = self._conn.execute("SELECT * FROM nodes WHERE id = ?", (ref,)).fetchone()
        if row is None:
            raise NodeNotFoundError(f"No node with reference [{ref}]")
        return row

    def get_child_by_name(self, parent: NodeRef, name: str) -> NodeRef | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT id FROM nodes WHERE parent_id = ? AND name = ?", (parent, name)
            ).fetchone()
        return row["id"] if row else None

    def list_children(self, parent: NodeRef, node_type: NodeType | None = None) -> list[NodeRef]:
        query = "SELECT id FROM nodes WHERE parent_id = ?"
        params: tuple = (parent,)
        if node_type is not None:
            query += " AND node_type = ?"
            params += (node_type.value,)
        with self._lock:
            rows = self._conn.execute(query + " ORDER BY rowid", params).fetchall()
        return [row["id"] for row in rows]

    def exists(self, ref: NodeRef) -> bool:
        with self._lock:
            row = self._conn.execute("SELECT 1 FROM nodes WHERE id = ?", (ref,)).fetchone()
        return row is not None

    def get_type(self, ref: NodeRef) -> NodeType:
        return NodeType(self._fetch(ref)["node_type"])

    def get_name(self, ref: NodeRef) -> str:
        return self._fetch(ref)["name"]

    def get_display_path(self, ref: NodeRef) -> str:
        names = []
        row = self._fetch(ref)
        while row["parent_id"] is not None:
            names.append(row["name"])
            row = self._fetch(row["parent_id"])
        return "/" + "/".join(reversed(names))

    def get_property(self, ref: NodeRef, key: str) -> Any:
        return self.get_properties(ref).get(key)

    def get_properties(self, ref: NodeRef) -> dict[str, Any]:
        return json.loads(self._fetch(ref)["properties"])

    def read_content(self, ref: NodeRef) -> bytes:
        row = self._fetch(ref)
        if row["node_type"] != NodeType.CONTENT.value:
            raise ValueError(f"Node [{row['name']}] is not a content node")
        return bytes(row["content"] or b"")

    def find_modified_since(self, ref: NodeRef, since: datetime) -> datetime | None:
        with self._lock:
            row = self._conn.execute(
                """
                WITH RECURSIVE subtree(id) AS (
                    SELECT id FROM nodes WHERE parent_id = ?
                    UNION ALL
                    SELECT nodes.id FROM nodes JOIN subtree ON nodes.parent_id = subtree.id
                )
                SELECT MAX(modified_at) AS latest FROM nodes
                WHERE id IN (SELECT id FROM subtree) AND modified_at > ?
                """,
                (ref, _timestamp(since)),
            ).fetchone()
        latest = row["latest"] if row else None
        return datetime.fromisoformat(latest) if latest else None

    # ── Mutations ────────────────────────────────────────────────────────

    def _insert(
        self,
        parent: NodeRef,
        name: str,
        node_type: NodeType,
        content: bytes | None = None,
        mimetype: str | None = None,
    ) -> NodeRef:
        if not self.exists(parent):
            raise NodeNotFoundError(f"Parent node [{parent}] does not exist")
        ref = str(uuid4())
        now = _timestamp(datetime.now())
        try:
            with self._lock, self._conn:
                self._conn.execute(
                    """
                    INSERT INTO nodes (id, parent_id, name, node_type, content, mimetype,
                                       created_at, modified_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (ref, parent, name, node_type.value, content, mimetype, now, now),
                )
        except sqlite3.IntegrityError as e:
            raise FileExistsError(f"Node [{name}] already exists under [{parent}]") from e
        return ref

    def create_container(self, parent: NodeRef, name: str, node_type: NodeType = NodeType.FOLDER) -> NodeRef:
        if not node_type.is_folder:
            raise ValueError(f"{node_type} is not a container type")
        return self._insert(parent, name, node_type)

    def create_content(self, parent: NodeRef, name: str, data: bytes, mimetype: str) -> NodeRef:
        return self._insert(parent, name, NodeType.CONTENT, content=data, mimetype=mimetype)

    def delete_container(self, ref: NodeRef) -> None:
        if ref == ROOT_NODE_ID:
            raise ValueError("The root node cannot be deleted")
        display_path = self.get_display_path(ref)
        with self._lock, self._conn:
            cursor = self._conn.execute("DELETE FROM nodes WHERE id = ?", (ref,))
        if cursor.rowcount == 0:
            raise NodeNotFoundError(f"No node with reference [{ref}]")
        logger.debug("Deleted %s and its children", display_path)

    def set_property(self, ref: NodeRef, key: str, value: Any) -> None:
        self.set_properties(ref, {key: value})

    def set_properties(self, ref: NodeRef, values: dict[str, Any]) -> None:
        with self._lock:
            properties = self.get_properties(ref)
            properties.update(values)
            with self._conn:
                self._conn.execute(
                    "UPDATE nodes SET properties = ?, modified_at = ? WHERE id = ?",
                    (json.dumps(properties), _timestamp(datetime.now()), ref),
                )

    def write_content(self, ref: NodeRef, mimetype: str, data: bytes) -> None:
        if self.get_type(ref) is not NodeType.CONTENT:
            raise ValueError(f"Node [{ref}] is not a content node")
        with self._lock, self._conn:
            self._conn.execute(
                "UPDATE nodes SET content = ?, mimetype = ?, modified_at = ? WHERE id = ?",
                (data, mimetype, _timestamp(datetime.now()), ref),
            )


def _timestamp(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")

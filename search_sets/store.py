# Bonsai - OpenBIM Blender Add-on
# Copyright (C) 2025 Your Engineering Firm
#
# This file is part of Bonsai.
#
# Bonsai is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Qualified Path: search_sets/store.py

Saved Set Store - SQLite persistence of the folder/set tree
------------------------------------------------------------
Keeps saved folders and search sets in a small SQLite database so they can
be re-executed later against the same models.

Usage:
    store = SetStore("/path/to/search_sets.db")
    for item in store.load_tree():
        print(item.name)
"""

import json
import logging
import sqlite3
from pathlib import Path
from typing import Dict, List, Optional

from .model import FolderNode, NamedSet, SavedItem, ScopedQuery

# Schema version for future migrations
SCHEMA_VERSION = "1.0.0"

KIND_FOLDER = "folder"
KIND_SET = "set"


class SetStore:
    """SQLite-backed saved folder/set hierarchy"""

    def __init__(self, database_path: Path, logger: Optional[logging.Logger] = None):
        self.database_path = Path(database_path)
        self.logger = logger or self._setup_logging()
        self._init_database()

    def _setup_logging(self) -> logging.Logger:
        """Configure logging"""
        logger = logging.getLogger('SetStore')
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.database_path)
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    def _init_database(self):
        """Create database schema"""
        if self.database_path.parent and not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)

        conn = self._connect()
        cursor = conn.cursor()

        # Schema version table
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS schema_info (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        """)
        cursor.execute("SELECT value FROM schema_info WHERE key = 'version'")
        row = cursor.fetchone()
        if row and row[0] != SCHEMA_VERSION:
            conn.close()
            raise ValueError(f"Unsupported set store schema version {row[0]} "
                             f"(expected {SCHEMA_VERSION})")
        cursor.execute("INSERT OR REPLACE INTO schema_info (key, value) VALUES (?, ?)",
                       ("version", SCHEMA_VERSION))

        # Folder and set tree
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS saved_items (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                parent_id INTEGER REFERENCES saved_items(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                kind TEXT NOT NULL CHECK (kind IN ('folder', 'set')),
                name TEXT NOT NULL,
                query_json TEXT
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_saved_parent ON saved_items(parent_id, position)")

        conn.commit()
        conn.close()

        self.logger.debug(f"Initialized set store: {self.database_path}")

    def load_tree(self) -> List[SavedItem]:
        """All saved items as trees, top level first, in saved order"""
        conn = self._connect()
        cursor = conn.cursor()
        cursor.execute("""
            SELECT id, parent_id, kind, name, query_json
            FROM saved_items
            ORDER BY parent_id, position, id
        """)
        rows = cursor.fetchall()
        conn.close()

        nodes: Dict[int, SavedItem] = {}
        parents: Dict[int, Optional[int]] = {}
        for item_id, parent_id, kind, name, query_json in rows:
            if kind == KIND_FOLDER:
                nodes[item_id] = FolderNode(name, item_id=item_id)
            else:
                query = ScopedQuery.from_dict(json.loads(query_json))
                nodes[item_id] = NamedSet(name, query, item_id=item_id)
            parents[item_id] = parent_id

        top_level: List[SavedItem] = []
        for item_id, node in nodes.items():
            parent_id = parents[item_id]
            if parent_id is None:
                top_level.append(node)
            elif parent_id in nodes:
                nodes[parent_id].children.append(node)

        return top_level

    def save(self, node: SavedItem, parent: Optional[FolderNode] = None) -> None:
        """
        Upsert ``node`` and its subtree

        Nodes that already carry an ``item_id`` are updated in place; new
        nodes are inserted and receive their id. Children are stored in list
        order. Stored children that are no longer in a folder's list are
        deleted with their subtrees.

        Args:
            node: Folder or set to save
            parent: Saved folder to attach to; None for the top level
        """
        if parent is not None and parent.item_id is None:
            raise ValueError(f"Parent folder '{parent.name}' must be saved first")

        conn = self._connect()
        try:
            cursor = conn.cursor()
            parent_id = parent.item_id if parent is not None else None
            if node.item_id is None:
                position = self._position_of(cursor, node, parent, parent_id)
            else:
                position = self._stored_position(cursor, node.item_id)
            self._save_node(cursor, node, parent_id, position)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _position_of(self, cursor: sqlite3.Cursor, node: SavedItem,
                     parent: Optional[FolderNode], parent_id: Optional[int]) -> int:
        if parent is not None:
            for index, child in enumerate(parent.children):
                if child is node:
                    return index
        cursor.execute("SELECT COALESCE(MAX(position) + 1, 0) FROM saved_items WHERE parent_id IS ?",
                       (parent_id,))
        return cursor.fetchone()[0]

    @staticmethod
    def _stored_position(cursor: sqlite3.Cursor, item_id: int) -> int:
        cursor.execute("SELECT position FROM saved_items WHERE id = ?", (item_id,))
        row = cursor.fetchone()
        return row[0] if row else 0

    def _save_node(self, cursor: sqlite3.Cursor, node: SavedItem,
                   parent_id: Optional[int], position: int) -> None:
        if node.is_group:
            kind, query_json = KIND_FOLDER, None
        else:
            kind, query_json = KIND_SET, json.dumps(node.query.to_dict())

        if node.item_id is None:
            cursor.execute("""
                INSERT INTO saved_items (parent_id, position, kind, name, query_json)
                VALUES (?, ?, ?, ?, ?)
            """, (parent_id, position, kind, node.name, query_json))
            node.item_id = cursor.lastrowid
        else:
            cursor.execute("""
                UPDATE saved_items
                SET parent_id = ?, position = ?, kind = ?, name = ?, query_json = ?
                WHERE id = ?
            """, (parent_id, position, kind, node.name, query_json, node.item_id))

        if node.is_group:
            self._prune_children(cursor, node)
            for index, child in enumerate(node.children):
                self._save_node(cursor, child, node.item_id, index)

    @staticmethod
    def _prune_children(cursor: sqlite3.Cursor, folder: FolderNode) -> None:
        """Delete stored children of ``folder`` that are no longer in its list"""
        kept = [child.item_id for child in folder.children if child.item_id is not None]
        placeholders = ", ".join("?" * len(kept))
        query = "DELETE FROM saved_items WHERE parent_id = ?"
        if kept:
            query += f" AND id NOT IN ({placeholders})"
        cursor.execute(query, (folder.item_id, *kept))

    def count(self) -> int:
        conn = self._connect()
        cursor = conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM saved_items")
        total = cursor.fetchone()[0]
        conn.close()
        return total

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
Qualified Path: search_sets/hierarchy.py

Saved Set Hierarchy
-------------------
Find-or-create folders and append sets under the three-level naming scheme:

    1. DISCIPLINES/<discipline set>
    2. CLASH SETS/<discipline>/<value set>
    3. CUSTOM SETS/<discipline>/<value set>
"""

from enum import Enum
from typing import Iterable, Optional

from .model import FolderNode, NamedSet, SavedItem, ScopedQuery

DISCIPLINES_FOLDER = "1. DISCIPLINES"
CLASH_SETS_FOLDER = "2. CLASH SETS"
CUSTOM_SETS_FOLDER = "3. CUSTOM SETS"

# Placeholder for the host's top level, never persisted itself
ROOT_FOLDER = "<root>"


class LeafPolicy(str, Enum):
    """What add_leaf does when the folder already holds a set of that name"""
    APPEND = "append"
    REPLACE = "replace"
    REJECT = "reject"


class DuplicateSetName(ValueError):
    pass


class HierarchyBuilder:
    """Idempotent folder creation and leaf insertion on in-memory trees"""

    def __init__(self, leaf_policy: LeafPolicy = LeafPolicy.APPEND):
        self.leaf_policy = LeafPolicy(leaf_policy)

    @staticmethod
    def root(items: Iterable[SavedItem]) -> FolderNode:
        """Wrap the host's top-level items so they can be searched like a folder"""
        return FolderNode(ROOT_FOLDER, children=list(items))

    @staticmethod
    def find_folder(parent: FolderNode, name: str) -> Optional[FolderNode]:
        for child in parent.children:
            if child.is_group and child.name == name:
                return child
        return None

    def find_or_create_folder(self, parent: FolderNode, name: str) -> FolderNode:
        """Direct child folder called ``name``; created and appended when missing"""
        folder = self.find_folder(parent, name)
        if folder is None:
            folder = FolderNode(name)
            parent.children.append(folder)
        return folder

    def add_leaf(self, folder: FolderNode, name: str, query: ScopedQuery,
                 policy: Optional[LeafPolicy] = None) -> NamedSet:
        """
        Add a set called ``name`` to ``folder``

        With the APPEND policy an existing set of the same name is left in
        place and the new one is added beside it.

        Raises:
            DuplicateSetName: under the REJECT policy when the name is taken
        """
        policy = LeafPolicy(policy or self.leaf_policy)
        leaf = NamedSet(name, query)

        if policy is not LeafPolicy.APPEND:
            for index, child in enumerate(folder.children):
                if child.is_group or child.name != name:
                    continue
                if policy is LeafPolicy.REJECT:
                    raise DuplicateSetName(f"'{folder.name}' already contains a set named '{name}'")
                # Keep the stored identity so the host updates in place
                leaf.item_id = child.item_id
                folder.children[index] = leaf
                return leaf

        folder.children.append(leaf)
        return leaf

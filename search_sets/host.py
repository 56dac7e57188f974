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
Qualified Path: search_sets/host.py

Host Contract
-------------
The narrow interface the classification engine consumes: the model tree,
property access, query execution and persistence of saved sets.

Subclasses must provide list_root_elements, list_persisted_top_level_nodes
and persist. Tree access, key resolution and query execution have working
defaults for hosts whose elements are plain ``Element`` trees.
"""

from typing import Dict, List, Optional, Sequence

from .model import Element, FolderNode, PropertyCategory, SavedItem, ScopedQuery
from .properties import PropertyLookup
from .query import QueryEvaluator
from .traversal import CancellationToken, SubtreeWalker


class SearchSetHost:
    """Base class for model/set-store hosts"""

    def list_root_elements(self) -> List[Element]:
        raise NotImplementedError

    def get_children(self, element: Element) -> Optional[Sequence[Element]]:
        return element.children

    def get_property_categories(self, element: Element) -> Sequence[PropertyCategory]:
        """May raise when the host cannot read the element"""
        return element.categories

    def resolve_elements(self, keys: Sequence[str]) -> List[Element]:
        """Elements for stored keys, in key order; unknown keys are dropped"""
        index = self._key_index()
        return [index[key] for key in keys if key in index]

    def execute_query(self, query: ScopedQuery,
                      cancel_token: Optional[CancellationToken] = None) -> List[Element]:
        walker = SubtreeWalker(self.get_children)
        evaluator = QueryEvaluator(walker, PropertyLookup(self.get_property_categories))
        return evaluator.evaluate(query, self.list_root_elements(), self.resolve_elements,
                                  cancel_token)

    def list_persisted_top_level_nodes(self) -> List[SavedItem]:
        raise NotImplementedError

    def persist(self, node: SavedItem, parent: Optional[FolderNode] = None) -> None:
        """
        Commit ``node`` and its subtree

        Args:
            node: Folder or set built by the engine
            parent: Persisted folder to attach to; None for the top level
        """
        raise NotImplementedError

    def _key_index(self) -> Dict[str, Element]:
        walker = SubtreeWalker(self.get_children)
        return {element.key: element for element in walker.walk_all(self.list_root_elements())}

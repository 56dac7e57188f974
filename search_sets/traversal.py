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
Qualified Path: search_sets/traversal.py

Subtree traversal over host element trees.
"""

from itertools import islice
from typing import Callable, Iterable, Iterator, Optional, Sequence

from .errors import OperationCancelled
from .model import Element

ChildrenGetter = Callable[[Element], Optional[Sequence[Element]]]


def element_children(element: Element) -> Optional[Sequence[Element]]:
    return element.children


class SubtreeWalker:
    """
    Pre-order depth-first walk yielding an element and all its descendants.

    Uses an explicit stack so deep trees never grow the call stack. Every call
    to ``walk`` starts a fresh traversal, so the result can be iterated again.
    """

    def __init__(self, get_children: Optional[ChildrenGetter] = None):
        self.get_children = get_children or element_children

    def walk(self, element: Element, limit: Optional[int] = None) -> Iterator[Element]:
        """
        Yield ``element`` followed by its descendants

        Args:
            element: Root of the subtree
            limit: Optional cap on the number of nodes yielded (root included)
        """
        nodes = self._iter_subtree(element)
        if limit is not None:
            return islice(nodes, max(limit, 0))
        return nodes

    def walk_all(self, roots: Iterable[Element], max_roots: Optional[int] = None,
                 per_root_limit: Optional[int] = None) -> Iterator[Element]:
        """Walk several subtrees in order, optionally capping roots and nodes per root"""
        if max_roots is not None:
            roots = islice(roots, max(max_roots, 0))
        for root in roots:
            yield from self.walk(root, per_root_limit)

    def _iter_subtree(self, element: Element) -> Iterator[Element]:
        stack = [element]
        while stack:
            node = stack.pop()
            yield node
            children = self.get_children(node)
            if children:
                # Reversed so the first child is visited first
                stack.extend(reversed(list(children)))


def walk(element: Element, limit: Optional[int] = None) -> Iterator[Element]:
    """Walk an in-memory element tree using ``Element.children``"""
    return SubtreeWalker().walk(element, limit)


class CancellationToken:
    """Cooperative cancellation flag checked between visited elements"""

    def __init__(self):
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def is_cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise OperationCancelled("Operation cancelled")

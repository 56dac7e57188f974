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
Qualified Path: search_sets/discovery.py

Property Value Discovery
------------------------
Walks element subtrees to collect either the distinct values of one
attribute (targeted discovery) or every (category, attribute) pair present
(catalog discovery, used to populate user-facing choices).
"""

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from .errors import ElementAccessFailure
from .model import Element
from .properties import CategoriesGetter, LookupStatus, PropertyLookup, element_categories
from .traversal import CancellationToken, SubtreeWalker

logger = logging.getLogger(__name__)

# Sampling caps used when scanning properties interactively
SCAN_MAX_ROOTS = 500
SCAN_MAX_NODES_PER_ROOT = 50


class PropertyCatalog:
    """Category display name -> attribute display names seen during a scan"""

    def __init__(self):
        self._entries: Dict[str, Set[str]] = {}

    def add(self, category: str, attribute: Optional[str] = None) -> None:
        attributes = self._entries.setdefault(category, set())
        if attribute:
            attributes.add(attribute)

    def clear(self) -> None:
        self._entries.clear()

    def categories(self) -> List[str]:
        return sorted(self._entries)

    def attributes(self, category: str) -> List[str]:
        return sorted(self._entries.get(category, ()))

    def as_dict(self) -> Dict[str, List[str]]:
        return {category: self.attributes(category) for category in self.categories()}

    def __contains__(self, category: object) -> bool:
        return category in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self.categories())

    def __repr__(self):
        return f"PropertyCatalog({len(self._entries)} categories)"


class PropertyValueDiscoverer:
    """
    Discover attribute values and property catalogs over element subtrees

    Access failures on single elements are collected in ``access_failures``
    (reset on every call) and the walk carries on with the next element.
    """

    def __init__(self, walker: Optional[SubtreeWalker] = None,
                 get_categories: Optional[CategoriesGetter] = None):
        self.walker = walker or SubtreeWalker()
        self.get_categories = get_categories or element_categories
        self.lookup = PropertyLookup(self.get_categories)
        self.access_failures: List[ElementAccessFailure] = []

    def discover_values(self, elements: Iterable[Element], category: str, attribute: str,
                        cancel_token: Optional[CancellationToken] = None) -> List[str]:
        """
        Distinct non-blank values of (category, attribute) below ``elements``

        Args:
            elements: Base elements; each is walked including itself
            category: Category display or internal name
            attribute: Attribute display or internal name
            cancel_token: Optional token checked once per visited element

        Returns:
            Sorted, de-duplicated values. Empty when nothing matched.
        """
        self.access_failures = []
        values: Set[str] = set()

        for node in self.walker.walk_all(elements):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            result = self.lookup.lookup(node, category, attribute)
            if result.status is LookupStatus.ACCESS_FAILED:
                self._record_failure(result.failure)
            elif result.found and result.value.strip():
                values.add(result.value)

        return sorted(values)

    def discover_catalog(self, elements: Iterable[Element],
                         max_roots: Optional[int] = None,
                         per_root_limit: Optional[int] = None,
                         catalog: Optional[PropertyCatalog] = None,
                         cancel_token: Optional[CancellationToken] = None) -> PropertyCatalog:
        """
        Record every category and attribute display name below ``elements``

        Args:
            elements: Base elements to sample
            max_roots: Optional cap on base elements visited
            per_root_limit: Optional cap on nodes visited per base element
            catalog: Catalog to extend; a new one is created when omitted
            cancel_token: Optional token checked once per visited element
        """
        self.access_failures = []
        catalog = catalog if catalog is not None else PropertyCatalog()

        for node in self.walker.walk_all(elements, max_roots, per_root_limit):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            try:
                pairs = list(self._category_pairs(node))
            except Exception as e:
                self._record_failure(ElementAccessFailure(getattr(node, "key", repr(node)), e))
                continue

            for category, attribute in pairs:
                catalog.add(category, attribute)

        return catalog

    def _category_pairs(self, node: Element) -> Iterator[Tuple[str, Optional[str]]]:
        for cat in self.get_categories(node) or ():
            yield cat.display_name, None
            for prop in cat.properties:
                yield cat.display_name, prop.display_name

    def _record_failure(self, failure: ElementAccessFailure) -> None:
        logger.debug(f"Skipping element: {failure}")
        self.access_failures.append(failure)

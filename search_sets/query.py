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
Qualified Path: search_sets/query.py

Scoped Queries
--------------
Builds the scoped query behind every value-named set and evaluates scoped
queries against an element tree.

A value set is scoped by copying its discipline's resolved selection into the
query base, so "Category = Walls" under ARCH never picks up STRC walls.
"""

import fnmatch
import logging
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .model import (
    ConditionOperator,
    DisciplineDefinition,
    Element,
    ScopedQuery,
    SearchCondition,
    SearchLocations,
)
from .properties import PropertyLookup
from .traversal import CancellationToken, SubtreeWalker

logger = logging.getLogger(__name__)

Resolver = Callable[[ScopedQuery], Sequence[Element]]


class QueryBuilder:
    """
    Build discipline-scoped equality queries

    Resolved discipline selections are cached for the builder's lifetime, so
    one builder should serve one creation pass.
    """

    def __init__(self, registry: Mapping[str, DisciplineDefinition], resolve: Resolver):
        self.registry = registry
        self.resolve = resolve
        self._selections: Dict[str, List[Element]] = {}

    def base_selection(self, discipline: str) -> Optional[List[Element]]:
        """Elements the discipline's saved query currently resolves to"""
        if discipline not in self._selections:
            definition = self.registry.get(discipline)
            if definition is None:
                return None
            self._selections[discipline] = list(self.resolve(definition.query))
        return self._selections[discipline]

    def build(self, discipline: str, category: str, attribute: str,
              value: str) -> Optional[ScopedQuery]:
        """
        Query for (category, attribute) = value inside ``discipline``

        Returns:
            The scoped query, or None when the discipline is not registered
        """
        selection = self.base_selection(discipline)
        if selection is None:
            logger.warning(f"Discipline {discipline} is not registered; skipping '{value}'")
            return None

        condition = SearchCondition(category, attribute, value, ConditionOperator.EQUALS)
        return ScopedQuery(
            base=tuple(element.key for element in selection),
            conditions=(condition,),
            locations=SearchLocations.DESCENDANTS_AND_SELF,
        )


class QueryEvaluator:
    """Execute scoped queries over an element tree"""

    def __init__(self, walker: Optional[SubtreeWalker] = None,
                 lookup: Optional[PropertyLookup] = None):
        self.walker = walker or SubtreeWalker()
        self.lookup = lookup or PropertyLookup()

    def evaluate(self, query: ScopedQuery, roots: Iterable[Element],
                 resolve_keys: Callable[[Sequence[str]], Sequence[Element]],
                 cancel_token: Optional[CancellationToken] = None) -> List[Element]:
        """
        Elements selected by ``query``, in traversal order without duplicates

        Args:
            query: Query to run
            roots: Root elements used when the query selects everything
            resolve_keys: Maps stored base keys back to elements; unknown keys are dropped
            cancel_token: Optional token checked once per visited element
        """
        base = roots if query.selects_all else resolve_keys(query.base)

        seen = set()
        results = []
        for element in base:
            if query.locations is SearchLocations.DESCENDANTS_AND_SELF:
                nodes = self.walker.walk(element)
            else:
                nodes = [element]

            for node in nodes:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                if node.key in seen:
                    continue
                seen.add(node.key)
                if self.matches(node, query.conditions):
                    results.append(node)

        return results

    def matches(self, element: Element, conditions: Sequence[SearchCondition]) -> bool:
        for condition in conditions:
            value = self.lookup.value_of(element, condition.category, condition.attribute)
            if value is None or not condition_matches(condition, value):
                return False
        return True


def condition_matches(condition: SearchCondition, value: str) -> bool:
    if condition.operator is ConditionOperator.WILDCARD:
        return fnmatch.fnmatchcase(value.casefold(), condition.value.casefold())
    return value == condition.value

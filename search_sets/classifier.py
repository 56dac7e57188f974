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
Qualified Path: search_sets/classifier.py

Discipline Classification
-------------------------
Groups root-level model containers into disciplines by fixed name patterns.
Common patterns: Tower_ARCH_01.ifc, Podium_STRC_R02.ifc, Annex_MEP_02.ifc
"""

from typing import Iterable, List, Optional, Sequence

from .errors import NoDisciplinesFound
from .model import ConditionOperator, DisciplineDefinition, Element, ScopedQuery, SearchCondition

# Delimiter-wrapped discipline tokens, checked in this order
DISCIPLINE_PATTERNS = (
    "_ARCH_", "_STRC_", "_MEP_", "_MECH_", "_ELEC_", "_PLUM_",
    "_HVAC_", "_FIRE_", "_CIVIL_", "_SITE_", "_LAND_",
)

PATTERN_DELIMITER = "_"

# Property that carries an element's display name
ITEM_CATEGORY = "Item"
NAME_ATTRIBUTE = "Name"


def discipline_name(pattern: str) -> str:
    """Strip the delimiters from a pattern: '_ARCH_' -> 'ARCH'"""
    return pattern.strip(PATTERN_DELIMITER)


def discipline_query(discipline: str) -> ScopedQuery:
    """Query selecting every element whose name contains _<discipline>_"""
    condition = SearchCondition(
        category=ITEM_CATEGORY,
        attribute=NAME_ATTRIBUTE,
        value=f"*{PATTERN_DELIMITER}{discipline}{PATTERN_DELIMITER}*",
        operator=ConditionOperator.WILDCARD,
    )
    return ScopedQuery(base=None, conditions=(condition,))


class PatternClassifier:
    """Match root element names against discipline patterns"""

    def __init__(self, patterns: Optional[Sequence[str]] = None):
        self.patterns = tuple(patterns or DISCIPLINE_PATTERNS)

    def match(self, name: str) -> Optional[str]:
        """Discipline of the first pattern found in ``name`` (case-insensitive)"""
        folded = (name or "").casefold()
        for pattern in self.patterns:
            if pattern.casefold() in folded:
                return discipline_name(pattern)
        return None

    def classify(self, roots: Iterable[Element]) -> List[DisciplineDefinition]:
        """
        Discipline definitions for every pattern matched by a root element

        Definitions are returned in order of first discovery.

        Raises:
            NoDisciplinesFound: when no root element matches any pattern
        """
        found: List[str] = []
        for root in roots:
            discipline = self.match(root.display_name)
            if discipline and discipline not in found:
                found.append(discipline)

        if not found:
            raise NoDisciplinesFound()

        return [DisciplineDefinition(name, discipline_query(name)) for name in found]

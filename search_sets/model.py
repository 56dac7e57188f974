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
Qualified Path: search_sets/model.py

Search Set Data Model
---------------------
Element tree, property categories and the saved folder/set hierarchy.

Elements and property categories are owned by the host and only read by the
classification core. Folders, sets and scoped queries are built by the core
and handed to the host for persistence.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union


def display_string(value: Any) -> str:
    """Render a property value the way it is compared and shown"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "Yes" if value else "No"
    if isinstance(value, (list, tuple)):
        return ", ".join(display_string(v) for v in value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class Property:
    """A single named value inside a property category"""

    def __init__(self, display_name: str, value: Any = None, name: Optional[str] = None):
        self.display_name = display_name
        self.name = name or display_name
        self.value = value

    @property
    def display_value(self) -> str:
        return display_string(self.value)

    def matches(self, identifier: str) -> bool:
        return identifier == self.display_name or identifier == self.name

    def __repr__(self):
        return f"Property({self.display_name!r}={self.display_value!r})"


class PropertyCategory:
    """Named group of properties, addressable by display or internal name"""

    def __init__(self, display_name: str, properties: Optional[Iterable[Property]] = None,
                 name: Optional[str] = None):
        self.display_name = display_name
        self.name = name or display_name
        self.properties: List[Property] = list(properties or [])

    def matches(self, identifier: str) -> bool:
        return identifier == self.display_name or identifier == self.name

    @classmethod
    def from_dict(cls, display_name: str, values: Dict[str, Any],
                  name: Optional[str] = None) -> "PropertyCategory":
        return cls(display_name, [Property(k, v) for k, v in values.items()], name=name)

    def __repr__(self):
        return f"PropertyCategory({self.display_name!r}, {len(self.properties)} properties)"


class Element:
    """
    A node in the host's model tree.

    ``children`` may be None for leaf nodes; traversal treats that the same
    as an empty sequence. ``key`` identifies the element inside its host and
    is what scoped queries store as their base selection.
    """

    def __init__(self, key: str, display_name: str,
                 children: Optional[List["Element"]] = None,
                 categories: Optional[List[PropertyCategory]] = None):
        self.key = key
        self.display_name = display_name
        self.children = children
        self.categories: List[PropertyCategory] = list(categories or [])

    def add_child(self, child: "Element") -> "Element":
        if self.children is None:
            self.children = []
        self.children.append(child)
        return child

    def __repr__(self):
        return f"Element(key={self.key!r}, name={self.display_name!r})"


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    WILDCARD = "wildcard"


class SearchLocations(str, Enum):
    SELF = "self"
    DESCENDANTS_AND_SELF = "descendants_and_self"


@dataclass(frozen=True)
class SearchCondition:
    """Property test: (category, attribute) compared against a display value"""
    category: str
    attribute: str
    value: str
    operator: ConditionOperator = ConditionOperator.EQUALS

    def to_dict(self) -> Dict[str, str]:
        return {
            "category": self.category,
            "attribute": self.attribute,
            "value": self.value,
            "operator": self.operator.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, str]) -> "SearchCondition":
        return cls(
            category=data["category"],
            attribute=data["attribute"],
            value=data["value"],
            operator=ConditionOperator(data.get("operator", ConditionOperator.EQUALS.value)),
        )


@dataclass(frozen=True)
class ScopedQuery:
    """
    Re-executable selection definition.

    ``base`` of None selects every root element; otherwise it holds the keys
    of the elements the query is scoped to.
    """
    base: Optional[Tuple[str, ...]] = None
    conditions: Tuple[SearchCondition, ...] = ()
    locations: SearchLocations = SearchLocations.DESCENDANTS_AND_SELF

    @property
    def selects_all(self) -> bool:
        return self.base is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": None if self.base is None else list(self.base),
            "conditions": [c.to_dict() for c in self.conditions],
            "locations": self.locations.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScopedQuery":
        base = data.get("base")
        return cls(
            base=None if base is None else tuple(base),
            conditions=tuple(SearchCondition.from_dict(c) for c in data.get("conditions", [])),
            locations=SearchLocations(data.get("locations", SearchLocations.DESCENDANTS_AND_SELF.value)),
        )


@dataclass(eq=False)
class NamedSet:
    """Leaf of the saved hierarchy: a name bound to a scoped query"""
    name: str
    query: ScopedQuery
    item_id: Optional[int] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Set name must not be empty")

    @property
    def is_group(self) -> bool:
        return False


@dataclass(eq=False)
class FolderNode:
    """Folder in the saved hierarchy. Child names are unique per folder only."""
    name: str
    children: List[Union["FolderNode", NamedSet]] = field(default_factory=list)
    item_id: Optional[int] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("Folder name must not be empty")

    @property
    def is_group(self) -> bool:
        return True

    def folders(self) -> List["FolderNode"]:
        return [child for child in self.children if child.is_group]

    def sets(self) -> List[NamedSet]:
        return [child for child in self.children if not child.is_group]


SavedItem = Union[FolderNode, NamedSet]


@dataclass(frozen=True)
class DisciplineDefinition:
    """A discipline name and the query selecting everything that belongs to it"""
    name: str
    query: ScopedQuery

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
Qualified Path: search_sets/properties.py

Property Lookup
---------------
Resolves a (category, attribute) pair against an element's property
categories. Categories and properties match on display name or internal
name. Host-side read failures are returned as an ordinary result so one bad
element never aborts a scan.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

from .errors import ElementAccessFailure, ValidationError
from .model import Element, PropertyCategory

CategoriesGetter = Callable[[Element], Sequence[PropertyCategory]]


def element_categories(element: Element) -> Sequence[PropertyCategory]:
    return element.categories


class LookupStatus(Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ACCESS_FAILED = "access_failed"


@dataclass(frozen=True)
class LookupResult:
    status: LookupStatus
    value: Optional[str] = None
    failure: Optional[ElementAccessFailure] = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


NOT_FOUND = LookupResult(LookupStatus.NOT_FOUND)


class PropertyLookup:
    """Find a property value on an element without raising"""

    def __init__(self, get_categories: Optional[CategoriesGetter] = None):
        self.get_categories = get_categories or element_categories

    def lookup(self, element: Element, category: str, attribute: str) -> LookupResult:
        try:
            for cat in self.get_categories(element) or ():
                if not cat.matches(category):
                    continue
                # Only the first matching category is searched
                for prop in cat.properties:
                    if prop.matches(attribute):
                        return LookupResult(LookupStatus.FOUND, prop.display_value)
                return NOT_FOUND
        except Exception as e:
            key = getattr(element, "key", repr(element))
            return LookupResult(LookupStatus.ACCESS_FAILED,
                                failure=ElementAccessFailure(key, e))
        return NOT_FOUND

    def value_of(self, element: Element, category: str, attribute: str) -> Optional[str]:
        """Value as a display string, or None when missing or unreadable"""
        result = self.lookup(element, category, attribute)
        return result.value if result.found else None


@dataclass(frozen=True)
class PropertyMapping:
    category: str
    attribute: str


class SetParameter(Enum):
    """Predefined parameters offered for element set creation"""
    CATEGORY = "Category"
    SYSTEM_NAME = "SystemName"
    SYSTEM_CLASSIFICATION = "SystemClassification"
    WORKSET = "Workset"
    FAMILY_TYPE = "FamilyType"

    @property
    def mapping(self) -> PropertyMapping:
        return PARAMETER_MAPPINGS[self]

    @classmethod
    def parse(cls, value) -> "SetParameter":
        if isinstance(value, cls):
            return value
        if not value:
            raise ValidationError("Please choose a parameter before creating element sets.")
        for member in cls:
            if value in (member.value, member.name):
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValidationError(f"Unknown parameter '{value}'. Choose one of: {choices}")


PARAMETER_MAPPINGS: Dict[SetParameter, PropertyMapping] = {
    SetParameter.CATEGORY: PropertyMapping("Element", "Category"),
    SetParameter.SYSTEM_NAME: PropertyMapping("Element", "System Name"),
    SetParameter.SYSTEM_CLASSIFICATION: PropertyMapping("Element", "System Classification"),
    SetParameter.WORKSET: PropertyMapping("Element", "Workset"),
    SetParameter.FAMILY_TYPE: PropertyMapping("Element", "Type"),
}

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
Qualified Path: search_sets/bim/prop.py

Search Sets Module Properties
-----------------------------
Blender property groups for search set settings and state.
"""

import bpy
from bpy.types import PropertyGroup
from bpy.props import (
    StringProperty,
    BoolProperty,
    IntProperty,
    CollectionProperty,
    EnumProperty,
)
from typing import TYPE_CHECKING

from ..discovery import SCAN_MAX_NODES_PER_ROOT, SCAN_MAX_ROOTS
from ..hierarchy import LeafPolicy
from ..properties import SetParameter

# Enum item lists must stay referenced while Blender shows them
_enum_cache = {}


def get_engine():
    """Engine held on the window manager, or None before the first load"""
    return getattr(bpy.types.WindowManager, 'search_set_engine', None)


def get_property_categories(self, context):
    engine = get_engine()
    categories = engine.context.catalog.categories() if engine else []
    _enum_cache['categories'] = [(c, c, "") for c in categories]
    return _enum_cache['categories']


def get_property_names(self, context):
    engine = get_engine()
    names = engine.context.catalog.attributes(self.property_category) if engine else []
    _enum_cache['names'] = [(n, n, "") for n in names]
    return _enum_cache['names']


class SearchSetModelFile(PropertyGroup):
    """Represents a single IFC model in the federation"""

    name: StringProperty(
        name="File",
        description="Absolute filepath to IFC file",
    )

    discipline: StringProperty(
        name="Discipline",
        description="Discipline detected from the file name (e.g., ARCH, STRC, MEP)",
        default=""
    )

    if TYPE_CHECKING:
        name: str
        discipline: str


class SearchSetDiscipline(PropertyGroup):
    """Discipline checkbox entry"""

    name: StringProperty(name="Discipline")

    is_selected: BoolProperty(
        name="Selected",
        description="Include this discipline when creating search sets",
        default=True
    )

    if TYPE_CHECKING:
        name: str
        is_selected: bool


class BIMSearchSetsProperties(PropertyGroup):
    """Properties for discipline search set creation"""

    model_files: CollectionProperty(
        name="Model Files",
        type=SearchSetModelFile,
        description="IFC files whose root names drive discipline classification"
    )

    active_model_file_index: IntProperty(
        name="Active Model File Index",
        default=0
    )

    database_path: StringProperty(
        name="Search Set Database",
        description="Path to SQLite database storing saved search sets",
        subtype='FILE_PATH',
        default=""
    )

    # Discipline checkboxes (element sets and custom sets)
    disciplines: CollectionProperty(
        name="Disciplines",
        type=SearchSetDiscipline,
    )

    active_discipline_index: IntProperty(
        name="Active Discipline Index",
        default=0
    )

    parameter: EnumProperty(
        name="Parameter",
        description="Parameter to split each discipline by",
        items=[(p.value, p.mapping.attribute, f"{p.mapping.category} / {p.mapping.attribute}")
               for p in SetParameter],
        default=SetParameter.CATEGORY.value
    )

    property_category: EnumProperty(
        name="Property Category",
        description="Category found by the last property scan",
        items=get_property_categories
    )

    property_name: EnumProperty(
        name="Property Name",
        description="Property found by the last property scan",
        items=get_property_names
    )

    duplicate_policy: EnumProperty(
        name="Duplicate Names",
        description="What to do with a set whose name already exists in its folder",
        items=[
            (LeafPolicy.APPEND.value, "Append", "Add the new set beside the existing one"),
            (LeafPolicy.REPLACE.value, "Replace", "Replace the existing set"),
            (LeafPolicy.REJECT.value, "Skip", "Keep the existing set and skip the new one"),
        ],
        default=LeafPolicy.APPEND.value
    )

    scan_max_roots: IntProperty(
        name="Scan Elements",
        description="Elements sampled per discipline when scanning properties",
        default=SCAN_MAX_ROOTS,
        min=1
    )

    scan_max_nodes: IntProperty(
        name="Scan Depth",
        description="Nodes sampled below each element when scanning properties",
        default=SCAN_MAX_NODES_PER_ROOT,
        min=1
    )

    is_running: BoolProperty(
        name="Running",
        description="Whether a search set operation is currently running",
        default=False
    )

    status: StringProperty(
        name="Status",
        description="Result of the last operation",
        default=""
    )

    show_advanced_settings: BoolProperty(
        name="Show Advanced",
        description="Show advanced search set settings",
        default=False
    )

    if TYPE_CHECKING:
        model_files: bpy.types.bpy_prop_collection_idprop[SearchSetModelFile]
        active_model_file_index: int
        database_path: str
        disciplines: bpy.types.bpy_prop_collection_idprop[SearchSetDiscipline]
        active_discipline_index: int
        parameter: str
        property_category: str
        property_name: str
        duplicate_policy: str
        scan_max_roots: int
        scan_max_nodes: int
        is_running: bool
        status: str
        show_advanced_settings: bool

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
Qualified Path: search_sets/bim/operator.py

Search Sets Module Operators
----------------------------
User-triggered actions for discipline, clash and custom search sets.
"""

from pathlib import Path

import bpy
from bpy.types import Operator
from bpy.props import StringProperty, IntProperty
from bpy_extras.io_utils import ImportHelper

from ..classifier import PatternClassifier
from ..engine import ClassificationEngine
from ..hierarchy import LeafPolicy
from .prop import get_engine


def load_engine(props) -> ClassificationEngine:
    """Engine for the current file list and database, rebuilt when either changes"""
    from ..ifc_host import IfcSearchSetHost

    source = (tuple(f.name for f in props.model_files), props.database_path)
    engine = get_engine()
    if engine is None or getattr(engine, 'source', None) != source:
        host = IfcSearchSetHost([Path(f) for f in source[0]], Path(props.database_path))
        engine = ClassificationEngine(host)
        engine.source = source
        # Store reference in window manager (persists across scenes)
        bpy.types.WindowManager.search_set_engine = engine

    engine.hierarchy.leaf_policy = LeafPolicy(props.duplicate_policy)
    engine.scan_max_roots = props.scan_max_roots
    engine.scan_max_nodes_per_root = props.scan_max_nodes
    return engine


def sync_disciplines(props, engine: ClassificationEngine) -> None:
    """Rebuild discipline checkboxes, keeping previous selections"""
    previous = {d.name: d.is_selected for d in props.disciplines}
    props.disciplines.clear()
    for name in engine.discipline_names:
        item = props.disciplines.add()
        item.name = name
        item.is_selected = previous.get(name, True)


def selected_disciplines(props):
    return [d.name for d in props.disciplines if d.is_selected]


def model_files_ready(cls, props) -> bool:
    if props.is_running:
        cls.poll_message_set("A search set operation is already running")
        return False
    if not props.model_files:
        cls.poll_message_set("Add IFC files first")
        return False
    if not props.database_path:
        cls.poll_message_set("Set search set database path first")
        return False
    return True


class AddSearchSetModel(Operator):
    """Add a new IFC file to the search set federation"""
    bl_idname = "bim.add_search_set_model"
    bl_label = "Add Model File"
    bl_description = "Add an IFC file whose name identifies its discipline"
    bl_options = {"REGISTER", "UNDO"}

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        new_file = props.model_files.add()
        new_file.name = ""
        new_file.discipline = ""
        return {"FINISHED"}


class RemoveSearchSetModel(Operator):
    """Remove a file from the search set federation"""
    bl_idname = "bim.remove_search_set_model"
    bl_label = "Remove Model File"
    bl_description = "Remove this file from the federation"
    bl_options = {"REGISTER", "UNDO"}

    index: IntProperty()

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        props.model_files.remove(self.index)
        return {"FINISHED"}


class SelectSearchSetModel(Operator, ImportHelper):
    """Select an IFC file for the search set federation"""
    bl_idname = "bim.select_search_set_model"
    bl_label = "Select IFC File"
    bl_description = "Select an IFC file to add to the federation"
    bl_options = {"REGISTER", "UNDO"}

    filename_ext = ".ifc"
    filter_glob: StringProperty(default="*.ifc;*.ifczip", options={"HIDDEN"})
    index: IntProperty(options={"HIDDEN"})

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        model_file = props.model_files[self.index]
        model_file.name = self.filepath

        # Show the discipline the file name will be classified as
        model_file.discipline = PatternClassifier().match(Path(self.filepath).name) or ""

        return {"FINISHED"}


class CreateDisciplineSets(Operator):
    """Create one discipline search set per discipline pattern found"""
    bl_idname = "bim.create_discipline_search_sets"
    bl_label = "Create Discipline Sets"
    bl_description = "Classify model files by _ARCH_, _STRC_, _MEP_... patterns and save\n" \
                     "one search set per discipline under '1. DISCIPLINES'"
    bl_options = {"REGISTER"}

    @classmethod
    def poll(cls, context):
        return model_files_ready(cls, context.scene.BIMSearchSetsProperties)

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        props.is_running = True
        try:
            engine = load_engine(props)
            summary = engine.build_disciplines()
            sync_disciplines(props, engine)
        except Exception as e:
            props.status = "Error creating discipline search sets"
            self.report({'ERROR'}, f"Error creating discipline search sets: {e}")
            return {"CANCELLED"}
        finally:
            props.is_running = False

        props.status = f"Created {summary.created} discipline search sets"
        self.report({'INFO'}, f"✓ {props.status}. Check the '1. DISCIPLINES' folder.")
        return {"FINISHED"}


class CreateElementSets(Operator):
    """Create one search set per parameter value for each selected discipline"""
    bl_idname = "bim.create_element_search_sets"
    bl_label = "Create Element Sets"
    bl_description = "Split the selected disciplines by the chosen parameter and save\n" \
                     "the sets under '2. CLASH SETS'"
    bl_options = {"REGISTER"}

    @classmethod
    def poll(cls, context):
        props = context.scene.BIMSearchSetsProperties
        if not model_files_ready(cls, props):
            return False
        if not props.disciplines:
            cls.poll_message_set("Create discipline search sets first")
            return False
        return True

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        props.is_running = True
        try:
            engine = load_engine(props)
            summary = engine.build_attribute_sets(props.parameter, selected_disciplines(props))
        except Exception as e:
            props.status = "Error creating element search sets"
            self.report({'ERROR'}, f"Error creating element search sets: {e}")
            return {"CANCELLED"}
        finally:
            props.is_running = False

        props.status = f"Created {summary.created} element search sets"
        self.report({'INFO'}, f"✓ {props.status}. Check the '2. CLASH SETS' folder.")
        return {"FINISHED"}


class RescanProperties(Operator):
    """Scan the selected disciplines for available property categories and names"""
    bl_idname = "bim.rescan_search_set_properties"
    bl_label = "Rescan Properties"
    bl_description = "Sample the selected disciplines and list the properties found"
    bl_options = {"REGISTER"}

    @classmethod
    def poll(cls, context):
        props = context.scene.BIMSearchSetsProperties
        if not model_files_ready(cls, props):
            return False
        if not props.disciplines:
            cls.poll_message_set("Create discipline search sets first")
            return False
        return True

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        props.is_running = True
        try:
            engine = load_engine(props)
            summary = engine.scan_properties(selected_disciplines(props))
        except Exception as e:
            props.status = "Error scanning properties"
            self.report({'ERROR'}, f"Error scanning properties: {e}")
            return {"CANCELLED"}
        finally:
            props.is_running = False

        props.status = "Properties scanned successfully"
        self.report({'INFO'}, f"✓ Found {summary.created} property categories")
        return {"FINISHED"}


class CreateCustomSets(Operator):
    """Create one search set per value of the scanned property"""
    bl_idname = "bim.create_custom_search_sets"
    bl_label = "Create Custom Sets"
    bl_description = "Split the selected disciplines by the chosen property and save\n" \
                     "the sets under '3. CUSTOM SETS'"
    bl_options = {"REGISTER"}

    @classmethod
    def poll(cls, context):
        props = context.scene.BIMSearchSetsProperties
        if not model_files_ready(cls, props):
            return False
        engine = get_engine()
        if engine is None or not engine.property_catalog:
            cls.poll_message_set("Scan properties first")
            return False
        return True

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        props.is_running = True
        try:
            engine = load_engine(props)
            summary = engine.build_custom_sets(props.property_category, props.property_name,
                                               selected_disciplines(props))
        except Exception as e:
            props.status = "Error creating custom search sets"
            self.report({'ERROR'}, f"Error creating custom search sets: {e}")
            return {"CANCELLED"}
        finally:
            props.is_running = False

        props.status = f"Created {summary.created} custom search sets"
        self.report({'INFO'}, f"✓ {props.status}. Check the '3. CUSTOM SETS' folder.")
        return {"FINISHED"}


class RefreshSearchSets(Operator):
    """Reload discipline search sets saved in the database"""
    bl_idname = "bim.refresh_search_sets"
    bl_label = "Reload Disciplines"
    bl_description = "Read the '1. DISCIPLINES' folder from the search set database"
    bl_options = {"REGISTER"}

    @classmethod
    def poll(cls, context):
        return model_files_ready(cls, context.scene.BIMSearchSetsProperties)

    def execute(self, context):
        props = context.scene.BIMSearchSetsProperties
        try:
            engine = load_engine(props)
            engine.refresh()
            sync_disciplines(props, engine)
        except Exception as e:
            self.report({'ERROR'}, f"Failed to load search sets: {e}")
            return {"CANCELLED"}

        self.report({'INFO'}, f"Loaded {len(props.disciplines)} disciplines")
        return {"FINISHED"}

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
Qualified Path: search_sets/bim/ui.py

Search Sets Module UI
---------------------
Blender interface panel for discipline, clash and custom search sets.
"""

from pathlib import Path

import bpy
from bpy.types import Panel, UIList


class BIM_UL_search_set_models(UIList):
    """UI List for displaying federation model files"""

    def draw_item(self, context, layout, data, item, icon, active_data, active_propname):
        if item:
            row = layout.row(align=True)

            # Discipline tag (alert when the file name matches no pattern)
            col = row.column()
            col.alert = not bool(item.discipline)
            col.label(text=item.discipline or "?")

            # Filename (alert if empty)
            col = row.column()
            col.alert = not bool(item.name)
            if item.name:
                col.label(text=Path(item.name).name)
            else:
                col.label(text="(no file selected)")
        else:
            layout.label(text="", translate=False)


class BIM_UL_search_set_disciplines(UIList):
    """UI List for discipline checkboxes"""

    def draw_item(self, context, layout, data, item, icon, active_data, active_propname):
        if item:
            layout.prop(item, "is_selected", text=item.name)
        else:
            layout.label(text="", translate=False)


class BIM_PT_search_sets(Panel):
    """Discipline search sets panel"""
    bl_label = "Discipline Search Sets"
    bl_idname = "BIM_PT_search_sets"
    bl_space_type = "PROPERTIES"
    bl_region_type = "WINDOW"
    bl_context = "scene"
    bl_options = {"DEFAULT_CLOSED"}
    # Nest under Quality Control tab
    bl_parent_id = "BIM_PT_tab_quality_control"

    def draw(self, context):
        layout = self.layout
        props = context.scene.BIMSearchSetsProperties

        # Model files section
        box = layout.box()
        box.label(text="Federated IFC Files", icon="OUTLINER_OB_POINTCLOUD")

        row = box.row(align=True)
        row.operator("bim.add_search_set_model", icon="ADD", text="Add File")

        if props.model_files:
            box.template_list(
                "BIM_UL_search_set_models", "",
                props, "model_files",
                props, "active_model_file_index"
            )

            if props.active_model_file_index < len(props.model_files):
                row = box.row(align=True)
                op = row.operator("bim.select_search_set_model", icon="FILE_FOLDER", text="Select File")
                op.index = props.active_model_file_index

                op = row.operator("bim.remove_search_set_model", icon="X", text="Remove")
                op.index = props.active_model_file_index

        box.prop(props, "database_path", text="Database")

        layout.separator()

        # 1. Disciplines
        box = layout.box()
        box.label(text="1. Discipline Sets", icon="OUTLINER_COLLECTION")
        row = box.row(align=True)
        row.scale_y = 1.3
        row.enabled = not props.is_running
        row.operator("bim.create_discipline_search_sets", icon="PLAY")
        row.operator("bim.refresh_search_sets", icon="FILE_REFRESH", text="")

        if props.disciplines:
            box.template_list(
                "BIM_UL_search_set_disciplines", "",
                props, "disciplines",
                props, "active_discipline_index",
                rows=3
            )

        layout.separator()

        # 2. Clash sets
        box = layout.box()
        box.label(text="2. Element Sets", icon="GROUP")
        box.prop(props, "parameter")
        row = box.row()
        row.enabled = not props.is_running
        row.operator("bim.create_element_search_sets", icon="PLAY")

        layout.separator()

        # 3. Custom sets
        box = layout.box()
        box.label(text="3. Custom Sets", icon="VIEWZOOM")
        row = box.row()
        row.enabled = not props.is_running
        row.operator("bim.rescan_search_set_properties", icon="FILE_REFRESH")

        col = box.column(align=True)
        col.prop(props, "property_category", text="Category")
        col.prop(props, "property_name", text="Property")

        row = box.row()
        row.enabled = not props.is_running
        row.operator("bim.create_custom_search_sets", icon="PLAY")

        # Status
        if props.status:
            layout.separator()
            box = layout.box()
            box.label(text=props.status, icon="INFO")

        # Advanced settings (collapsible)
        layout.separator()
        box = layout.box()
        row = box.row()
        row.prop(props, "show_advanced_settings",
                 icon="TRIA_DOWN" if props.show_advanced_settings else "TRIA_RIGHT",
                 text="Advanced Settings",
                 emboss=False)

        if props.show_advanced_settings:
            col = box.column(align=True)
            col.prop(props, "duplicate_policy")
            col.prop(props, "scan_max_roots")
            col.prop(props, "scan_max_nodes")

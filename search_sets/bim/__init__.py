# Bonsai - OpenBIM Blender Add-on
# Copyright (C) 2025 Your Engineering Firm
#
# This file is part of Bonsai.
#
# Bonsai is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# Bonsai is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with Bonsai.  If not, see <http://www.gnu.org/licenses/>.

"""
Qualified Path: search_sets/bim/__init__.py

Search Sets Module - Blender Panel
----------------------------------
Creates discipline, clash and custom search sets for the models in a
federation from inside Blender.
"""

import bpy
from . import ui, prop, operator

# Expose classes so main __init__.py can find them
classes = (
    prop.SearchSetModelFile,
    prop.SearchSetDiscipline,
    prop.BIMSearchSetsProperties,
    operator.AddSearchSetModel,
    operator.RemoveSearchSetModel,
    operator.SelectSearchSetModel,
    operator.RefreshSearchSets,
    operator.CreateDisciplineSets,
    operator.CreateElementSets,
    operator.RescanProperties,
    operator.CreateCustomSets,
    ui.BIM_PT_search_sets,
    ui.BIM_UL_search_set_models,
    ui.BIM_UL_search_set_disciplines,
)


def register():
    """Called when addon is enabled"""
    # Attach properties to Blender's Scene
    bpy.types.Scene.BIMSearchSetsProperties = bpy.props.PointerProperty(
        type=prop.BIMSearchSetsProperties
    )


def unregister():
    """Called when addon is disabled - cleanup"""
    if hasattr(bpy.types.WindowManager, 'search_set_engine'):
        del bpy.types.WindowManager.search_set_engine
    # Remove properties from Scene
    del bpy.types.Scene.BIMSearchSetsProperties

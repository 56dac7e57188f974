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
Qualified Path: search_sets/__init__.py

Search Sets Module - Discipline Classification Index
----------------------------------------------------
Groups federated models into disciplines by file name pattern, then splits
each discipline into saved search sets by the distinct values of a chosen
property (category, system, workset, or any scanned property).

The Blender panel lives in ``search_sets.bim`` and is only importable inside
Blender. The IFC host lives in ``search_sets.ifc_host``.
"""

from .classifier import DISCIPLINE_PATTERNS, PatternClassifier
from .discovery import PropertyCatalog, PropertyValueDiscoverer
from .engine import ClassificationEngine, EngineState, OperationSummary
from .errors import (
    DiscoveryError,
    DisciplinesNotBuilt,
    ElementAccessFailure,
    NoDisciplinesFound,
    NoSetsCreated,
    NoValuesDiscovered,
    OperationCancelled,
    OperationInProgress,
    SearchSetError,
    SetCreationFailure,
    ValidationError,
)
from .hierarchy import (
    CLASH_SETS_FOLDER,
    CUSTOM_SETS_FOLDER,
    DISCIPLINES_FOLDER,
    HierarchyBuilder,
    LeafPolicy,
)
from .host import SearchSetHost
from .model import (
    DisciplineDefinition,
    Element,
    FolderNode,
    NamedSet,
    Property,
    PropertyCategory,
    ScopedQuery,
    SearchCondition,
)
from .properties import PropertyLookup, SetParameter
from .query import QueryBuilder, QueryEvaluator
from .traversal import CancellationToken, SubtreeWalker

__version__ = "0.1.0"

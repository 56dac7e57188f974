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
Qualified Path: search_sets/ifc_host.py

IFC Search Set Host
-------------------
Presents a federation of IFC files as one element tree and stores saved
search sets in a SQLite set store.

Each file is a root element named by its file name, so discipline tokens in
file names (Tower_ARCH_01.ifc, Tower_STRC_01.ifc) drive classification.
Below each file the tree follows the spatial decomposition:
IfcProject > IfcSite > IfcBuilding > IfcBuildingStorey > contained elements.

Property categories per element:
    Item      Name, Type, GUID, Source File
    Element   Category, Type, System Name, System Classification, Workset
    <pset>    one category per property set and quantity set

Requirements:
    - ifcopenshell
    - sqlite3 (built-in)
"""

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

import ifcopenshell
import ifcopenshell.util.element

from .host import SearchSetHost
from .model import Element, FolderNode, Property, PropertyCategory, SavedItem
from .store import SetStore

ITEM_CATEGORY = "Item"
ELEMENT_CATEGORY = "Element"

WORKSET_PROPERTY = "Workset"


class IfcElement(Element):
    """Element backed by an IFC entity (or by a whole IFC file for roots)"""

    def __init__(self, key: str, display_name: str, source: str,
                 entity: Optional[ifcopenshell.entity_instance] = None,
                 ifc_file: Optional[ifcopenshell.file] = None):
        super().__init__(key, display_name)
        self.source = source
        self.entity = entity
        self.ifc_file = ifc_file
        self.children_loaded = False
        self.categories_loaded = False

    @property
    def is_file(self) -> bool:
        return self.entity is None


class IfcSearchSetHost(SearchSetHost):
    """Search set host for a federation of IFC models"""

    def __init__(self, files: Iterable[Union[str, Path]], database_path: Union[str, Path],
                 logger: Optional[logging.Logger] = None):
        self.logger = logger or self._setup_logging()
        models = {}
        for file_path in files:
            file_path = Path(file_path)
            if not file_path.exists():
                raise FileNotFoundError(f"IFC file not found: {file_path}")
            self.logger.info(f"Opening {file_path.name}")
            models[file_path.name] = ifcopenshell.open(str(file_path))
        self._setup(models, SetStore(database_path, logger=self.logger))

    @classmethod
    def from_models(cls, models: Dict[str, ifcopenshell.file], store: SetStore,
                    logger: Optional[logging.Logger] = None) -> "IfcSearchSetHost":
        """Build a host over already opened models, keyed by display name"""
        host = cls.__new__(cls)
        host.logger = logger or host._setup_logging()
        host._setup(dict(models), store)
        return host

    def _setup(self, models: Dict[str, ifcopenshell.file], store: SetStore) -> None:
        self.models = models
        self.store = store
        self._roots = [
            IfcElement(name, name, source=name, ifc_file=ifc_file)
            for name, ifc_file in models.items()
        ]
        self._index: Optional[Dict[str, Element]] = None

    def _setup_logging(self) -> logging.Logger:
        """Configure logging"""
        logger = logging.getLogger('IfcSearchSetHost')
        logger.setLevel(logging.INFO)

        if not logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter('%(name)s - %(levelname)s - %(message)s')
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    # ------------------------------------------------------------------
    # Model tree
    # ------------------------------------------------------------------

    def list_root_elements(self) -> List[Element]:
        return list(self._roots)

    def get_children(self, element: Element) -> Optional[Sequence[Element]]:
        if not isinstance(element, IfcElement):
            return element.children
        if not element.children_loaded:
            entities = self._child_entities(element)
            element.children = [self._wrap(element, entity) for entity in entities] or None
            element.children_loaded = True
        return element.children

    def _child_entities(self, element: IfcElement) -> List[ifcopenshell.entity_instance]:
        if element.is_file:
            return list(element.ifc_file.by_type("IfcProject"))

        children = []
        for rel in getattr(element.entity, "IsDecomposedBy", None) or ():
            children.extend(rel.RelatedObjects)
        for rel in getattr(element.entity, "ContainsElements", None) or ():
            children.extend(rel.RelatedElements)
        return children

    def _wrap(self, parent: IfcElement, entity: ifcopenshell.entity_instance) -> IfcElement:
        guid = getattr(entity, "GlobalId", None) or f"#{entity.id()}"
        name = getattr(entity, "Name", None) or entity.is_a()
        return IfcElement(f"{parent.source}/{guid}", name, source=parent.source, entity=entity)

    def _key_index(self) -> Dict[str, Element]:
        # The models do not change while the host is open
        if self._index is None:
            self._index = super()._key_index()
        return self._index

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def get_property_categories(self, element: Element) -> Sequence[PropertyCategory]:
        if not isinstance(element, IfcElement):
            return element.categories
        if not element.categories_loaded:
            element.categories = self._read_categories(element)
            element.categories_loaded = True
        return element.categories

    def _read_categories(self, element: IfcElement) -> List[PropertyCategory]:
        if element.is_file:
            return [PropertyCategory(ITEM_CATEGORY, [
                Property("Name", element.display_name, name="name"),
                Property("Type", "File", name="type"),
                Property("Source File", element.source, name="source_file"),
            ], name="item")]

        entity = element.entity
        psets = ifcopenshell.util.element.get_psets(entity)

        categories = [
            PropertyCategory(ITEM_CATEGORY, [
                Property("Name", element.display_name, name="name"),
                Property("Type", entity.is_a(), name="type"),
                Property("GUID", getattr(entity, "GlobalId", None), name="guid"),
                Property("Source File", element.source, name="source_file"),
            ], name="item"),
            self._element_category(entity, psets),
        ]
        for pset_name, values in psets.items():
            categories.append(PropertyCategory(pset_name, [
                Property(prop_name, value)
                for prop_name, value in values.items()
                if prop_name != "id"
            ]))
        return categories

    def _element_category(self, entity: ifcopenshell.entity_instance,
                          psets: Dict[str, Dict]) -> PropertyCategory:
        element_type = ifcopenshell.util.element.get_type(entity)
        systems = self._systems(entity)

        properties = [
            Property("Category", entity.is_a(), name="category"),
            Property("Type", element_type.Name if element_type else None, name="type"),
            Property("System Name", [s.Name for s in systems if s.Name] or None, name="system_name"),
            Property("System Classification",
                     [self._system_classification(s) for s in systems] or None,
                     name="system_classification"),
            Property("Workset", self._workset(psets), name="workset"),
        ]
        return PropertyCategory(ELEMENT_CATEGORY, properties, name="element")

    @staticmethod
    def _systems(entity: ifcopenshell.entity_instance) -> List[ifcopenshell.entity_instance]:
        systems = []
        for rel in getattr(entity, "HasAssignments", None) or ():
            if rel.is_a("IfcRelAssignsToGroup") and rel.RelatingGroup.is_a("IfcSystem"):
                systems.append(rel.RelatingGroup)
        return systems

    @staticmethod
    def _system_classification(system: ifcopenshell.entity_instance) -> Optional[str]:
        predefined = getattr(system, "PredefinedType", None)
        if predefined and predefined not in ("USERDEFINED", "NOTDEFINED"):
            return predefined
        return system.ObjectType or predefined

    @staticmethod
    def _workset(psets: Dict[str, Dict]) -> Optional[str]:
        for values in psets.values():
            if values.get(WORKSET_PROPERTY):
                return values[WORKSET_PROPERTY]
        return None

    # ------------------------------------------------------------------
    # Saved sets
    # ------------------------------------------------------------------

    def list_persisted_top_level_nodes(self) -> List[SavedItem]:
        return self.store.load_tree()

    def persist(self, node: SavedItem, parent: Optional[FolderNode] = None) -> None:
        self.store.save(node, parent)

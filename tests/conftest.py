from typing import Dict, List, Optional

import pytest

from search_sets.host import SearchSetHost
from search_sets.model import Element, FolderNode, PropertyCategory, SavedItem


def make_element(key: str, name: Optional[str] = None,
                 properties: Optional[Dict[str, Dict[str, object]]] = None,
                 children: Optional[List[Element]] = None) -> Element:
    """Element with an Item/Name property plus the given categories"""
    name = name or key
    categories = [PropertyCategory.from_dict("Item", {"Name": name}, name="item")]
    for category, values in (properties or {}).items():
        categories.append(PropertyCategory.from_dict(category, values))
    return Element(key, name, children=children, categories=categories)


def wall(key: str, category: str, **extra) -> Element:
    values = {"Category": category}
    values.update(extra)
    return make_element(key, properties={"Element": values})


class MemoryHost(SearchSetHost):
    """In-memory host: element trees plus a list of saved top-level items"""

    def __init__(self, roots: List[Element]):
        self.roots = roots
        self.items: List[SavedItem] = []
        self.commits: List[tuple] = []
        self.broken = set()

    def list_root_elements(self) -> List[Element]:
        return list(self.roots)

    def get_property_categories(self, element: Element):
        if element.key in self.broken:
            raise RuntimeError("access denied")
        return element.categories

    def list_persisted_top_level_nodes(self) -> List[SavedItem]:
        return list(self.items)

    def persist(self, node: SavedItem, parent: Optional[FolderNode] = None) -> None:
        self.commits.append((node.name, parent.name if parent else None))
        siblings = self.items if parent is None else parent.children
        if not any(existing is node for existing in siblings):
            siblings.append(node)

    def top_folder(self, name: str) -> Optional[FolderNode]:
        for item in self.items:
            if item.is_group and item.name == name:
                return item
        return None


def build_federation() -> List[Element]:
    arch = make_element("arch", "Tower_ARCH_01", children=[
        make_element("arch/level1", "Level 1", children=[
            wall("arch/w1", "Wall", **{"System Name": "", "Workset": "Shell"}),
            wall("arch/w2", "Wall", Workset="Shell"),
            wall("arch/d1", "Door", Workset="Interior"),
        ]),
    ])
    strc = make_element("strc", "Tower_STRC_01", children=[
        wall("strc/w1", "Wall"),
        wall("strc/c1", "Column"),
    ])
    mep = make_element("mep", "Annex_MEP_02", children=[
        make_element("mep/level1", "Level 1"),
    ])
    notes = make_element("notes", "Site notes", children=[
        wall("notes/w1", "Wall"),
    ])
    return [arch, strc, mep, notes]


@pytest.fixture
def federation() -> List[Element]:
    return build_federation()


@pytest.fixture
def host(federation) -> MemoryHost:
    return MemoryHost(federation)


def write_ifc_model(path, project_name: str = "Tower", workset: str = "Shell"):
    """
    Small IFC4 model: project > site > building > storey > wall, door

    The wall carries a Workset property and belongs to a heating system.
    """
    import ifcopenshell
    import ifcopenshell.guid

    f = ifcopenshell.file(schema="IFC4")

    def create(ifc_class, **attributes):
        if ifc_class != "IfcPropertySingleValue":
            attributes.setdefault("GlobalId", ifcopenshell.guid.new())
        return f.create_entity(ifc_class, **attributes)

    project = create("IfcProject", Name=project_name)
    site = create("IfcSite", Name="Site")
    building = create("IfcBuilding", Name="Building")
    storey = create("IfcBuildingStorey", Name="Level 1")
    wall = create("IfcWall", Name="Basic Wall")
    door = create("IfcDoor", Name="Single Door")

    create("IfcRelAggregates", RelatingObject=project, RelatedObjects=[site])
    create("IfcRelAggregates", RelatingObject=site, RelatedObjects=[building])
    create("IfcRelAggregates", RelatingObject=building, RelatedObjects=[storey])
    create("IfcRelContainedInSpatialStructure", RelatingStructure=storey,
           RelatedElements=[wall, door])

    workset_value = create("IfcPropertySingleValue", Name="Workset",
                           NominalValue=f.createIfcLabel(workset))
    fire_rating = create("IfcPropertySingleValue", Name="FireRating",
                         NominalValue=f.createIfcLabel("EI60"))
    pset = create("IfcPropertySet", Name="Pset_WallCommon",
                  HasProperties=[workset_value, fire_rating])
    create("IfcRelDefinesByProperties", RelatedObjects=[wall], RelatingPropertyDefinition=pset)

    system = create("IfcSystem", Name="Heating 1", ObjectType="Heating")
    create("IfcRelAssignsToGroup", RelatedObjects=[wall], RelatingGroup=system)

    if path is not None:
        f.write(str(path))
    return f

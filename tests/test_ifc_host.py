import pytest

ifcopenshell = pytest.importorskip("ifcopenshell")

from conftest import write_ifc_model

from search_sets.engine import ClassificationEngine
from search_sets.errors import NoDisciplinesFound
from search_sets.hierarchy import CLASH_SETS_FOLDER, CUSTOM_SETS_FOLDER
from search_sets.ifc_host import IfcSearchSetHost
from search_sets.properties import PropertyLookup
from search_sets.store import SetStore
from search_sets.traversal import SubtreeWalker


@pytest.fixture
def host(tmp_path):
    models = {
        "Tower_ARCH_01.ifc": write_ifc_model(None, "Tower", workset="Shell"),
        "Tower_STRC_01.ifc": write_ifc_model(None, "Tower", workset="Frame"),
    }
    return IfcSearchSetHost.from_models(models, SetStore(tmp_path / "sets.db"))


def by_name(host, root, name):
    walker = SubtreeWalker(host.get_children)
    return next(e for e in walker.walk(root) if e.display_name == name)


def test_roots_are_files(host):
    roots = host.list_root_elements()
    assert [r.display_name for r in roots] == ["Tower_ARCH_01.ifc", "Tower_STRC_01.ifc"]
    assert all(r.is_file for r in roots)


def test_children_follow_spatial_structure(host):
    root = host.list_root_elements()[0]
    walker = SubtreeWalker(host.get_children)

    names = [e.display_name for e in walker.walk(root)]

    assert names == ["Tower_ARCH_01.ifc", "Tower", "Site", "Building", "Level 1",
                     "Basic Wall", "Single Door"]
    (project,) = host.get_children(root)
    assert project.key == f"Tower_ARCH_01.ifc/{project.entity.GlobalId}"


def test_element_properties(host):
    wall = by_name(host, host.list_root_elements()[0], "Basic Wall")
    lookup = PropertyLookup(host.get_property_categories)

    assert lookup.value_of(wall, "Element", "Category") == "IfcWall"
    assert lookup.value_of(wall, "Element", "Workset") == "Shell"
    assert lookup.value_of(wall, "Element", "System Name") == "Heating 1"
    assert lookup.value_of(wall, "Element", "System Classification") == "Heating"
    assert lookup.value_of(wall, "Element", "Type") == ""
    assert lookup.value_of(wall, "Pset_WallCommon", "FireRating") == "EI60"
    assert lookup.value_of(wall, "Pset_WallCommon", "id") is None
    assert lookup.value_of(wall, "item", "source_file") == "Tower_ARCH_01.ifc"


def test_keys_resolve_back_to_elements(host):
    wall = by_name(host, host.list_root_elements()[1], "Basic Wall")
    assert host.resolve_elements([wall.key, "missing"]) == [wall]


def test_sets_end_to_end(host, tmp_path):
    engine = ClassificationEngine(host)

    assert engine.build_disciplines().created == 2
    assert engine.discipline_names == ["ARCH", "STRC"]

    engine.build_attribute_sets("Category", ["ARCH", "STRC"])
    engine.build_attribute_sets("Workset", ["STRC"])
    engine.scan_properties(["ARCH"])
    engine.build_custom_sets("Pset_WallCommon", "FireRating", ["ARCH"])

    store = SetStore(tmp_path / "sets.db")
    tree = {item.name: item for item in store.load_tree()}

    arch = next(f for f in tree[CLASH_SETS_FOLDER].folders() if f.name == "ARCH")
    names = [leaf.name for leaf in arch.sets()]
    assert {"IfcWall", "IfcDoor"} <= set(names)

    wall_set = arch.sets()[names.index("IfcWall")]
    walls = host.execute_query(wall_set.query)
    assert [e.source for e in walls] == ["Tower_ARCH_01.ifc"]

    strc = next(f for f in tree[CLASH_SETS_FOLDER].folders() if f.name == "STRC")
    assert "Frame" in [leaf.name for leaf in strc.sets()]

    custom_arch = tree[CUSTOM_SETS_FOLDER].folders()[0]
    assert [leaf.name for leaf in custom_arch.sets()] == ["EI60"]


def test_unmatched_file_names(tmp_path):
    store = SetStore(tmp_path / "sets.db")
    host = IfcSearchSetHost.from_models({"coordination.ifc": write_ifc_model(None)}, store)

    with pytest.raises(NoDisciplinesFound):
        ClassificationEngine(host).build_disciplines()
    assert store.count() == 0


def test_open_files_from_disk(tmp_path):
    path = tmp_path / "Annex_MEP_02.ifc"
    write_ifc_model(path, "Annex")

    host = IfcSearchSetHost([path], tmp_path / "sets.db")

    assert [r.display_name for r in host.list_root_elements()] == ["Annex_MEP_02.ifc"]
    with pytest.raises(FileNotFoundError):
        IfcSearchSetHost([tmp_path / "missing.ifc"], tmp_path / "sets.db")


def test_rebuild_removes_saved_disciplines_for_missing_files(tmp_path):
    store = SetStore(tmp_path / "sets.db")
    models = {
        "Tower_ARCH_01.ifc": write_ifc_model(None, "Tower"),
        "Site_CIVIL_01.ifc": write_ifc_model(None, "Site"),
    }
    ClassificationEngine(IfcSearchSetHost.from_models(models, store)).build_disciplines()

    del models["Site_CIVIL_01.ifc"]
    engine = ClassificationEngine(IfcSearchSetHost.from_models(models, store))
    engine.build_disciplines()

    assert engine.discipline_names == ["ARCH"]
    (disciplines,) = store.load_tree()
    assert [s.name for s in disciplines.sets()] == ["ARCH"]

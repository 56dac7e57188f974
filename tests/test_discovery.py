from conftest import make_element, wall

from search_sets.discovery import PropertyCatalog, PropertyValueDiscoverer
from search_sets.model import Element


def test_values_are_sorted_unique_and_non_blank():
    root = make_element("root", children=[
        wall("w1", "Wall"),
        wall("w2", "Wall"),
        wall("d1", "Door"),
        wall("b1", "   "),
        wall("b2", ""),
        make_element("n1", properties={"Element": {"Category": None}}),
        make_element("n2"),
    ])

    values = PropertyValueDiscoverer().discover_values([root], "Element", "Category")

    assert values == ["Door", "Wall"]


def test_values_from_several_bases_are_merged():
    bases = [wall("a", "Wall"), wall("b", "Column"), wall("c", "Wall")]
    assert PropertyValueDiscoverer().discover_values(bases, "Element", "Category") == ["Column", "Wall"]


def test_empty_input_returns_empty_list():
    discoverer = PropertyValueDiscoverer()
    assert discoverer.discover_values([], "Element", "Category") == []
    assert discoverer.discover_values([make_element("x")], "Element", "Category") == []


def test_access_failure_skips_element_and_continues():
    broken_keys = {"w2"}

    def categories(element: Element):
        if element.key in broken_keys:
            raise PermissionError("locked")
        return element.categories

    root = make_element("root", children=[wall("w1", "Wall"), wall("w2", "Door"), wall("w3", "Window")])
    discoverer = PropertyValueDiscoverer(get_categories=categories)

    assert discoverer.discover_values([root], "Element", "Category") == ["Wall", "Window"]
    assert [f.element_key for f in discoverer.access_failures] == ["w2"]

    discoverer.discover_values([wall("ok", "Wall")], "Element", "Category")
    assert discoverer.access_failures == []


def test_catalog_records_categories_and_attributes():
    root = make_element("root", children=[
        make_element("w1", properties={"Element": {"Category": "Wall", "Workset": "Shell"}}),
        make_element("w2", properties={"Element": {"Category": "Wall", "Type": "W1"},
                                       "Pset_WallCommon": {"FireRating": "EI60"}}),
    ])

    catalog = PropertyValueDiscoverer().discover_catalog([root])

    assert catalog.categories() == ["Element", "Item", "Pset_WallCommon"]
    assert catalog.attributes("Element") == ["Category", "Type", "Workset"]
    assert catalog.attributes("Pset_WallCommon") == ["FireRating"]
    assert catalog.attributes("Missing") == []


def test_catalog_respects_caps():
    roots = [
        make_element("r1", children=[make_element("r1c", properties={"Deep": {"A": 1}})]),
        make_element("r2", properties={"Second": {"B": 2}}),
    ]
    discoverer = PropertyValueDiscoverer()

    capped = discoverer.discover_catalog(roots, max_roots=1, per_root_limit=1)
    assert capped.categories() == ["Item"]

    full = discoverer.discover_catalog(roots)
    assert full.categories() == ["Deep", "Item", "Second"]


def test_catalog_skips_unreadable_elements():
    def categories(element: Element):
        if element.key == "bad":
            raise RuntimeError("boom")
        return element.categories

    discoverer = PropertyValueDiscoverer(get_categories=categories)
    catalog = discoverer.discover_catalog([make_element("bad", properties={"Hidden": {"X": 1}}),
                                           make_element("good")])

    assert "Hidden" not in catalog
    assert catalog.categories() == ["Item"]
    assert len(discoverer.access_failures) == 1


def test_catalog_extends_given_catalog():
    catalog = PropertyCatalog()
    catalog.add("Existing", "Value")

    PropertyValueDiscoverer().discover_catalog([make_element("a")], catalog=catalog)

    assert catalog.as_dict() == {"Existing": ["Value"], "Item": ["Name"]}

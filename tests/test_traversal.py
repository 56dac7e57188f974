import pytest

from search_sets.errors import OperationCancelled
from search_sets.model import Element
from search_sets.traversal import CancellationToken, SubtreeWalker, walk


def tree():
    return Element("a", "A", children=[
        Element("b", "B", children=[
            Element("d", "D"),
            Element("e", "E", children=[]),
        ]),
        Element("c", "C", children=[Element("f", "F")]),
    ])


def keys(elements):
    return [e.key for e in elements]


def test_walk_yields_root_then_preorder_descendants():
    assert keys(walk(tree())) == ["a", "b", "d", "e", "c", "f"]


def test_walk_leaf_without_children():
    leaf = Element("x", "X", children=None)
    assert keys(walk(leaf)) == ["x"]


def test_walk_is_restartable():
    walker = SubtreeWalker()
    root = tree()
    assert keys(walker.walk(root)) == keys(walker.walk(root))


def test_walk_limit_counts_root():
    assert keys(walk(tree(), limit=3)) == ["a", "b", "d"]
    assert keys(walk(tree(), limit=0)) == []


def test_walk_all_caps_roots_and_nodes_per_root():
    roots = [tree(), Element("g", "G", children=[Element("h", "H")]), Element("i", "I")]
    walker = SubtreeWalker()

    assert keys(walker.walk_all(roots, max_roots=2, per_root_limit=2)) == ["a", "b", "g", "h"]
    assert len(list(walker.walk_all(roots))) == 9


def test_walk_deep_tree_does_not_recurse():
    root = Element("n0", "n0")
    node = root
    for depth in range(1, 20000):
        node = node.add_child(Element(f"n{depth}", f"n{depth}"))

    assert len(list(walk(root))) == 20000


def test_walker_uses_supplied_children_getter():
    extra = {"a": [Element("z", "Z")]}
    walker = SubtreeWalker(lambda element: extra.get(element.key))

    assert keys(walker.walk(tree())) == ["a", "z"]


def test_cancellation_token():
    token = CancellationToken()
    token.raise_if_cancelled()

    token.cancel()
    assert token.is_cancelled
    with pytest.raises(OperationCancelled):
        token.raise_if_cancelled()

from datetime import datetime

from ast_nodes import Node
from memory import Memory, NULL, UNDEFINED


def tree():
    """root -> outer -> inner, plus a sibling branch root -> other."""
    root = Node("root", "ROOT")
    outer = Node("body", "BODY")
    inner = Node("body", "BODY")
    other = Node("body", "BODY")
    root.push(Node("if", "IF").push(outer))
    outer.push(Node("while", "WHILE").push(inner))
    root.push(Node("fn", "FUNCTION").push(other))
    return root, outer, inner, other


def test_seeded_globals():
    started = datetime(2024, 3, 5, 12, 0, 0)
    memory = Memory(started=started)
    assert [b.name for b in memory.entries] == ["LDRX", "DATE", "TIME"]
    assert all(b.anchor is None for b in memory.entries)

    root = Node("root", "ROOT")
    assert memory.get("LDRX", root).value.startswith("LDRX")
    assert memory.get("DATE", root).value == "Tue Mar 05 2024"
    assert memory.get("TIME", root).value == int(started.timestamp() * 1000)


def test_store_is_visible_in_subtree_only():
    root, outer, inner, other = tree()
    memory = Memory()
    memory.store("x", 1, None, outer)

    assert memory.get("x", outer).value == 1
    assert memory.get("x", inner).value == 1
    assert memory.get("x", root) is None
    assert memory.get("x", other) is None


def test_global_binding_is_visible_everywhere():
    root, outer, inner, other = tree()
    memory = Memory()
    memory.store("g", "hi", None, None)
    for access in (root, outer, inner, other):
        assert memory.get("g", access).value == "hi"


def test_new_bindings_go_first():
    root, *_ = tree()
    memory = Memory()
    memory.store("a", 1, None, root)
    memory.store("b", 2, None, root)
    assert [b.name for b in memory.entries[:2]] == ["b", "a"]


def test_store_updates_visible_binding_in_place():
    root, outer, inner, _ = tree()
    memory = Memory()
    first = memory.store("x", 1, None, root)
    params = Node("arg", "ARGLIST")
    second = memory.store("x", 2, params, inner)

    assert second is first
    assert first.value == 2
    assert first.params is params
    # the anchor never moves to the deeper access point
    assert first.anchor is root
    assert len([b for b in memory.live() if b.name == "x"]) == 1


def test_store_shadows_when_outer_binding_is_not_visible():
    root, outer, inner, other = tree()
    memory = Memory()
    memory.store("x", 1, None, outer)
    memory.store("x", 2, None, other)
    assert memory.get("x", inner).value == 1
    assert memory.get("x", other).value == 2


def test_remove_tombstones():
    root, outer, inner, _ = tree()
    memory = Memory()
    memory.store("x", "outer", None, root)
    memory.store("x", "inner", None, inner)  # updates the root binding, it is visible
    memory.store("y", 1, None, inner)
    size = len(memory.entries)

    assert memory.remove("y", inner) is True
    assert len(memory.entries) == size
    assert None in memory.entries
    assert memory.get("y", inner) is None
    assert memory.remove("y", inner) is False
    assert memory.get("x", inner).value == "inner"


def test_remove_only_touches_the_visible_binding():
    root, outer, inner, other = tree()
    memory = Memory()
    memory.store("z", "outer", None, outer)
    memory.store("z", "shadow", None, other)

    assert memory.remove("z", other) is True
    assert memory.get("z", other) is None
    assert memory.get("z", inner).value == "outer"


def test_lookup_without_access_point_finds_nothing():
    memory = Memory()
    assert memory.lookup("LDRX", None) is None


def test_sentinels_are_falsy_text():
    assert str(UNDEFINED) == "Undefined"
    assert str(NULL) == "Null"
    assert not UNDEFINED
    assert not NULL
    assert UNDEFINED == "Undefined"
    assert "x" + NULL == "xNull"

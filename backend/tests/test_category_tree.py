"""
Tests for the pure category tree helpers (no app, no database).
"""

from backoffice.category_tree import (
    CategoryNode,
    ancestor_names,
    build_category_tree,
    category_lineage,
    find_children,
    has_children,
    toggle_category,
    walk_tree,
    would_create_cycle,
)


def cat(id, name, parent=None):
    return {"id": id, "name": name, "parent_category_id": parent}


CATALOG = [
    cat(1, "Shoes"),
    cat(2, "Sneakers", 1),
    cat(3, "Boots", 1),
    cat(4, "Running", 2),
    cat(5, "Accessories"),
]


class TestBuildTree:

    def test_roots_and_children_sorted_by_name(self):
        roots = build_category_tree(CATALOG)

        assert [r.name for r in roots] == ["Accessories", "Shoes"]
        shoes = roots[1]
        assert [c.name for c in shoes.children] == ["Boots", "Sneakers"]
        assert [c.name for c in shoes.children[1].children] == ["Running"]

    def test_orphan_becomes_root(self):
        roots = build_category_tree([cat(1, "Shoes"), cat(2, "Lost", 99)])
        assert sorted(r.name for r in roots) == ["Lost", "Shoes"]

    def test_cycle_members_are_not_dropped(self):
        records = [cat(1, "A", 2), cat(2, "B", 1), cat(3, "C")]

        roots = build_category_tree(records)

        seen = [node.id for _, node in walk_tree(roots)]
        assert sorted(seen) == [1, 2, 3]

    def test_self_parent_is_root(self):
        roots = build_category_tree([cat(1, "Loop", 1)])
        assert [r.id for r in roots] == [1]
        assert roots[0].children == ()

    def test_accepts_objects(self):
        class Row:
            def __init__(self, id, name, parent_category_id=None):
                self.id = id
                self.name = name
                self.parent_category_id = parent_category_id

        roots = build_category_tree([Row(1, "Shoes"), Row(2, "Sneakers", 1)])
        assert roots[0].children[0].name == "Sneakers"

    def test_to_dict_is_nested(self):
        data = build_category_tree(CATALOG)[1].to_dict()
        assert data["name"] == "Shoes"
        assert data["is_expanded"] is False
        assert [c["name"] for c in data["children"]] == ["Boots", "Sneakers"]


class TestToggle:

    def test_toggle_flips_one_node_without_mutating_input(self):
        roots = build_category_tree(CATALOG)

        toggled = toggle_category(roots, 2)

        sneakers = next(n for _, n in walk_tree(toggled) if n.id == 2)
        assert sneakers.is_expanded is True
        untouched = next(n for _, n in walk_tree(roots) if n.id == 2)
        assert untouched.is_expanded is False

    def test_untouched_subtrees_are_shared(self):
        roots = build_category_tree(CATALOG)
        toggled = toggle_category(roots, 2)

        assert toggled[0] is roots[0]  # Accessories

    def test_toggle_twice_collapses(self):
        roots = toggle_category(toggle_category(build_category_tree(CATALOG), 1), 1)
        assert roots[1].is_expanded is False

    def test_walk_expanded_only(self):
        roots = build_category_tree(CATALOG)
        assert [n.name for _, n in walk_tree(roots, expanded_only=True)] == ["Accessories", "Shoes"]

        expanded = toggle_category(roots, 1)
        visible = [(d, n.name) for d, n in walk_tree(expanded, expanded_only=True)]
        assert visible == [(0, "Accessories"), (0, "Shoes"), (1, "Boots"), (1, "Sneakers")]


class TestLineage:

    def test_lineage_root_first(self):
        running = CATALOG[3]
        names = [c["name"] for c in category_lineage(running, CATALOG)]
        assert names == ["Shoes", "Sneakers", "Running"]

    def test_ancestor_names_excludes_self(self):
        assert ancestor_names(CATALOG[3], CATALOG) == ["Shoes", "Sneakers"]
        assert ancestor_names(CATALOG[0], CATALOG) == []

    def test_lineage_stops_on_cycle(self):
        records = [cat(1, "A", 3), cat(2, "B", 1), cat(3, "C", 2)]

        lineage = category_lineage(records[0], records)

        assert len(lineage) <= len(records)
        assert lineage[-1]["id"] == 1

    def test_lineage_fetches_missing_parents(self):
        known = {1: cat(1, "Shoes"), 2: cat(2, "Sneakers", 1)}
        fetched = []

        def fetch_parent(parent_id):
            fetched.append(parent_id)
            return known.get(parent_id)

        lineage = category_lineage(cat(4, "Running", 2), fetch_parent=fetch_parent)

        assert [c["name"] for c in lineage] == ["Shoes", "Sneakers", "Running"]
        assert fetched == [2, 1]

    def test_lineage_stops_at_missing_parent(self):
        lineage = category_lineage(cat(2, "Lost", 99), [cat(2, "Lost", 99)])
        assert [c["id"] for c in lineage] == [2]


class TestChildrenAndCycles:

    def test_find_children(self):
        assert [c["id"] for c in find_children(CATALOG, 1)] == [2, 3]
        assert has_children(CATALOG, 1)
        assert not has_children(CATALOG, 4)

    def test_would_create_cycle(self):
        assert would_create_cycle(CATALOG, 1, 1)
        assert would_create_cycle(CATALOG, 1, 4)
        assert not would_create_cycle(CATALOG, 4, 3)
        assert not would_create_cycle(CATALOG, 2, None)

    def test_would_create_cycle_terminates_on_existing_cycle(self):
        records = [cat(1, "A", 2), cat(2, "B", 1), cat(3, "C")]
        assert not would_create_cycle(records, 3, 1)


def test_node_from_record_defaults():
    node = CategoryNode.from_record({"id": 7, "name": None})
    assert node.name == ""
    assert node.parent_category_id is None
    assert node.children == ()

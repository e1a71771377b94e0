# Overview: Category hierarchy helpers shared by the API and the API client.

"""
Category tree assembly and lineage walking.

Works on flat category records: ProductCategory rows on the server, plain
dicts from the JSON API on the client. Only `id`, `name` and
`parent_category_id` are required.

The parent pointer graph is supposed to be acyclic but storage does not
enforce it, so every walk here carries a visited set and terminates even on
corrupted data.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, Iterator, Optional


def _get(record: Any, key: str, default=None):
    if isinstance(record, dict):
        return record.get(key, default)
    return getattr(record, key, default)


@dataclass(frozen=True)
class CategoryNode:
    id: int
    name: str
    parent_category_id: Optional[int] = None
    description: Optional[str] = None
    hero_image: Optional[str] = None
    children: tuple = ()
    is_expanded: bool = False

    @classmethod
    def from_record(cls, record: Any) -> "CategoryNode":
        return cls(
            id=_get(record, "id"),
            name=_get(record, "name") or "",
            parent_category_id=_get(record, "parent_category_id"),
            description=_get(record, "description"),
            hero_image=_get(record, "hero_image"),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "parent_category_id": self.parent_category_id,
            "description": self.description,
            "hero_image": self.hero_image,
            "is_expanded": self.is_expanded,
            "children": [c.to_dict() for c in self.children],
        }


def _sort_key(node: CategoryNode):
    return (node.name.casefold(), node.id)


def build_category_tree(categories: Iterable[Any]) -> list[CategoryNode]:
    """
    Build the forest from a flat list in one scan, siblings sorted by name.

    Roots are categories without a parent, plus orphans whose parent id is not
    in the list. Members of a parent-pointer cycle are unreachable from any
    root; the lowest id of each such cycle is promoted to a root so no
    category disappears from the tree.
    """
    records = {}
    children_of: dict[Optional[int], list[int]] = defaultdict(list)
    for record in categories:
        node = CategoryNode.from_record(record)
        records[node.id] = node

    root_ids = []
    for node in records.values():
        parent_id = node.parent_category_id
        if parent_id is None or parent_id not in records or parent_id == node.id:
            root_ids.append(node.id)
        else:
            children_of[parent_id].append(node.id)

    placed: set[int] = set()

    def assemble(node_id: int) -> CategoryNode:
        placed.add(node_id)
        kids = []
        for child_id in children_of.get(node_id, ()):
            if child_id in placed:
                continue
            kids.append(assemble(child_id))
        kids.sort(key=_sort_key)
        return replace(records[node_id], children=tuple(kids))

    roots = [assemble(node_id) for node_id in root_ids]

    for node_id in sorted(records):
        if node_id not in placed:
            roots.append(assemble(node_id))

    roots.sort(key=_sort_key)
    return roots


def toggle_category(roots: list[CategoryNode], category_id: int) -> list[CategoryNode]:
    """
    Return a new forest with `is_expanded` flipped on one node.

    The input is left untouched; untouched subtrees are shared.
    """
    def patch(node: CategoryNode) -> CategoryNode:
        if node.id == category_id:
            return replace(node, is_expanded=not node.is_expanded)
        if not node.children:
            return node
        new_children = tuple(patch(c) for c in node.children)
        if all(a is b for a, b in zip(new_children, node.children)):
            return node
        return replace(node, children=new_children)

    return [patch(root) for root in roots]


def walk_tree(roots: list[CategoryNode], *, expanded_only: bool = False) -> Iterator[tuple[int, CategoryNode]]:
    """Depth-first (depth, node) pairs in display order."""
    stack = [(0, node) for node in reversed(roots)]
    while stack:
        depth, node = stack.pop()
        yield depth, node
        if expanded_only and not node.is_expanded:
            continue
        for child in reversed(node.children):
            stack.append((depth + 1, child))


def find_children(categories: Iterable[Any], category_id: int) -> list[Any]:
    """Direct children of a category."""
    return [c for c in categories if _get(c, "parent_category_id") == category_id and _get(c, "id") != category_id]


def has_children(categories: Iterable[Any], category_id: int) -> bool:
    return bool(find_children(categories, category_id))


def category_lineage(
    category: Any,
    categories: Optional[Iterable[Any]] = None,
    fetch_parent: Optional[Callable[[int], Any]] = None,
) -> list[Any]:
    """
    Ordered root -> category breadcrumb (the category itself is last).

    Parents are looked up in `categories` when given, otherwise (or on a
    miss) through `fetch_parent(parent_id)`, which returns the record or None.
    The walk stops at a root, at a missing parent, or at the first id seen
    twice; with a known list it never takes more hops than there are
    categories.
    """
    by_id = {}
    if categories is not None:
        by_id = {_get(c, "id"): c for c in categories}
    max_hops = len(by_id) if by_id and fetch_parent is None else None

    lineage = [category]
    visited = {_get(category, "id")}
    parent_id = _get(category, "parent_category_id")
    hops = 0

    while parent_id is not None:
        if parent_id in visited:
            break
        if max_hops is not None and hops >= max_hops:
            break
        parent = by_id.get(parent_id)
        if parent is None and fetch_parent is not None:
            parent = fetch_parent(parent_id)
        if parent is None:
            break
        lineage.insert(0, parent)
        visited.add(parent_id)
        hops += 1
        parent_id = _get(parent, "parent_category_id")

    return lineage


def ancestor_names(category: Any, categories: Iterable[Any]) -> list[str]:
    """Names of the ancestors, root first, excluding the category itself."""
    return [_get(c, "name") for c in category_lineage(category, categories)[:-1]]


def would_create_cycle(categories: Iterable[Any], category_id: int, new_parent_id: Optional[int]) -> bool:
    """
    True if making `new_parent_id` the parent of `category_id` would make the
    category its own ancestor (new parent is the category or a descendant).
    """
    if new_parent_id is None:
        return False
    if new_parent_id == category_id:
        return True

    parent_of = {_get(c, "id"): _get(c, "parent_category_id") for c in categories}
    visited = set()
    current = new_parent_id
    while current is not None and current not in visited:
        if current == category_id:
            return True
        visited.add(current)
        current = parent_of.get(current)
    return False

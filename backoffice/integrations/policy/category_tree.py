"""Category tree assembly from flat upstream lists."""

from __future__ import annotations

from typing import Dict, List, Optional

from backoffice.integrations.contracts.entities import Category

PATH_SEPARATOR = " > "


def _is_in_cycle(category: Category, by_code: Dict[str, Category]) -> bool:
    """True when following parent codes leads back to this category."""
    seen = set()
    parent_code = category.parent_category_code
    while parent_code:
        if parent_code == category.category_code:
            return True
        if parent_code in seen:
            return False
        seen.add(parent_code)
        parent = by_code.get(parent_code)
        if parent is None:
            return False
        parent_code = parent.parent_category_code
    return False


def build_tree_from_flat_list(categories: List[Category]) -> List[Category]:
    """
    Link categories to their parents by code and return the roots.

    Categories without a parent code, with a parent that is not in the list,
    or whose parent chain loops back on itself are returned as roots.
    """
    by_code: Dict[str, Category] = {}
    for category in categories:
        by_code[category.category_code or ""] = category
        category.children = []

    roots: List[Category] = []
    for category in categories:
        parent_code = category.parent_category_code
        parent = by_code.get(parent_code) if parent_code else None
        if parent is None or parent is category or _is_in_cycle(category, by_code):
            roots.append(category)
            continue
        parent.children.append(category)
    return roots


def build_category_paths(categories: List[Category], parent_path: str = "") -> None:
    for category in categories:
        label = category.category_name or category.category_code
        if not parent_path:
            category.path = label or "Unknown"
        else:
            category.path = f"{parent_path}{PATH_SEPARATOR}{label or ''}"
        if category.children:
            build_category_paths(category.children, category.path)


def flatten_category_tree(categories: List[Category], into: Optional[Dict[str, Category]] = None) -> Dict[str, Category]:
    """code -> category for every node of a nested tree."""
    flat: Dict[str, Category] = {} if into is None else into
    for category in categories:
        if category.category_code:
            flat[category.category_code] = category
        if category.children:
            flatten_category_tree(category.children, flat)
    return flat


def split_path(path: Optional[str]) -> Optional[List[str]]:
    return path.split(PATH_SEPARATOR) if path else None

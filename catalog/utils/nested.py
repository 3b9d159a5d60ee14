"""
Dotted-path access into loosely typed JSON trees.

Paths use "." as separator; numeric segments index into lists
("Offers.Listings.0.Price.Amount").
"""
from typing import Any, Union

Tree = Union[dict, list]


def _index(key: str) -> int:
    return int(key) if key.isdigit() else -1


def get_nested(tree: Any, path: str, default: Any = None) -> Any:
    """Return the value at path, or default when any segment is missing or null."""
    current = tree
    for key in path.split("."):
        if isinstance(current, dict):
            if key not in current:
                return default
            current = current[key]
        elif isinstance(current, list):
            idx = _index(key)
            if idx < 0 or idx >= len(current):
                return default
            current = current[idx]
        else:
            return default

        if current is None:
            return default

    return current


def has_nested(tree: Any, path: str) -> bool:
    return get_nested(tree, path) is not None


def set_nested(tree: Tree, path: str, value: Any) -> Tree:
    """
    Set value at path in place, creating intermediate containers.

    Scalars found on the way are replaced by a dict, or by a list when the
    next segment is numeric. Lists are padded with empty dicts.
    """
    keys = path.split(".")
    current = tree

    for position, key in enumerate(keys):
        last = position == len(keys) - 1

        if isinstance(current, list):
            idx = _index(key)
            if idx < 0:
                raise KeyError(f"Non-numeric segment '{key}' for list in path '{path}'")
            while len(current) <= idx:
                current.append({})
            slot = idx
        else:
            slot = key

        if last:
            current[slot] = value
            break

        child = current[slot] if isinstance(current, list) else current.get(slot)
        if not isinstance(child, (dict, list)):
            child = [] if keys[position + 1].isdigit() else {}
            current[slot] = child
        current = child

    return tree

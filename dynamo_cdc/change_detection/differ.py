"""
Deep structural diff between two normalized item images.

Keys only in the new image are reported first, then keys only in the old
image, then shared keys whose values differ. Nested maps are compared
recursively and report the parent path followed by the nested paths. Lists
are compared wholesale and never element by element.
"""

import json
from typing import Any, Mapping, Optional

from dynamo_cdc.exceptions import DiffError
from dynamo_cdc.models import DiffResult, Image


def _is_map(value: Any) -> bool:
    return isinstance(value, Mapping)


def _lists_differ(new_value: list, old_value: list) -> bool:
    try:
        return json.dumps(new_value, sort_keys=True) != json.dumps(
            old_value, sort_keys=True
        )
    except (TypeError, ValueError) as exc:
        raise DiffError(f"Cannot serialize list for comparison: {exc}") from exc


def _values_differ(new_value: Any, old_value: Any) -> bool:
    # bool is an int subclass; True and 1 are different attribute values
    if isinstance(new_value, bool) != isinstance(old_value, bool):
        return True
    return bool(new_value != old_value)


def _diff(
    new_tree: Mapping[str, Any],
    old_tree: Mapping[str, Any],
    prefix: str,
    ancestors: frozenset[int],
) -> DiffResult:
    if id(new_tree) in ancestors or id(old_tree) in ancestors:
        raise DiffError(f"Cyclic reference at {prefix or '<root>'}")
    ancestors = ancestors | {id(new_tree), id(old_tree)}

    attributes_changed: list[str] = []
    before: Image = {}
    after: Image = {}

    in_new_only = [key for key in new_tree if key not in old_tree]
    in_old_only = [key for key in old_tree if key not in new_tree]
    in_both = [key for key in new_tree if key in old_tree]

    for key in in_new_only:
        after[key] = new_tree[key]
        attributes_changed.append(f"{prefix}{key}")

    for key in in_old_only:
        before[key] = old_tree[key]
        attributes_changed.append(f"{prefix}{key}")

    for key in in_both:
        new_value = new_tree[key]
        old_value = old_tree[key]

        if _is_map(new_value) and _is_map(old_value):
            nested = _diff(new_value, old_value, f"{prefix}{key}.", ancestors)
            if nested.has_changes:
                before[key] = nested.before
                after[key] = nested.after
                attributes_changed.append(f"{prefix}{key}")
                attributes_changed.extend(nested.attributes_changed)
        elif isinstance(new_value, list) and isinstance(old_value, list):
            if _lists_differ(new_value, old_value):
                before[key] = old_value
                after[key] = new_value
                attributes_changed.append(f"{prefix}{key}")
        elif _values_differ(new_value, old_value):
            before[key] = old_value
            after[key] = new_value
            attributes_changed.append(f"{prefix}{key}")

    return DiffResult(
        attributes_changed=attributes_changed, before=before, after=after
    )


def diff_images(
    new_image: Optional[Mapping[str, Any]],
    old_image: Optional[Mapping[str, Any]],
    prefix: str = "",
) -> DiffResult:
    """
    Compare two images and return the changed paths and pruned trees.

    Args:
        new_image: Image after the change (None behaves as empty)
        old_image: Image before the change (None behaves as empty)
        prefix: Path prefix prepended to every reported path

    Returns:
        DiffResult with paths in traversal order

    Raises:
        DiffError: If an image is cyclic or nested too deeply to compare
    """
    try:
        return _diff(new_image or {}, old_image or {}, prefix, frozenset())
    except RecursionError as exc:
        raise DiffError("Image nesting too deep to compare") from exc


__all__ = ["diff_images"]

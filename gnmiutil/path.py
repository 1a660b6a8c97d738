"""Convert gNMI paths into flat lists of index strings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional


@dataclass
class PathElem:
    """One element of a path: a name with optional list keys."""

    name: str = ""
    key: Dict[str, str] = field(default_factory=dict)


@dataclass
class Path:
    """A gNMI path.

    ``element`` is the deprecated string form, used only when ``elem`` is
    empty.
    """

    elem: List[PathElem] = field(default_factory=list)
    element: List[str] = field(default_factory=list)
    origin: str = ""
    target: str = ""


def sorted_values(m: Mapping[str, str]) -> List[str]:
    """Return the values of m ordered by their keys."""
    return [m[k] for k in sorted(m)]


def to_strings(p: Optional[Path], prefix: bool) -> List[str]:
    """Flatten p into index strings.

    Each element contributes its name followed by its key values in key
    order. With prefix set, non-empty target and origin come first.
    """
    if p is None:
        return []
    result: List[str] = []
    if prefix:
        if p.target:
            result.append(p.target)
        if p.origin:
            result.append(p.origin)
    if not p.elem:
        return result + list(p.element)
    for e in p.elem:
        result.append(e.name)
        result.extend(sorted_values(e.key))
    return result


def complete_path(prefix: Optional[Path], path: Optional[Path]) -> List[str]:
    """Join prefix and path into index strings, validating the origin.

    The origin may be set in the prefix or in the path but not both, and
    when it is set in the path the prefix may hold no elements. The target
    is not included. Raises ValueError on an invalid combination.
    """
    o_pre = prefix.origin if prefix is not None else ""
    o_path = path.origin if path is not None else ""
    indexed_prefix = to_strings(prefix, False)

    if o_pre and o_path:
        raise ValueError("origin is set both in prefix and path")
    if o_pre:
        full_prefix = [o_pre, *indexed_prefix]
    elif o_path:
        if indexed_prefix:
            raise ValueError(
                "path elements in prefix are set even though origin is set in path"
            )
        full_prefix = [o_path]
    else:
        full_prefix = indexed_prefix
    return full_prefix + to_strings(path, False)
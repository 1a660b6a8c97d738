"""A thread-safe tree keyed by string paths.

Every node is either a branch, which maps names to child nodes, or a leaf,
which holds a value. Leaves are found by paths of names. Queries may use
``"*"`` to match any name at a level. A trailing ``"*"`` means the same as
leaving it out.
"""

from __future__ import annotations

import json
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

GLOB = "*"

VisitFunc = Callable[[List[str], "Leaf", Any], None]
"""Callback for leaves found by query and walk: (path, leaf, value).

The leaf may be kept after the callback returns. Its ``value()`` then gives
the latest value. An exception raised by the callback stops the traversal
and propagates to the caller.
"""


class TreeError(Exception):
    """Raised when a value cannot be added at the requested path."""


class _Branch(dict):
    """The children of a branch node, kept apart from dict-valued leaves."""


class Leaf:
    """A live handle on a leaf node.

    ``value()`` always returns the node's current value. If the leaf is
    updated after the handle was taken, the new value is returned.
    """

    __slots__ = ("_node",)

    def __init__(self, node: "Tree") -> None:
        self._node = node

    def value(self) -> Any:
        """Return the latest value stored in this leaf."""
        with self._node._lock:
            return self._node._leaf_branch

    def update(self, val: Any) -> None:
        """Replace the value stored in this leaf."""
        with self._node._lock:
            self._node._leaf_branch = val

    def __repr__(self) -> str:
        return f"Leaf({self.value()!r})"


def detached_leaf(val: Any) -> Leaf:
    """Return a Leaf holding val that belongs to no tree."""
    node = Tree()
    node._leaf_branch = val
    return Leaf(node)


def _new_branch(path: Sequence[str], value: Any) -> "Tree":
    node = Tree()
    if not path:
        node._leaf_branch = value
    else:
        node._leaf_branch = _Branch({path[0]: _new_branch(path[1:], value)})
    return node


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return "<nil>"
    return repr(value)


class Tree:
    """A thread-safe tree container; an empty Tree holds nothing."""

    __hash__ = None  # type: ignore[assignment]

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._leaf_branch: Any = None

    # Inspection

    def is_branch(self) -> bool:
        """Return whether this node is a branch."""
        with self._lock:
            return isinstance(self._leaf_branch, _Branch)

    def children(self) -> Optional[Dict[str, "Tree"]]:
        """Return a copy of the child mapping of a branch, or None for a leaf."""
        with self._lock:
            if isinstance(self._leaf_branch, _Branch):
                return dict(self._leaf_branch)
            return None

    def value(self) -> Any:
        """Return the value of a leaf node, or None for a branch."""
        with self._lock:
            if isinstance(self._leaf_branch, _Branch):
                return None
            return self._leaf_branch

    # Adding

    def add(self, path: Sequence[str], value: Any) -> None:
        """Store value at path, creating branches as needed.

        Raises TreeError when path runs through an existing leaf or ends at
        an existing branch.
        """
        path = list(path)
        if not path:
            self._terminal_add(value)
            return
        with self._lock:
            current = self._leaf_branch
            if current is None:
                current = self._leaf_branch = _Branch()
            if not isinstance(current, _Branch):
                raise TreeError(
                    f"attempted to add value {value!r} at path {path!r} "
                    f"which is already a leaf with value {current!r}"
                )
            child = current.get(path[0])
            if child is None:
                current[path[0]] = _new_branch(path[1:], value)
                return
        child.add(path[1:], value)

    def _terminal_add(self, value: Any) -> None:
        with self._lock:
            if isinstance(self._leaf_branch, _Branch):
                raise TreeError("attempted to add a leaf in place of a branch")
            self._leaf_branch = value

    # Lookup

    def get(self, path: Sequence[str]) -> Optional["Tree"]:
        """Return the node at path, or None. Globs are not expanded."""
        with self._lock:
            if not path:
                return self
            current = self._leaf_branch
            if isinstance(current, _Branch):
                child = current.get(path[0])
                if child is not None:
                    return child.get(path[1:])
            return None

    def get_leaf_value(self, path: Sequence[str]) -> Any:
        """Return the value of the leaf at path, or None."""
        node = self.get(path)
        return node.value() if node is not None else None

    def get_leaf(self, path: Sequence[str]) -> Optional[Leaf]:
        """Return a handle on the node at path, or None."""
        node = self.get(path)
        return Leaf(node) if node is not None else None

    # Traversal

    def query(self, path: Sequence[str], f: VisitFunc) -> None:
        """Call f for every leaf matching path, where any name may be "*".

        No order of results is guaranteed.
        """
        self._query([], list(path), f)

    def _query(self, prefix: List[str], path: List[str], f: VisitFunc) -> None:
        with self._lock:
            if not path or path[0] == GLOB:
                self._enumerate_children(prefix, path, f)
                return
            current = self._leaf_branch
            if isinstance(current, _Branch):
                child = current.get(path[0])
                if child is not None:
                    child._query(prefix + [path[0]], path[1:], f)

    def _enumerate_children(
        self, prefix: List[str], path: List[str], f: VisitFunc
    ) -> None:
        current = self._leaf_branch
        if not path or (len(path) == 1 and path[0] == GLOB):
            if isinstance(current, _Branch):
                for name, child in list(current.items()):
                    child._query(prefix + [name], [], f)
            elif current is not None:
                f(prefix, Leaf(self), current)
            return
        if isinstance(current, _Branch):
            for name, child in list(current.items()):
                child._query(prefix + [name], path[1:], f)

    def walk(self, f: VisitFunc) -> None:
        """Call f for every leaf in the tree."""
        self._walk([], f, False)

    def walk_sorted(self, f: VisitFunc) -> None:
        """Call f for every leaf, visiting names in sorted order."""
        self._walk([], f, True)

    def _walk(self, path: List[str], f: VisitFunc, ordered: bool) -> None:
        with self._lock:
            current = self._leaf_branch
            if isinstance(current, _Branch):
                names: Iterable[str] = sorted(current) if ordered else list(current)
                for name in names:
                    current[name]._walk(path + [name], f, ordered)
                return
            # An empty root is an unused tree, not a leaf holding None.
            if not path and current is None:
                return
            f(path, Leaf(self), current)

    # Deletion

    def walk_deleted(
        self,
        path: Sequence[str],
        condition: Callable[[Any], bool],
        f: Callable[[Any], None],
    ) -> None:
        """Remove leaves at or below path for which condition holds.

        f is called with the value of every removed leaf. Branches left
        empty are removed too.
        """
        with self._lock:
            remove, _ = self._delete(list(path), condition, f, False)
            if remove:
                self._leaf_branch = None

    def delete_conditional(
        self, subpath: Sequence[str], condition: Callable[[Any], bool]
    ) -> List[List[str]]:
        """Remove leaves at or below subpath for which condition holds.

        Branches left empty are removed too. Returns the paths of the
        removed leaves.
        """
        with self._lock:
            remove, leaves = self._delete(list(subpath), condition, lambda _: None, True)
            if remove:
                self._leaf_branch = None
            return leaves

    def delete(self, subpath: Sequence[str]) -> List[List[str]]:
        """Remove all leaves at or below subpath and return their paths."""
        return self.delete_conditional(subpath, lambda _: True)

    def _delete(
        self,
        subpath: List[str],
        condition: Callable[[Any], bool],
        f: Callable[[Any], None],
        want_paths: bool,
    ) -> Tuple[bool, List[List[str]]]:
        """Delete below this node; return (remove this node, deleted paths)."""
        current = self._leaf_branch
        if not subpath or subpath[0] == GLOB:
            rest = subpath[1:]
            if isinstance(current, _Branch):
                deleted: List[List[str]] = []
                for name, child in list(current.items()):
                    remove, leaves = child._delete(rest, condition, f, want_paths)
                    if want_paths:
                        deleted.extend([name, *leaf] for leaf in leaves)
                    if remove:
                        del current[name]
                return not current, deleted
            if condition(current):
                f(current)
                return True, ([[]] if want_paths else [])
            return False, []
        if isinstance(current, _Branch):
            child = current.get(subpath[0])
            if child is not None:
                remove, leaves = child._delete(subpath[1:], condition, f, want_paths)
                leaves = [[subpath[0], *leaf] for leaf in leaves]
                if remove:
                    del current[subpath[0]]
                return not current, leaves
        return False, []

    # Dunder methods

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Tree):
            return NotImplemented
        if self is other:
            return True
        with self._lock, other._lock:
            mine, theirs = self._leaf_branch, other._leaf_branch
        if isinstance(mine, _Branch) != isinstance(theirs, _Branch):
            return False
        return bool(mine == theirs)

    def __str__(self) -> str:
        with self._lock:
            current = self._leaf_branch
            if isinstance(current, _Branch):
                parts = ", ".join(
                    f"{json.dumps(name, ensure_ascii=False)}: {current[name]}"
                    for name in sorted(current)
                )
                return f"{{ {parts} }}"
            return _format_value(current)

    def __repr__(self) -> str:
        return f"Tree({self})"
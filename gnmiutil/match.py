"""Match updates against a tree of registered subscription queries.

A query is a list of path names where ``"*"`` matches any name. Every
client whose query matches an update's path receives the update.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Protocol, Sequence, Set

#: Matches any single path name.
GLOB = "*"


class Client(Protocol):
    """Receives matching updates. Clients must be hashable."""

    def update(self, n: Any) -> None:
        ...


@dataclass(eq=False)
class _Branch:
    clients: Set[Client] = field(default_factory=set)
    children: Dict[str, "_Branch"] = field(default_factory=dict)

    def add_query(self, query: Sequence[str], client: Client) -> None:
        node = self
        for name in query:
            node = node.children.setdefault(name, _Branch())
        node.clients.add(client)

    def remove_query(self, query: Sequence[str], client: Client) -> bool:
        """Remove client at query; return whether this branch is now empty."""
        if not query:
            self.clients.discard(client)
        else:
            child = self.children.get(query[0])
            if child is not None and child.remove_query(query[1:], client):
                del self.children[query[0]]
        return not self.clients and not self.children

    def update(
        self, n: Any, path: Sequence[str], updated: Optional[Set[Client]]
    ) -> None:
        for client in list(self.clients):
            if updated is None:
                client.update(n)
            elif client not in updated:
                client.update(n)
                updated.add(client)
        if not self.children:
            return
        # An empty path reaches everything below: an intermediate delete.
        if not path:
            for child in self.children.values():
                child.update(n, (), updated)
            return
        # A glob in the update path (a target delete) reaches every branch.
        if path[0] == GLOB:
            for child in self.children.values():
                child.update(n, path[1:], updated)
            return
        glob_child = self.children.get(GLOB)
        if glob_child is not None:
            glob_child.update(n, path[1:], updated)
        named_child = self.children.get(path[0])
        if named_child is not None:
            named_child.update(n, path[1:], updated)


class Match:
    """Invokes registered clients for every update that matches their query."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tree = _Branch()

    def add_query(self, query: Sequence[str], client: Client) -> Callable[[], None]:
        """Register client for query; return an idempotent remove function."""
        query = list(query)
        with self._lock:
            self._tree.add_query(query, client)

        def remove() -> None:
            with self._lock:
                self._tree.remove_query(query, client)

        return remove

    def update(self, n: Any, p: Sequence[str]) -> None:
        """Pass n to every client whose query matches path p."""
        with self._lock:
            self._tree.update(n, list(p), None)

    def update_once(
        self, n: Any, p: Sequence[str], updated: Optional[Set[Client]]
    ) -> None:
        """Like update, but skip clients in updated and add those invoked.

        With updated set to None this is the same as update.
        """
        with self._lock:
            self._tree.update(n, list(p), updated)
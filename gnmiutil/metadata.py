"""Per-target metadata values kept in the cache under the ``meta`` root.

Values are registered by name in three module-wide registries: booleans,
integers and strings. A :class:`Metadata` holds the current values for one
target. Operations on names that are not registered raise
:class:`InvalidValueError`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Dict, Iterable, List, Optional

from gnmiutil import latency as _latency

#: Root node under which metadata is cached.
ROOT = "meta"

#: Whether all target state is cached.
SYNC = "sync"
#: Whether updates are being received.
CONNECTED = "connected"
#: The last-hop address of a connected target.
CONNECTED_ADDR = "connectedAddress"
#: Total number of leaves that have been added.
ADD_COUNT = "targetLeavesAdded"
#: Total number of leaves that have been deleted.
DEL_COUNT = "targetLeavesDeleted"
#: Total number of notifications holding no updates or deletes.
EMPTY_COUNT = "targetLeavesEmpty"
#: Current number of leaves stored in the cache.
LEAF_COUNT = "targetLeaves"
#: Total number of leaf updates received.
UPDATE_COUNT = "targetLeavesUpdated"
#: Total number of leaf updates older than the cached value.
STALE_COUNT = "targetLeavesStale"
#: Total number of leaf updates rejected for being too far in the future.
FUTURE_COUNT = "targetLeavesFuture"
#: Total number of leaf updates suppressed for repeating the cached value.
SUPPRESSED_COUNT = "targetLeavesSuppressed"
#: Total number of bytes used to store all values.
SIZE = "targetSize"
#: Latest timestamp of any update received for the target.
LATEST_TIMESTAMP = "latestTimestamp"
#: The error of the last connection failure.
CONNECT_ERROR = "connectError"
#: Optional name identifying the server to clients.
SERVER_NAME = "serverName"


class ResetAction(IntEnum):
    """What happens to a string value when it is reset."""

    DEFAULT_VALUE = 0
    DELETE = 1
    KEEP = 2


@dataclass
class IntValue:
    """An integer value's path; ``init_zero`` makes it start (and reset) at 0."""

    path: List[str]
    init_zero: bool = False


@dataclass
class StrValue:
    """How a string value behaves when reset."""

    reset_action: ResetAction = ResetAction.DEFAULT_VALUE


class InvalidValueError(LookupError):
    """Raised for a metadata name that is not registered."""

    def __init__(self, message: str = "invalid metadata value") -> None:
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])


class UnsetValueError(LookupError):
    """Raised when reading a value that has not been set."""

    def __init__(self, message: str = "unset value") -> None:
        super().__init__(message)

    def __str__(self) -> str:
        return str(self.args[0])


#: All registered boolean values.
TARGET_BOOL_VALUES: Dict[str, bool] = {
    SYNC: True,
    CONNECTED: True,
}

#: All registered integer values.
TARGET_INT_VALUES: Dict[str, IntValue] = {
    name: IntValue([ROOT, name], True)
    for name in (
        ADD_COUNT,
        DEL_COUNT,
        EMPTY_COUNT,
        LEAF_COUNT,
        UPDATE_COUNT,
        STALE_COUNT,
        FUTURE_COUNT,
        SUPPRESSED_COUNT,
        SIZE,
        LATEST_TIMESTAMP,
    )
}

#: All registered string values.
TARGET_STR_VALUES: Dict[str, StrValue] = {
    CONNECTED_ADDR: StrValue(ResetAction.DEFAULT_VALUE),
    CONNECT_ERROR: StrValue(ResetAction.DELETE),
}


def register_int_value(name: str, val: IntValue) -> None:
    """Register an integer value."""
    TARGET_INT_VALUES[name] = val


def unregister_int_value(name: str) -> None:
    """Unregister an integer value; unknown names are ignored."""
    TARGET_INT_VALUES.pop(name, None)


def register_str_value(name: str, val: StrValue) -> None:
    """Register a string value."""
    TARGET_STR_VALUES[name] = val


def unregister_str_value(name: str) -> None:
    """Unregister a string value; unknown names are ignored."""
    TARGET_STR_VALUES.pop(name, None)


def _is_bool(name: str) -> bool:
    return bool(TARGET_BOOL_VALUES.get(name))


def _check_bool(name: str) -> None:
    if not _is_bool(name):
        raise InvalidValueError()


def _check_int(name: str) -> None:
    if name not in TARGET_INT_VALUES:
        raise InvalidValueError()


def _check_str(name: str) -> None:
    if name not in TARGET_STR_VALUES:
        raise InvalidValueError()


def path(value: str) -> Optional[List[str]]:
    """Return the full metadata path of a registered value, or None."""
    if _is_bool(value) or value in TARGET_STR_VALUES:
        return [ROOT, value]
    int_value = TARGET_INT_VALUES.get(value)
    if int_value is not None:
        return list(int_value.path)
    return None


def latency_path(w: int, typ: _latency.StatType) -> List[str]:
    """Return the metadata path of latency statistic typ for window w."""
    return _latency.path(w, typ, [ROOT])


def register_latency_metadata(window_sizes: Iterable[int]) -> None:
    """Register avg, max and min latency values for each window size.

    Call this before creating any Metadata.
    """
    for size in window_sizes:
        for typ in (_latency.StatType.AVG, _latency.StatType.MAX, _latency.StatType.MIN):
            register_int_value(
                _latency.metadata_name(size, typ),
                IntValue(path=latency_path(size, typ)),
            )


def register_server_name_metadata() -> None:
    """Register the server name, which is kept as is when reset."""
    register_str_value(SERVER_NAME, StrValue(ResetAction.KEEP))


def unregister_server_name_metadata() -> None:
    """Unregister the server name."""
    unregister_str_value(SERVER_NAME)


class Metadata:
    """The metadata values of one target; all operations are thread-safe.

    A new instance starts cleared: counters at 0, flags false, and string
    values empty or absent according to their reset action.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._ints: Dict[str, int] = {}
        self._bools: Dict[str, bool] = {}
        self._strs: Dict[str, str] = {}
        self.clear()

    def reset_entry(self, entry: str) -> None:
        """Reset one value according to its registration.

        Booleans become false. Integers become 0 when ``init_zero`` is set
        and are removed otherwise. Strings follow their reset action.
        Raises InvalidValueError for an unregistered name.
        """
        if _is_bool(entry):
            self.set_bool(entry, False)
            return
        int_value = TARGET_INT_VALUES.get(entry)
        if int_value is not None:
            if int_value.init_zero:
                self.set_int(entry, 0)
            else:
                with self._lock:
                    self._ints.pop(entry, None)
            return
        str_value = TARGET_STR_VALUES.get(entry)
        if str_value is not None:
            if str_value.reset_action == ResetAction.DEFAULT_VALUE:
                self.set_str(entry, "")
            elif str_value.reset_action == ResetAction.DELETE:
                with self._lock:
                    self._strs.pop(entry, None)
            return
        raise InvalidValueError(f'unsupported entry "{entry}"')

    def clear(self) -> None:
        """Reset every registered value."""
        for registry in (TARGET_BOOL_VALUES, TARGET_INT_VALUES, TARGET_STR_VALUES):
            for name in list(registry):
                self.reset_entry(name)

    def add_int(self, value: str, i: int) -> None:
        """Increase the integer value by i."""
        _check_int(value)
        with self._lock:
            self._ints[value] = self._ints.get(value, 0) + i

    def set_int(self, value: str, v: int) -> None:
        """Set the integer value to v."""
        _check_int(value)
        with self._lock:
            self._ints[value] = v

    def get_int(self, value: str) -> int:
        """Return the integer value; raises UnsetValueError if not set."""
        _check_int(value)
        with self._lock:
            if value not in self._ints:
                raise UnsetValueError()
            return self._ints[value]

    def set_bool(self, value: str, v: bool) -> None:
        """Set the boolean value to v."""
        _check_bool(value)
        with self._lock:
            self._bools[value] = v

    def get_bool(self, value: str) -> bool:
        """Return the boolean value; raises UnsetValueError if not set."""
        _check_bool(value)
        with self._lock:
            if value not in self._bools:
                raise UnsetValueError()
            return self._bools[value]

    def set_str(self, value: str, v: str) -> None:
        """Set the string value to v."""
        _check_str(value)
        with self._lock:
            self._strs[value] = v

    def get_str(self, value: str) -> str:
        """Return the string value; raises UnsetValueError if not set."""
        _check_str(value)
        with self._lock:
            if value not in self._strs:
                raise UnsetValueError()
            return self._strs[value]
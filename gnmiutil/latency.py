"""Latency statistics (average, maximum, minimum) over sliding time windows.

Durations and timestamps are integers counted in nanoseconds, and
timestamps are measured from the Unix epoch. Statistics are exported
through any object with a ``set_int(name, value)`` method.
"""

from __future__ import annotations

import contextlib
import re
import threading
import time
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Callable, Dict, List, Optional, Protocol, Sequence

NANOSECOND = 1
MICROSECOND = 1000 * NANOSECOND
MILLISECOND = 1000 * MICROSECOND
SECOND = 1000 * MILLISECOND
MINUTE = 60 * SECOND
HOUR = 60 * MINUTE

#: Container of all latency metadata about a target.
ELEM_LATENCY = "latency"
#: Holds the statistics of one window size.
ELEM_WINDOW = "window"
ELEM_AVG = "avg"
ELEM_MAX = "max"
ELEM_MIN = "min"
_META_NAME = "LatencyWindow"

_MAX_DURATION = 2**63 - 1

_UNITS: Dict[str, int] = {
    "ns": NANOSECOND,
    "us": MICROSECOND,
    "\u00b5s": MICROSECOND,
    "\u03bcs": MICROSECOND,
    "ms": MILLISECOND,
    "s": SECOND,
    "m": MINUTE,
    "h": HOUR,
}

_DURATION_PART = re.compile(r"(\d*)(?:\.(\d*))?([^\d.]*)")


class StatType(IntEnum):
    """The kind of statistic kept for a time window."""

    AVG = 0
    MAX = 1
    MIN = 2

    def __str__(self) -> str:
        return {StatType.AVG: ELEM_AVG, StatType.MAX: ELEM_MAX, StatType.MIN: ELEM_MIN}[self]


class MetadataSink(Protocol):
    """Anything that latency statistics can be written to."""

    def set_int(self, name: str, value: int) -> object:
        ...


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _frac(value: int, scale: int) -> str:
    whole, rem = divmod(value, scale)
    if not rem:
        return str(whole)
    digits = len(str(scale)) - 1
    return f"{whole}.{str(rem).zfill(digits).rstrip('0')}"


def format_duration(d: int) -> str:
    """Format a duration in nanoseconds, e.g. ``"1h2m3.5s"`` or ``"1.5ms"``."""
    if d == 0:
        return "0s"
    sign = "-" if d < 0 else ""
    u = abs(d)
    if u < SECOND:
        if u < MICROSECOND:
            return f"{sign}{u}ns"
        if u < MILLISECOND:
            return f"{sign}{_frac(u, MICROSECOND)}\u00b5s"
        return f"{sign}{_frac(u, MILLISECOND)}ms"
    total_seconds, rem = divmod(u, SECOND)
    seconds = total_seconds % 60
    sec_text = _frac(seconds * SECOND + rem, SECOND) + "s"
    minutes_total = total_seconds // 60
    if not minutes_total:
        return sign + sec_text
    hours, minutes = divmod(minutes_total, 60)
    hour_text = f"{hours}h" if hours else ""
    return f"{sign}{hour_text}{minutes}m{sec_text}"


def parse_duration(s: str) -> int:
    """Parse a duration such as ``"300ms"``, ``"-1.5h"`` or ``"2h45m"``.

    Valid units are ns, us (or µs), ms, s, m and h. Raises ValueError.
    """
    orig = s
    invalid = ValueError(f'time: invalid duration "{orig}"')
    negative = False
    if s and s[0] in "+-":
        negative = s[0] == "-"
        s = s[1:]
    if s == "0":
        return 0
    if not s:
        raise invalid
    total = 0
    while s:
        m = _DURATION_PART.match(s)
        whole, frac, unit_name = m.group(1), m.group(2) or "", m.group(3)
        if not whole and not frac:
            raise invalid
        if not unit_name:
            raise ValueError(f'time: missing unit in duration "{orig}"')
        unit = _UNITS.get(unit_name)
        if unit is None:
            raise ValueError(f'time: unknown unit "{unit_name}" in duration "{orig}"')
        value = int(whole or "0") * unit
        if frac:
            value += int(frac) * unit // 10 ** len(frac)
        total += value
        if total > _MAX_DURATION + (1 if negative else 0):
            raise invalid
        s = s[m.end():]
    return -total if negative else total


def compact_duration_string(d: int) -> str:
    """Format d, dropping redundant trailing ``0m0s`` or ``0s``."""
    s = format_duration(d)
    n = len(s)
    if n >= 6 and s.endswith("h0m0s"):
        return s[: n - 4]
    if n >= 4 and s.endswith("m0s"):
        return s[: n - 2]
    return s


def path(w: int, typ: StatType, prefix: Sequence[str]) -> List[str]:
    """Return the metadata path for statistic typ of window w."""
    return [*prefix, ELEM_LATENCY, ELEM_WINDOW, compact_duration_string(w), str(typ)]


def metadata_name(w: int, typ: StatType) -> str:
    """Return the metadata name for statistic typ of window w."""
    return f"{typ}{_META_NAME}{compact_duration_string(w)}"


@dataclass
class _Slot:
    total: int
    max: int
    min: int
    count: int
    start: int
    end: int


def _set(m: MetadataSink, name: str, value: int) -> None:
    # Sinks may reject names they do not know; such statistics are skipped.
    with contextlib.suppress(Exception):
        m.set_int(name, value)


@dataclass
class _Window:
    size: int
    sf: int
    total: int = 0
    count: int = 0
    slots: List[_Slot] = field(default_factory=list)
    covered: bool = False
    stats: Dict[str, Callable[[str, MetadataSink], None]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.stats = {
            metadata_name(self.size, StatType.AVG): self._set_avg,
            metadata_name(self.size, StatType.MAX): self._set_max,
            metadata_name(self.size, StatType.MIN): self._set_min,
        }

    def add(self, slot: _Slot) -> None:
        if slot.count == 0:
            return
        self.total += slot.total
        self.count += slot.count
        self.slots.append(slot)

    def _set_avg(self, name: str, m: MetadataSink) -> None:
        if self.count == 0:
            return
        avg = _trunc_div(self.total, self.count)
        if avg:
            _set(m, name, avg * self.sf)

    def _set_max(self, name: str, m: MetadataSink) -> None:
        largest = max((s.max for s in self.slots), default=0)
        largest = max(largest, 0)
        if largest:
            _set(m, name, largest)

    def _set_min(self, name: str, m: MetadataSink) -> None:
        if not self.slots:
            return
        smallest = min(s.min for s in self.slots)
        if smallest:
            _set(m, name, smallest)

    def slide(self, ts: int) -> None:
        cutoff = ts - self.size
        start = 0
        for s in self.slots:
            if s.end <= cutoff:
                self.count -= s.count
                self.total -= s.total
                start += 1
        del self.slots[:start]

    def is_covered(self, ts: int) -> bool:
        if self.covered:
            return True
        if not self.slots:
            return False
        if ts - self.slots[0].start >= self.size:
            self.covered = True
            return True
        return False

    def update_meta(self, m: MetadataSink, ts: int, ignore_coverage: bool) -> None:
        if not ignore_coverage and not self.is_covered(ts):
            return
        self.slide(ts)
        for name, setter in self.stats.items():
            setter(name, m)


@dataclass
class Options:
    """Options for a Latency.

    ``avg_precision`` is the precision, in nanoseconds, of the accumulated
    totals used for averages; a coarser precision avoids overflow. Zero
    means one nanosecond. ``compute_func(ts, now)`` computes the latency of
    an update; by default it is ``now - ts``.
    """

    avg_precision: int = 0
    compute_func: Optional[Callable[[int, int], int]] = None


class Latency:
    """Computes and exports latency statistics over a set of time windows."""

    def __init__(
        self,
        window_sizes: Sequence[int],
        opts: Optional[Options] = None,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        precision = NANOSECOND
        if opts is not None and opts.avg_precision != 0:
            precision = opts.avg_precision
        self._scale_factor = precision // NANOSECOND
        self._compute: Callable[[int, int], int] = lambda ts, now: now - ts
        if opts is not None and opts.compute_func is not None:
            self._compute = opts.compute_func
        self._clock = clock
        self._windows = [_Window(size, self._scale_factor) for size in window_sizes]
        self._lock = threading.Lock()
        self._start: Optional[int] = None
        self._total_diff = 0
        self._count = 0
        self._min = 0
        self._max = 0

    def compute(self, ts: int) -> None:
        """Record the latency of an update stamped ts."""
        with self._lock:
            now = self._clock()
            lat = self._compute(ts, now)
            self._total_diff += _trunc_div(lat, self._scale_factor)
            self._count += 1
            if lat > self._max:
                self._max = lat
            if lat < self._min or self._min == 0:
                self._min = lat
            if self._start is None:
                self._start = now

    def update_reset(self, m: MetadataSink) -> None:
        """Fold the latencies of the last interval into all windows and export.

        Meant to be called at a fixed interval of which every window size is
        a multiple. A window exports nothing until it has seen a full window.
        """
        self._update(m, False)

    def update_last(self, m: MetadataSink) -> None:
        """Like update_reset, but export even windows not yet fully covered."""
        self._update(m, True)

    def _update(self, m: MetadataSink, ignore_coverage: bool) -> None:
        with self._lock:
            ts = self._clock()
            if self._count:
                slot = _Slot(
                    total=self._total_diff,
                    max=self._max,
                    min=self._min,
                    count=self._count,
                    start=self._start if self._start is not None else ts,
                    end=ts,
                )
                for window in self._windows:
                    window.add(slot)
                self._total_diff = 0
                self._count = 0
                self._min = 0
                self._max = 0
            for window in self._windows:
                window.update_meta(m, ts, ignore_coverage)
            self._start = ts


def parse_windows(tds: Sequence[str], meta_update_period: int) -> List[int]:
    """Parse window sizes and check each is a multiple of the update period.

    Raises ValueError for an unparsable size or one that is not a multiple.
    """
    durations: List[int] = []
    for td in tds:
        try:
            dur = parse_duration(td)
        except ValueError as err:
            raise ValueError(f"parsing {td}: {err}") from err
        if dur % meta_update_period != 0:
            raise ValueError(
                f"latency stats window {td} is not a multiple of metadata "
                f"update period {format_duration(meta_update_period)}"
            )
        durations.append(dur)
    return durations
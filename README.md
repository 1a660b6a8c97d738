# gnmiutil

Small building blocks, with no dependencies, for programs that collect gNMI
telemetry from network devices.

## Installation

```
pip install gnmiutil
pip install "gnmiutil[test]"   # adds pytest, for running the test suite
```

## Modules

- `gnmiutil.path`: the dataclasses `Path` (`elem`, `element`, `origin`,
  `target`) and `PathElem` (`name`, `key`).
  - `to_strings(p, prefix)` turns a path into flat index strings. Key values
    come in key-sorted order. The deprecated `element` list is used when
    `elem` is empty. With `prefix=True`, a non-empty target and origin come
    first.
  - `complete_path(prefix, path)` joins a prefix and a path. It raises
    `ValueError` when the origin is set in both, or when it is set in the path
    and the prefix also has elements.
  - `sorted_values(m)` returns a mapping's values in key order.
- `gnmiutil.ctree`: `Tree`, a thread-safe tree of leaves addressed by lists of
  names.
  - Methods: `add`, `get`, `get_leaf`, `get_leaf_value`, `children`, `value`,
    `is_branch`, `query`, `walk`, `walk_sorted`, `delete`,
    `delete_conditional` and `walk_deleted`.
  - `query` accepts `"*"` for any name at a level.
  - Visit callbacks receive `(path, leaf, value)`. An exception raised in a
    callback stops the traversal and reaches the caller.
  - A `Leaf` handle always reports the latest value of its node.
    `detached_leaf(val)` makes a leaf that belongs to no tree.
  - `add` raises `TreeError` when a path runs through an existing leaf or ends
    at an existing branch.
- `gnmiutil.match`: `Match` passes updates to registered clients, which are
  hashable objects with an `update(n)` method (the `Client` protocol).
  - Queries may contain `"*"`.
  - `add_query` returns a remove function that is safe to call more than once.
  - `update_once(n, p, updated)` skips clients that are already in the
    `updated` set and adds every client it calls to that set.
- `gnmiutil.latency`: `Latency(window_sizes, opts=None, clock=time.time_ns)`
  keeps avg/max/min latency statistics over sliding time windows.
  - Durations and timestamps are integer nanoseconds.
  - `compute(ts)` records the latency of one update.
  - `update_reset(m)` and `update_last(m)` export the statistics to any
    object with `set_int(name, value)`.
  - `Options` sets the precision of averages and a custom latency function.
  - Helpers: `parse_windows`, `parse_duration`, `format_duration`,
    `compact_duration_string`, `path`, `metadata_name` and the `StatType`
    enum.
- `gnmiutil.metadata`: per-target values under the `meta` root.
  - The values are registered by name in module-wide registries of bools,
    ints and strings. Register more with `register_int_value`,
    `register_str_value`, `register_latency_metadata` or
    `register_server_name_metadata`.
  - `Metadata` holds one target's values. Its methods are `get_*`, `set_*`,
    `add_int`, `reset_entry` and `clear`.
  - Unregistered names raise `InvalidValueError`. Reading a value that is not
    set raises `UnsetValueError`.
- `gnmiutil.errlist`: `ErrorList` collects exceptions and ignores `None`.
  `err()` returns a `MultiError`, or `None` when nothing was collected.
- `gnmiutil.errdiff`: `text`, `substring` and `check` return `""` when an
  error matches what was expected and a description of the mismatch
  otherwise. They are meant for table-driven tests.

## Example

```python
from gnmiutil.ctree import Tree
from gnmiutil.match import Match

tree = Tree()
tree.add(["dev1", "interfaces", "eth0"], "up")
print(tree.get_leaf_value(["dev1", "interfaces", "eth0"]))  # up

class Printer:
    def update(self, n):
        print("got", n)

m = Match()
remove = m.add_query(["dev1", "*"], Printer())
m.update("notification", ["dev1", "interfaces"])  # got notification
remove()
```

## What this package does not do

It does not connect to devices, speak gRPC or manage subscriptions to
targets. It has no command-line tool and no server. It provides data
structures and helpers for a program that does those things.

## Running the tests

```
pytest
```
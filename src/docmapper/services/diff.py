"""
Minimal field-level changes between two document snapshots.

calculate_changes(current, original) walks both documents in parallel and
returns a Diff whose $set/$unset operators, followed by a $pull of null on each
path in Diff.pull, turn the stored original into current (with null holes
pruned from arrays, the way the store keeps them after the $pull pass).

Rules, applied at every level of nesting:
- null values in current are never $set; a path that held anything in original
  (even null) and is now null or absent is $unset.
- a changed mapping or list is diffed recursively when the original one is
  non-empty and of the same kind; otherwise the new value is $set whole.
- list elements are compared by index path (field.0, field.1, ...). An index
  that is $unset leaves a null hole, so its list is registered for the $pull.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

_MISSING = object()


@dataclass
class Diff:
    set: Dict[str, Any] = field(default_factory=dict)
    unset: Dict[str, str] = field(default_factory=dict)
    pull: Dict[str, None] = field(default_factory=dict)

    def __bool__(self):
        return bool(self.set or self.unset or self.pull)

    def update_document(self) -> Dict[str, Dict[str, Any]]:
        """The $set/$unset update, without empty operators."""
        update = {}
        if self.set:
            update["$set"] = self.set
        if self.unset:
            update["$unset"] = self.unset
        return update

    def pull_document(self) -> Dict[str, Dict[str, None]]:
        return {"$pull": dict(self.pull)}


def calculate_changes(current: Mapping, original: Mapping) -> Diff:
    diff = Diff()
    _walk(diff, current, original or {}, "")
    return diff


def _walk(diff: Diff, new, old, prefix: str) -> None:
    for key, value in _items(new):
        if value is None:
            continue

        path = f"{prefix}{key}"
        previous = _lookup(old, key)

        if previous is _MISSING or previous is None:
            diff.set[path] = prune_nulls(value)
        elif not equal(value, previous):
            if _same_container(value, previous) and previous:
                _walk(diff, value, previous, f"{path}.")
            else:
                # Changed shape or an empty original: no partial diff.
                diff.set[path] = prune_nulls(value)

    for key, _ in _items(old):
        if _lookup(new, key) in (_MISSING, None):
            diff.unset[f"{prefix}{key}"] = ""
            if isinstance(old, list):
                diff.pull[prefix[:-1]] = None


def _items(container):
    if isinstance(container, list):
        return enumerate(container)
    return container.items()


def _lookup(container, key):
    if isinstance(container, list):
        return container[key] if key < len(container) else _MISSING
    return container.get(key, _MISSING)


def _same_container(a, b) -> bool:
    return (isinstance(a, Mapping) and isinstance(b, Mapping)) or (
        isinstance(a, list) and isinstance(b, list)
    )


"""
Structural equality that also tells apart values Python considers equal
across types (1 == True == 1.0), since each is stored as a different BSON type.
"""
def equal(a, b) -> bool:
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        return a.keys() == b.keys() and all(equal(a[key], b[key]) for key in a)
    if isinstance(a, list) and isinstance(b, list):
        return len(a) == len(b) and all(equal(x, y) for x, y in zip(a, b))
    return type(a) is type(b) and a == b


"""Drop null list elements and null-valued keys, at any depth."""
def prune_nulls(value):
    if isinstance(value, Mapping):
        return {key: prune_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [prune_nulls(item) for item in value if item is not None]
    return value

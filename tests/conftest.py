"""Shared fixtures for the jsondelta test suite."""

import copy
import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from jsondelta.core import (
    Added, ArrayChange, Modified, Moved, ObjectChange, Removed,
)


def _apply(value, delta):
    """
    Apply a delta to a value, returning a new value.

    Test-only: it exists to check that a delta really turns the left
    document into the right one.
    """
    if delta is None:
        return copy.deepcopy(value)
    if isinstance(delta, Modified):
        return delta.new
    if isinstance(delta, Added):
        return delta.value

    if isinstance(delta, ObjectChange):
        result = dict(value)
        for key, child in delta.changes.items():
            if isinstance(child, Removed):
                del result[key]
            elif isinstance(child, Added):
                result[key] = child.value
            else:
                result[key] = _apply(value[key], child)
        return result

    if isinstance(delta, ArrayChange):
        result = list(value)
        inserts = []

        # Removals and move sources, from the back
        for i in sorted(delta.before, reverse=True):
            item = result.pop(i)
            if isinstance(delta.before[i], Moved):
                inserts.append((delta.before[i].to_index, item))

        for j, child in delta.after.items():
            if isinstance(child, Added):
                inserts.append((j, child.value))

        for j, item in sorted(inserts, key=lambda pair: pair[0]):
            result.insert(j, item)

        for j, child in delta.after.items():
            if not isinstance(child, Added):
                result[j] = _apply(result[j], child)
        return result

    raise TypeError(f"Cannot apply {delta!r}")


@pytest.fixture
def apply_delta():
    """Return the test-only delta applier."""
    return _apply

"""
jsondelta.core — Structural JSON Diff
=====================================

DELTA MODEL
═══════════

§1  VALUES
──────────

A JSON value is one of:

    null      → None
    boolean   → bool
    number    → int / float
    string    → str
    array     → list (tuples are accepted as arrays too)
    object    → dict with str keys (key order is irrelevant)

NaN and the infinities are not JSON numbers.  diff() checks both sides
all the way down and raises TypeError for anything outside this model
before it compares anything.

Python treats True == 1 and False == 0.  JSON does not, so every
equality check in this module goes through json_equal(), which keeps
booleans apart from numbers.


§2  DELTAS
──────────

diff(a, b) returns None when a and b are structurally equal, and
otherwise a Delta describing how to turn a into b:

    Added(value)            key/item only present on the right
    Removed(value)          key/item only present on the left
    Modified(old, new)      scalar change, or a change of type
    Moved(value, to_index)  array item that changed position
    ObjectChange(changes)   key → Delta, for keys that differ
    ArrayChange(before,     before: left index  → Removed | Moved
                after)      after:  right index → Added | Modified | nested

A container delta is never empty: if nothing under it differs there
is no delta at all.


§3  ARRAYS
──────────

Arrays are the only place where the diff has to make choices.
For left array A (length m) and right array B (length n):

    1. Trim the common head and tail.  Matching items at both ends
       are diffed in place (nested deltas only, no insert/remove).

    2. If one side of the remaining middle is empty, the other side
       is a pure insertion or a pure removal.

    3. Otherwise compute the LCS of the two middles:

           L[0][*] = L[*][0] = 0
           L[i][j] = L[i-1][j-1] + 1              if match(Aᵢ, Bⱼ)
                   = max(L[i-1][j], L[i][j-1])    otherwise

       and trace it back into matched index pairs.  LCS pairs are
       diffed recursively under their right index.

    4. Each right item outside the LCS is offered to the left items
       outside the LCS.  If one matches, it becomes a move to the
       right index (any inner change is diffed under that index).

    5. The LCS pairs cut both middles into aligned gaps.  Inside a
       gap, a leftover left container and a leftover right container
       of the same kind at the same offset are paired and diffed
       recursively (match_by_position).  Pairs never cross an LCS
       pair, so kept items stay in order.

    6. What is left over is removed (left) or added (right).

match(x, y) is deep equality, except that two containers of the same
kind compare their object_hash() values when a hash is configured.

"Diffed recursively" describes the result, not the call graph: the
engine queues nested pairs on an explicit work stack, so nesting depth
is limited by memory rather than by the interpreter's recursion limit.

Complexity: O(m·n) match calls for the LCS of the trimmed middles,
plus the cost of diffing matched pairs.  Common prefixes and
suffixes, the usual shape of real edits, cost O(m + n).
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  DELTA TYPES
# ═══════════════════════════════════════════════════════════════════

class Delta:
    """Base class for deltas.  Not instantiated directly."""
    __slots__ = ()


@dataclass(frozen=True, slots=True)
class Added(Delta):
    """A value present only on the right."""
    value: Any


@dataclass(frozen=True, slots=True)
class Removed(Delta):
    """A value present only on the left."""
    value: Any


@dataclass(frozen=True, slots=True)
class Modified(Delta):
    """A scalar replaced by a different scalar, or a change of type."""
    old: Any
    new: Any


@dataclass(frozen=True, slots=True)
class Moved(Delta):
    """
    An array item that now lives at `to_index` in the right array.

    Recorded under the item's left index.  `value` is the moved item
    when DiffOptions.include_value_on_move is set, else "".
    """
    value: Any
    to_index: int


@dataclass(frozen=True, slots=True)
class ObjectChange(Delta):
    """Per-key deltas between two objects."""
    changes: dict[str, Delta]

    def __repr__(self) -> str:
        return f"ObjectChange({self.changes!r})"


@dataclass(frozen=True, slots=True)
class ArrayChange(Delta):
    """
    Per-index deltas between two arrays.

    `before` is keyed by index in the left array and only holds
    Removed and Moved.  `after` is keyed by index in the right array
    and holds everything else.
    """
    before: dict[int, Delta]
    after: dict[int, Delta]

    def __repr__(self) -> str:
        return f"ArrayChange(before={self.before!r}, after={self.after!r})"


# ═══════════════════════════════════════════════════════════════════
#  JSON VALUES
# ═══════════════════════════════════════════════════════════════════

NULL = "null"
BOOLEAN = "boolean"
NUMBER = "number"
STRING = "string"
ARRAY = "array"
OBJECT = "object"


def json_kind(value: Any) -> str:
    """
    Classify a Python value as one of the JSON kinds.

    Raises TypeError for anything that is not a JSON value, including
    NaN / Infinity and dicts with non-string keys.  Only the value
    itself is checked, not what it contains.
    """
    if value is None:
        return NULL
    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return BOOLEAN
    if isinstance(value, int):
        return NUMBER
    if isinstance(value, float):
        if not math.isfinite(value):
            raise TypeError(f"Not a JSON value: {value!r}")
        return NUMBER
    if isinstance(value, str):
        return STRING
    if isinstance(value, (list, tuple)):
        return ARRAY
    if isinstance(value, dict):
        for key in value:
            if not isinstance(key, str):
                raise TypeError(f"Not a JSON object key: {key!r}")
        return OBJECT
    raise TypeError(f"Not a JSON value: {type(value).__name__}")


def check_json(value: Any) -> None:
    """Raise TypeError unless `value` is a JSON value all the way down."""
    stack = [value]
    while stack:
        item = stack.pop()
        kind = json_kind(item)
        if kind == OBJECT:
            stack.extend(item.values())
        elif kind == ARRAY:
            stack.extend(item)


def json_equal(a: Any, b: Any) -> bool:
    """Deep structural equality of two JSON values."""
    stack = [(a, b)]
    while stack:
        x, y = stack.pop()
        if x is y:
            continue

        kind = json_kind(x)
        if kind != json_kind(y):
            return False

        if kind == OBJECT:
            if x.keys() != y.keys():
                return False
            stack.extend((v, y[k]) for k, v in x.items())
        elif kind == ARRAY:
            if len(x) != len(y):
                return False
            stack.extend(zip(x, y))
        elif x != y:
            return False

    return True


# ═══════════════════════════════════════════════════════════════════
#  OPTIONS
# ═══════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DiffOptions:
    """
    Tuning knobs for DiffEngine.

    detect_moves:
        Turn a removed array item and an added item that match into a
        single Moved delta.
    include_value_on_move:
        Keep the moved item in Moved.value instead of "".
    match_by_position:
        A changed container that stayed in place shows up as a nested
        delta instead of a remove plus an add.  Not used together
        with object_hash.
    object_hash:
        callable(item, index) -> hashable.  When set, array items that
        are containers match iff their hashes are equal.
    property_filter:
        callable(key, parent) -> bool.  Object keys for which it
        returns False are ignored on both sides.
    """
    detect_moves: bool = True
    include_value_on_move: bool = False
    match_by_position: bool = True
    object_hash: Optional[Callable[[Any, int], Hashable]] = None
    property_filter: Optional[Callable[[str, dict], bool]] = None


# ═══════════════════════════════════════════════════════════════════
#  DIFF ENGINE
# ═══════════════════════════════════════════════════════════════════

class _PendingObject:
    """An object delta waiting for its nested children."""

    __slots__ = ("sink", "key", "order", "changes")

    def __init__(self, sink: dict, key: Any):
        self.sink = sink
        self.key = key
        self.order: list[str] = []
        self.changes: dict[str, Delta] = {}

    def finish(self) -> None:
        if self.changes:
            self.sink[self.key] = ObjectChange(
                {k: self.changes[k] for k in self.order if k in self.changes}
            )


class _PendingArray:
    """An array delta waiting for its nested children."""

    __slots__ = ("sink", "key", "before", "after")

    def __init__(self, sink: dict, key: Any):
        self.sink = sink
        self.key = key
        self.before: dict[int, Delta] = {}
        self.after: dict[int, Delta] = {}

    def finish(self) -> None:
        if self.before or self.after:
            self.sink[self.key] = ArrayChange(
                dict(sorted(self.before.items())),
                dict(sorted(self.after.items())),
            )


class DiffEngine:
    """
    Computes deltas between JSON values.

    Holds only its (immutable) options, so one engine can be shared
    freely, including across threads.

    Nested values are walked with an explicit work stack, so document
    depth is not bounded by the interpreter's recursion limit.
    """

    def __init__(self, options: Optional[DiffOptions] = None):
        self.options = options or DiffOptions()

    def diff(self, a: Any, b: Any) -> Optional[Delta]:
        """
        Compute the delta turning `a` into `b`.

        Returns None if the two values are structurally equal.
        Raises TypeError if either side contains a non-JSON value.
        """
        check_json(a)
        check_json(b)

        # Work items are (left, right, sink, key) comparisons or pending
        # containers.  A container is pushed below its children, so it
        # is finished only once every nested delta has landed in it.
        result: dict[Any, Delta] = {}
        stack: list = [(a, b, result, None)]

        while stack:
            task = stack.pop()
            if isinstance(task, (_PendingObject, _PendingArray)):
                task.finish()
                continue

            left, right, sink, key = task
            kind = json_kind(left)

            if kind != json_kind(right):
                sink[key] = Modified(left, right)
            elif kind == OBJECT:
                pending = _PendingObject(sink, key)
                stack.append(pending)
                nested = self._diff_objects(left, right, pending)
                stack.extend((left[k], right[k], pending.changes, k)
                             for k in reversed(nested))
            elif kind == ARRAY:
                pending = _PendingArray(sink, key)
                stack.append(pending)
                nested = self._diff_arrays(left, right, pending.before, pending.after)
                stack.extend((left[i], right[j], pending.after, j)
                             for i, j in reversed(nested))
            elif left != right:
                sink[key] = Modified(left, right)

        return result.get(None)

    # ── objects ──────────────────────────────────────────────────

    def _keep(self, key: str, parent: dict) -> bool:
        prop_filter = self.options.property_filter
        return prop_filter is None or prop_filter(key, parent)

    def _diff_objects(self, a: dict, b: dict, pending: _PendingObject) -> list[str]:
        """Record added and removed keys; return the keys to compare."""
        nested: list[str] = []

        for key, left in a.items():
            if not self._keep(key, a):
                continue
            pending.order.append(key)
            if key in b:
                nested.append(key)
            else:
                pending.changes[key] = Removed(left)

        for key, right in b.items():
            if key not in a and self._keep(key, b):
                pending.order.append(key)
                pending.changes[key] = Added(right)

        return nested

    # ── arrays ───────────────────────────────────────────────────

    def _match(self, a: list, b: list, i: int, j: int) -> bool:
        """Whether a[i] and b[j] are the same item (possibly modified)."""
        object_hash = self.options.object_hash
        if object_hash is not None and _same_container(a[i], b[j]):
            return object_hash(a[i], i) == object_hash(b[j], j)
        return json_equal(a[i], b[j])

    def _diff_arrays(self, a: list, b: list, before: dict[int, Delta],
                     after: dict[int, Delta]) -> list[tuple[int, int]]:
        """
        Record removed, added and moved items; return the matched
        (index_in_a, index_in_b) pairs still to compare.
        """
        len_a, len_b = len(a), len(b)
        nested: list[tuple[int, int]] = []

        # Common head
        head = 0
        while head < len_a and head < len_b and self._match(a, b, head, head):
            nested.append((head, head))
            head += 1

        # Common tail
        tail = 0
        while head + tail < len_a and head + tail < len_b:
            i, j = len_a - 1 - tail, len_b - 1 - tail
            if not self._match(a, b, i, j):
                break
            nested.append((i, j))
            tail += 1

        end_a = len_a - tail
        end_b = len_b - tail

        if head == end_a:
            # Pure insertion (or nothing left)
            for j in range(head, end_b):
                after[j] = Added(b[j])
        elif head == end_b:
            # Pure removal
            for i in range(head, end_a):
                before[i] = Removed(a[i])
        else:
            self._diff_middle(a, b, head, end_a, end_b, before, after, nested)

        return nested

    def _diff_middle(self, a: list, b: list, head: int, end_a: int, end_b: int,
                     before: dict[int, Delta], after: dict[int, Delta],
                     nested: list[tuple[int, int]]) -> None:
        """LCS + move detection over a[head:end_a] and b[head:end_b]."""
        pairs = self._lcs(a, b, head, end_a, end_b)
        logger.debug(
            "array middle [%d:%d] vs [%d:%d]: lcs=%d",
            head, end_a, head, end_b, len(pairs),
        )

        matched_a = {i for i, _ in pairs}
        matched_b = {j for _, j in pairs}
        removed = [i for i in range(head, end_a) if i not in matched_a]
        added = [j for j in range(head, end_b) if j not in matched_b]

        nested.extend(pairs)

        if self.options.detect_moves:
            for j in list(added):
                for i in removed:
                    if self._match(a, b, i, j):
                        value = a[i] if self.options.include_value_on_move else ""
                        before[i] = Moved(value, j)
                        nested.append((i, j))
                        removed.remove(i)
                        added.remove(j)
                        logger.debug("array item moved: %d -> %d", i, j)
                        break

        if self.options.match_by_position and self.options.object_hash is None:
            anchors = [(head - 1, head - 1)] + pairs + [(end_a, end_b)]
            for (start_a, start_b), (stop_a, stop_b) in zip(anchors, anchors[1:]):
                for offset in range(min(stop_a - start_a, stop_b - start_b) - 1):
                    i = start_a + 1 + offset
                    j = start_b + 1 + offset
                    if i in removed and j in added and _same_container(a[i], b[j]):
                        nested.append((i, j))
                        removed.remove(i)
                        added.remove(j)

        for i in removed:
            before[i] = Removed(a[i])
        for j in added:
            after[j] = Added(b[j])

    def _lcs(self, a: list, b: list, head: int, end_a: int,
             end_b: int) -> list[tuple[int, int]]:
        """
        Longest common subsequence of a[head:end_a] and b[head:end_b].

        Returns matched (index_in_a, index_in_b) pairs in increasing
        order, as absolute indices.
        """
        m = end_a - head
        n = end_b - head

        # Precompute matches; _match can be a deep comparison
        matches = [
            [self._match(a, b, head + i, head + j) for j in range(n)]
            for i in range(m)
        ]

        # Full table (needed for trace-back)
        table = [[0] * (n + 1) for _ in range(m + 1)]
        for i in range(1, m + 1):
            row, prev = table[i], table[i - 1]
            for j in range(1, n + 1):
                if matches[i - 1][j - 1]:
                    row[j] = prev[j - 1] + 1
                else:
                    row[j] = max(prev[j], row[j - 1])

        # Trace back
        pairs: list[tuple[int, int]] = []
        i, j = m, n
        while i > 0 and j > 0:
            if matches[i - 1][j - 1]:
                pairs.append((head + i - 1, head + j - 1))
                i -= 1
                j -= 1
            elif table[i][j - 1] > table[i - 1][j]:
                j -= 1
            else:
                i -= 1

        pairs.reverse()
        return pairs


def _same_container(a: Any, b: Any) -> bool:
    """Both objects, or both arrays."""
    kind = json_kind(a)
    return kind in (OBJECT, ARRAY) and kind == json_kind(b)


def diff(a: Any, b: Any, options: Optional[DiffOptions] = None) -> Optional[Delta]:
    """
    Structural delta between two JSON values, or None if they are equal.

        diff({}, {"x": 1})      → ObjectChange({"x": Added(1)})
        diff("a", 1)            → Modified("a", 1)
        diff([1, 2, 3], [1, 3, 2])
            → ArrayChange(before={2: Moved("", 1)}, after={})
    """
    return DiffEngine(options).diff(a, b)

"""
jsondelta.formats — Convert between JSON text, deltas and their encodings.

Supported conversions:
    • JSON text → Python JSON value (strict: no NaN / Infinity)
    • Delta ↔ wire format (the jsondiffpatch delta format)
    • Delta → JSON text, Delta → human-readable text listing

Wire format:

    Added(v)                  [v]
    Modified(old, new)        [old, new]
    Removed(v)                [v, 0, 0]
    Moved(v, j)               [v, j, 3]          (v is "" unless kept)
    ObjectChange              {"key": <delta>, ...}
    ArrayChange               {"_t": "a", "j": <delta>, "_i": <delta>}

In an array delta, plain keys are indexes in the right array and
underscore keys are indexes in the left array.
"""

import json
import logging
from typing import Any, Optional

from .core import (
    Added, ArrayChange, Delta, DiffEngine, DiffOptions, Modified, Moved,
    ObjectChange, Removed,
)
from .errors import DeltaFormatError, DocumentTooDeepError, JsonParseError

logger = logging.getLogger(__name__)

# Third element of a three-element wire array
ARRAY_MOVE = 3
TEXT_DIFF = 2

ARRAY_MARKER = "_t"

_MAX_ARRAY_INDEX = 2 ** 32 - 2


# ═══════════════════════════════════════════════════════════════════
#  JSON TEXT → VALUES
# ═══════════════════════════════════════════════════════════════════

def parse_document(text: str, name: str = "document") -> Any:
    """
    Parse a JSON document into plain Python values.

    NaN and Infinity are rejected: they are not JSON.
    Raises JsonParseError, naming the document, on malformed input.
    """

    def reject_constant(token: str) -> Any:
        raise JsonParseError(name, f"{token} is not a valid JSON value")

    try:
        return json.loads(text, parse_constant=reject_constant)
    except json.JSONDecodeError as e:
        raise JsonParseError(name, e.msg, e.lineno, e.colno) from e
    except RecursionError:
        raise DocumentTooDeepError(name) from None


# ═══════════════════════════════════════════════════════════════════
#  DELTA ↔ WIRE FORMAT
# ═══════════════════════════════════════════════════════════════════

def _is_index_key(key: str) -> bool:
    """Whether JavaScript would treat `key` as an array index."""
    if not key.isdigit() or not key.isascii():
        return False
    if len(key) > 1 and key[0] == "0":
        return False
    return int(key) <= _MAX_ARRAY_INDEX


def _js_key_order(keys) -> list:
    """
    Order keys the way JSON.stringify emits them: index-like keys
    ascending, then the remaining keys in insertion order.
    """
    keys = list(keys)
    indexes = sorted((k for k in keys if _is_index_key(k)), key=int)
    return indexes + [k for k in keys if not _is_index_key(k)]


def to_wire(delta: Delta) -> Any:
    """Encode a delta in the jsondiffpatch wire format."""
    try:
        return _encode(delta)
    except RecursionError:
        raise DocumentTooDeepError("delta") from None


def _encode(delta: Delta) -> Any:
    if isinstance(delta, Added):
        return [delta.value]
    if isinstance(delta, Modified):
        return [delta.old, delta.new]
    if isinstance(delta, Removed):
        return [delta.value, 0, 0]
    if isinstance(delta, Moved):
        return [delta.value, delta.to_index, ARRAY_MOVE]
    if isinstance(delta, ObjectChange):
        wire: dict[str, Any] = {}
        for key in _js_key_order(delta.changes):
            wire[key] = _encode(delta.changes[key])
        return wire
    if isinstance(delta, ArrayChange):
        wire = {}
        for j in sorted(delta.after):
            wire[str(j)] = _encode(delta.after[j])
        wire[ARRAY_MARKER] = "a"
        for i in sorted(delta.before):
            wire[f"_{i}"] = _encode(delta.before[i])
        return wire
    raise TypeError(f"Unknown Delta type: {type(delta)}")


def from_wire(obj: Any) -> Optional[Delta]:
    """
    Decode a wire-format delta.

    Inverse of to_wire.  The empty object `{}` (what the CLI prints
    for identical documents) decodes to None.
    """
    if obj == {}:
        return None
    try:
        return _decode(obj, ())
    except RecursionError:
        raise DocumentTooDeepError("delta") from None


def _decode(obj: Any, path: tuple) -> Delta:
    if isinstance(obj, list):
        return _decode_leaf(obj, path)

    if not isinstance(obj, dict):
        raise DeltaFormatError(path, f"expected array or object, got {type(obj).__name__}")
    if not obj:
        raise DeltaFormatError(path, "empty delta")

    if obj.get(ARRAY_MARKER) == "a":
        return _decode_array(obj, path)

    changes: dict[str, Delta] = {}
    for key, value in obj.items():
        child = _decode(value, path + (key,))
        if isinstance(child, Moved):
            raise DeltaFormatError(path + (key,), "move outside of an array")
        changes[key] = child
    return ObjectChange(changes)


def _decode_leaf(obj: list, path: tuple) -> Delta:
    if len(obj) == 1:
        return Added(obj[0])
    if len(obj) == 2:
        return Modified(obj[0], obj[1])
    if len(obj) == 3:
        value, second, kind = obj
        if type(kind) is int and type(second) is int:
            if kind == 0 and second == 0:
                return Removed(value)
            if kind == ARRAY_MOVE and second >= 0:
                return Moved(value, second)
            if kind == TEXT_DIFF:
                raise DeltaFormatError(path, "text diffs are not supported")
    raise DeltaFormatError(path, f"unrecognized delta {obj!r}")


def _parse_index(key: str, path: tuple) -> int:
    if not _is_index_key(key):
        raise DeltaFormatError(path, f"invalid array index {key!r}")
    return int(key)


def _decode_array(obj: dict, path: tuple) -> ArrayChange:
    before: dict[int, Delta] = {}
    after: dict[int, Delta] = {}

    for key, value in obj.items():
        if key == ARRAY_MARKER:
            continue
        child_path = path + (key,)
        child = _decode(value, child_path)

        if key.startswith("_"):
            if not isinstance(child, (Removed, Moved)):
                raise DeltaFormatError(child_path, "left index holds neither a removal nor a move")
            before[_parse_index(key[1:], child_path)] = child
        else:
            if isinstance(child, (Removed, Moved)):
                raise DeltaFormatError(child_path, "right index holds a removal or a move")
            after[_parse_index(key, child_path)] = child

    return ArrayChange(before, after)


# ═══════════════════════════════════════════════════════════════════
#  DELTA → TEXT
# ═══════════════════════════════════════════════════════════════════

def to_json(delta: Optional[Delta], indent: Optional[int] = 2) -> str:
    """
    Serialize a delta as JSON text.

    No delta serializes as "{}".  indent=None gives compact output.
    """
    if delta is None:
        return "{}"
    separators = (",", ":") if indent is None else (",", ": ")
    wire = to_wire(delta)
    try:
        return json.dumps(wire, indent=indent,
                          separators=separators, ensure_ascii=False)
    except RecursionError:
        raise DocumentTooDeepError("delta") from None


def _pointer(path: tuple) -> str:
    """RFC 6901 JSON pointer for a path of keys and indexes."""
    if not path:
        return "(root)"
    return "".join(
        "/" + str(p).replace("~", "~0").replace("/", "~1") for p in path
    )


def _dump(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def to_text(delta: Optional[Delta]) -> str:
    """
    Render a delta as one line per change:

        added   /tags/2: "new"
        removed /legacy: true
        changed /port: 8080 -> 9090
        moved   /items/0 -> /items/3
    """
    lines: list[str] = []
    if delta is not None:
        try:
            _render(delta, (), lines)
        except RecursionError:
            raise DocumentTooDeepError("delta") from None
    return "\n".join(lines)


def _render(delta: Delta, path: tuple, lines: list[str]) -> None:
    where = _pointer(path)

    if isinstance(delta, Added):
        lines.append(f"added   {where}: {_dump(delta.value)}")
    elif isinstance(delta, Removed):
        lines.append(f"removed {where}: {_dump(delta.value)}")
    elif isinstance(delta, Modified):
        lines.append(f"changed {where}: {_dump(delta.old)} -> {_dump(delta.new)}")
    elif isinstance(delta, Moved):
        target = _pointer(path[:-1] + (delta.to_index,))
        lines.append(f"moved   {where} -> {target}")
    elif isinstance(delta, ObjectChange):
        for key in _js_key_order(delta.changes):
            _render(delta.changes[key], path + (key,), lines)
    elif isinstance(delta, ArrayChange):
        # Left indexes first, then right indexes
        for i in sorted(delta.before):
            _render(delta.before[i], path + (i,), lines)
        for j in sorted(delta.after):
            _render(delta.after[j], path + (j,), lines)
    else:
        raise TypeError(f"Unknown Delta type: {type(delta)}")


# ═══════════════════════════════════════════════════════════════════
#  BRIDGE
# ═══════════════════════════════════════════════════════════════════

def diff_documents(left: str, right: str,
                   options: Optional[DiffOptions] = None) -> Optional[Delta]:
    """
    Parse two JSON documents and diff them.

    Both documents are parsed before any diffing happens, so a
    malformed second document fails without any work on the first.
    """
    left_value = parse_document(left, "first document")
    right_value = parse_document(right, "second document")
    delta = DiffEngine(options).diff(left_value, right_value)
    logger.debug("delta computed: %s", "none" if delta is None else type(delta).__name__)
    return delta


def diff_json(left: str, right: str, options: Optional[DiffOptions] = None,
              indent: Optional[int] = 2) -> str:
    """
    Diff two JSON documents given as text and return the delta as
    JSON text ("{}" when they are equal).
    """
    return to_json(diff_documents(left, right, options), indent=indent)

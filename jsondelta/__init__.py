"""
Structural JSON Diff
====================

Compute the minimal delta between two JSON documents.

    diff({}, {"x": 1})          → ObjectChange({"x": Added(1)})
    diff("a", 1)                → Modified("a", 1)
    diff([1, 2, 3], [1, 3, 2])  → ArrayChange(before={2: Moved("", 1)}, after={})

Objects are compared key by key.  Arrays are compared with a longest
common subsequence, and items that only changed position are reported
as moves instead of a removal plus an insertion.

Deltas encode to the jsondiffpatch delta format:

    diff_json('{"a": 1}', '{"a": 2}', indent=None)  → '{"a":[1,2]}'
"""

from jsondelta.core import (
    # Deltas
    Delta,
    Added,
    Removed,
    Modified,
    Moved,
    ObjectChange,
    ArrayChange,
    # Engine
    DiffEngine,
    DiffOptions,
    diff,
    json_equal,
)
from jsondelta.errors import (
    JsonDeltaError, ArgumentCountError, JsonParseError, DeltaFormatError,
    DocumentTooDeepError,
)
from jsondelta.formats import (
    parse_document, to_wire, from_wire, to_json, to_text,
    diff_documents, diff_json,
)

__version__ = "0.1.0"
__all__ = [
    "Delta", "Added", "Removed", "Modified", "Moved",
    "ObjectChange", "ArrayChange",
    "DiffEngine", "DiffOptions", "diff", "json_equal",
    "JsonDeltaError", "ArgumentCountError", "JsonParseError", "DeltaFormatError",
    "DocumentTooDeepError",
    "parse_document", "to_wire", "from_wire", "to_json", "to_text",
    "diff_documents", "diff_json",
]

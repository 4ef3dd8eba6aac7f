"""
jsondelta.errors — Exceptions raised by jsondelta.

    JsonDeltaError
    ├── ArgumentCountError          wrong number of CLI documents
    ├── JsonParseError (ValueError) malformed JSON input
    ├── DeltaFormatError (ValueError) malformed delta document
    └── DocumentTooDeepError (ValueError) nesting too deep to handle
"""

from typing import Optional


class JsonDeltaError(Exception):
    """Base class for all jsondelta errors."""


class ArgumentCountError(JsonDeltaError):
    """The CLI was not given exactly two documents."""

    def __init__(self, count: int, expected: int = 2):
        self.count = count
        self.expected = expected
        super().__init__(
            f"Expected exactly {expected} JSON arguments, got {count}."
        )


class JsonParseError(JsonDeltaError, ValueError):
    """A document is not valid JSON."""

    def __init__(self, name: str, msg: str,
                 line: Optional[int] = None, column: Optional[int] = None):
        self.name = name
        self.msg = msg
        self.line = line
        self.column = column
        where = f" (line {line}, column {column})" if line is not None else ""
        super().__init__(f"Invalid JSON in {name}{where}: {msg}")


class DeltaFormatError(JsonDeltaError, ValueError):
    """A wire-format delta could not be decoded."""

    def __init__(self, path: tuple, msg: str):
        self.path = path
        path_str = "/".join(str(p) for p in path) or "(root)"
        super().__init__(f"Malformed delta at {path_str}: {msg}")


class DocumentTooDeepError(JsonDeltaError, ValueError):
    """A document or delta is nested too deeply to parse or encode."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"{name} is nested too deeply")

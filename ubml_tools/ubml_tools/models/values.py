# Copyright 2025 TIER IV, inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Classification of decoded YAML values and structural paths.

Every tree walk in this package dispatches on :class:`ValueKind`, so a value
the walkers do not know about fails loudly instead of being skipped.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Iterator, Tuple, Union

PathStep = Union[str, int]
StructuralPath = Tuple[PathStep, ...]


class ValueKind(Enum):
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> ValueKind:
    """Classify a decoded value. Raises TypeError for anything outside the YAML data model."""
    if value is None:
        return ValueKind.NULL
    # bool before number: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.SEQUENCE
    if isinstance(value, dict):
        return ValueKind.MAPPING
    raise TypeError(f"Unsupported value type in document tree: {type(value).__name__}")


def _escape(step: PathStep) -> str:
    return str(step).replace("~", "~0").replace("/", "~1")


def _unescape(token: str) -> str:
    return token.replace("~1", "/").replace("~0", "~")


def to_pointer(path: StructuralPath) -> str:
    """Render a structural path as a JSON pointer (``""`` for the root)."""
    return "".join("/" + _escape(step) for step in path)


def parse_pointer(pointer: str) -> StructuralPath:
    """Split a JSON pointer into string steps. ``""`` and ``"/"`` both denote the root."""
    if pointer in ("", "/"):
        return ()
    if not pointer.startswith("/"):
        raise ValueError(f"JSON pointer must start with '/': {pointer!r}")
    return tuple(_unescape(token) for token in pointer[1:].split("/"))


def iter_leaves(value: Any, path: StructuralPath = ()) -> Iterator[Tuple[StructuralPath, Any]]:
    """Yield ``(path, value)`` for every scalar in the tree, in insertion order.

    Empty containers count as leaves.
    """
    kind = kind_of(value)
    if kind is ValueKind.MAPPING:
        if not value:
            yield path, value
        for key, child in value.items():
            yield from iter_leaves(child, path + (key,))
    elif kind is ValueKind.SEQUENCE:
        if not value:
            yield path, value
        for index, child in enumerate(value):
            yield from iter_leaves(child, path + (index,))
    elif kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
        yield path, value
    else:
        raise AssertionError(f"unhandled value kind: {kind}")

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

"""Map structural paths inside a YAML document back to line/column positions."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

import yaml

from ..models.values import PathStep, StructuralPath, parse_pointer, to_pointer


@dataclass(frozen=True)
class SourceLocation:
    file_path: Optional[Path] = None
    yaml_path: Optional[str] = None
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based
    offset: Optional[int] = None  # character offset into the decoded text


def offset_to_line_column(text: str, offset: int) -> Tuple[int, int]:
    """Convert a character offset to a 1-based ``(line, column)`` pair."""
    offset = max(0, min(offset, len(text)))
    line = text.count("\n", 0, offset) + 1
    line_start = text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1


def _sequence_index(step: PathStep, length: int) -> Optional[int]:
    if isinstance(step, bool):
        return None
    if isinstance(step, int):
        index = step
    elif isinstance(step, str) and step.isascii() and step.isdigit():
        index = int(step)
    else:
        return None
    if 0 <= index < length:
        return index
    return None


class SourceLocationResolver:
    """Resolve structural paths against a PyYAML node tree.

    The node tree comes from ``yaml.compose`` over ``text``; every node carries
    ``start_mark.index``, which is what gets converted to a line and column.
    """

    def __init__(self, text: str, root_node: Optional[yaml.Node], file_path: Optional[Path] = None):
        self._text = text
        self._root = root_node
        self._file_path = file_path

    def find_node(self, path: Union[StructuralPath, str]) -> Optional[yaml.Node]:
        if isinstance(path, str):
            path = parse_pointer(path)

        node = self._root
        if node is None:
            return None

        for step in path:
            if isinstance(node, yaml.MappingNode):
                wanted = str(step)
                # last pair wins, as in construction: merged "<<" pairs precede local ones
                for key_node, value_node in reversed(node.value):
                    if isinstance(key_node, yaml.ScalarNode) and key_node.value == wanted:
                        node = value_node
                        break
                else:
                    return None
            elif isinstance(node, yaml.SequenceNode):
                index = _sequence_index(step, len(node.value))
                if index is None:
                    return None
                node = node.value[index]
            else:
                return None
        return node

    def resolve(self, path: Union[StructuralPath, str]) -> Optional[SourceLocation]:
        """Return the location of the node at ``path``, or None when the path does not exist."""
        node = self.find_node(path)
        if node is None:
            return None

        offset = node.start_mark.index
        line, column = offset_to_line_column(self._text, offset)
        yaml_path = path if isinstance(path, str) else to_pointer(path)
        return SourceLocation(
            file_path=self._file_path,
            yaml_path=yaml_path,
            line=line,
            column=column,
            offset=offset,
        )


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

from __future__ import annotations

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Optional, Tuple, Union

import yaml

from ..file_io.source_location import SourceLocation, SourceLocationResolver
from .values import StructuralPath


@dataclass(frozen=True)
class ParseIssue:
    """A parser-level problem with its position already resolved."""

    message: str
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based
    code: str = "yaml/parse-error"


@dataclass(frozen=True, eq=False)
class ParsedDocument:
    """One decoded document together with the node tree it was decoded from.

    ``content`` is what ``yaml.safe_load`` would return (``{}`` for an empty
    file); ``root_node`` is the ``yaml.compose`` tree of the same text and is
    what positions are looked up in.
    """

    source: str
    content: Any
    root_node: Optional[yaml.Node] = None
    filename: Optional[str] = None
    file_path: Optional[Path] = None
    document_type: Optional[str] = None
    errors: Tuple[ParseIssue, ...] = ()
    warnings: Tuple[ParseIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def version(self) -> Any:
        if isinstance(self.content, dict):
            return self.content.get("ubml")
        return None

    @cached_property
    def locator(self) -> SourceLocationResolver:
        return SourceLocationResolver(self.source, self.root_node, self.file_path)

    def locate(self, path: Union[StructuralPath, str]) -> Optional[SourceLocation]:
        return self.locator.resolve(path)

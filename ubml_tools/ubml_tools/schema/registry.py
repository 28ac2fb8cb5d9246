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

"""Merged namespace of named schema definitions."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional

logger = logging.getLogger(__name__)


class SourceKind(Enum):
    """Kind of schema source file. Declaration order is merge priority."""

    DEFS = "defs"
    TYPES = "types"
    DOCUMENTS = "documents"
    FRAGMENTS = "fragments"

    @property
    def priority(self) -> int:
        return list(SourceKind).index(self)


@dataclass(frozen=True)
class DefinitionSource:
    """One schema file: its name (e.g. ``defs/refs.defs.yaml``), kind and decoded content."""

    name: str
    kind: SourceKind
    schema: Dict[str, Any] = field(default_factory=dict)

    @property
    def definitions(self) -> Dict[str, Any]:
        defs = self.schema.get("$defs")
        return defs if isinstance(defs, dict) else {}

    @property
    def stem(self) -> str:
        """File name without directory and schema suffixes (``process.document.yaml`` -> ``process``)."""
        base = self.name.rsplit("/", 1)[-1]
        return base.split(".", 1)[0]


@dataclass(frozen=True)
class RegisteredDefinition:
    name: str
    definition: Any
    source: str


class DefinitionRegistry:
    """Write-once ``name -> definition`` table.

    The first source to register a name keeps it; later registrations of the
    same name are ignored, so shared definitions cannot be shadowed by the
    per-type files that are merged after them.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, RegisteredDefinition] = {}

    @classmethod
    def merge(cls, sources: Iterable[DefinitionSource]) -> "DefinitionRegistry":
        registry = cls()
        # stable sort keeps caller order within one kind
        for source in sorted(sources, key=lambda s: s.kind.priority):
            for name, definition in source.definitions.items():
                registry.register(name, definition, source.name)
        logger.debug(f"Definition registry built with {len(registry)} definitions")
        return registry

    def register(self, name: str, definition: Any, source: str) -> bool:
        existing = self._entries.get(name)
        if existing is not None:
            logger.debug(f"Definition '{name}' from {source} ignored, already provided by {existing.source}")
            return False
        self._entries[name] = RegisteredDefinition(name, definition, source)
        return True

    def get(self, name: str) -> Optional[RegisteredDefinition]:
        return self._entries.get(name)

    def names(self) -> List[str]:
        return sorted(self._entries)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[RegisteredDefinition]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

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

"""Inline `$ref` graphs of the schema corpus into self-contained schemas.

Resolution works on plain decoded YAML values. A `$ref` is looked up by its
definition name in a merged :class:`DefinitionRegistry`, regardless of which
file the address points at; the file part only selects the address grammar.

Self-referential definitions (a step whose loop body contains steps) are cut
at the point of re-entry with an opaque ``{"type": "object"}``.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

from ..exceptions import ConflictingDefinitionError, UnresolvedReferenceError
from ..models.values import ValueKind, kind_of
from .registry import DefinitionRegistry, DefinitionSource, SourceKind

logger = logging.getLogger(__name__)

JSON_SCHEMA_DIALECT = "https://json-schema.org/draft/2020-12/schema"

CYCLE_PLACEHOLDER: Dict[str, Any] = {"type": "object"}

EXTENSION_PREFIX = "x-"

# same file, external shared definitions, external per-type definitions
_REF_PATTERNS = (
    re.compile(r"^#/\$defs/(\w+)$"),
    re.compile(r"\.(?:defs|schema|document|fragment)\.yaml#/\$defs/(\w+)$"),
    re.compile(r"\.types\.yaml#/\$defs/(\w+)$"),
)

# keys removed from a document schema before it is handed to the engine
_DOCUMENT_ONLY_KEYS = ("$defs", "$id", "$schema", "title")


def definition_name_from_ref(ref: str) -> Optional[str]:
    """Extract the definition name from a `$ref` address, or None if no grammar matches."""
    for pattern in _REF_PATTERNS:
        m = pattern.search(ref)
        if m:
            return m.group(1)
    return None


def strip_extensions(node: Any) -> Any:
    """Return a copy of ``node`` without any ``x-`` keys, at every depth."""
    kind = kind_of(node)
    if kind is ValueKind.MAPPING:
        return {
            key: strip_extensions(value)
            for key, value in node.items()
            if not (isinstance(key, str) and key.startswith(EXTENSION_PREFIX))
        }
    if kind is ValueKind.SEQUENCE:
        return [strip_extensions(item) for item in node]
    if kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
        return node
    raise AssertionError(f"unhandled value kind: {kind}")


def fingerprint(schema: Any) -> str:
    """Whitespace-normalized JSON text of ``schema``, used to compare emissions.

    Key order is kept: two schemas listing the same properties in a different
    order are different emissions.
    """
    text = json.dumps(schema, default=str)
    return " ".join(text.split())


def pascal_case(name: str) -> str:
    """``process`` -> ``Process``, ``value-stream`` -> ``ValueStream``."""
    return "".join(part[:1].upper() + part[1:] for part in re.split(r"[-_\s]+", name) if part)


class SchemaResolver:
    """Inline references against a definition registry."""

    def __init__(self, registry: DefinitionRegistry):
        self._registry = registry

    @property
    def registry(self) -> DefinitionRegistry:
        return self._registry

    def resolve(self, node: Any, ancestry: FrozenSet[str] = frozenset()) -> Any:
        """Return a copy of ``node`` with every `$ref` replaced by its target.

        ``ancestry`` holds the definition names being expanded on the current
        recursion path. A reference back into it yields :data:`CYCLE_PLACEHOLDER`.

        Raises:
            UnresolvedReferenceError: If an address matches no grammar or names
                an unknown definition.
        """
        kind = kind_of(node)
        if kind is ValueKind.MAPPING:
            ref = node.get("$ref")
            if isinstance(ref, str):
                return self._resolve_ref(ref, node, ancestry)
            return {key: self.resolve(value, ancestry) for key, value in node.items()}
        if kind is ValueKind.SEQUENCE:
            return [self.resolve(item, ancestry) for item in node]
        if kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
            return node
        raise AssertionError(f"unhandled value kind: {kind}")

    def _resolve_ref(self, ref: str, node: Dict[str, Any], ancestry: FrozenSet[str]) -> Any:
        name = definition_name_from_ref(ref)
        if name is None:
            raise UnresolvedReferenceError(
                ref,
                self._registry.names(),
                reason="expected #/$defs/Name or <file>.yaml#/$defs/Name",
            )

        entry = self._registry.get(name)
        if entry is None:
            raise UnresolvedReferenceError(ref, self._registry.names(), reason=f"definition '{name}' not found")

        if name in ancestry:
            logger.debug(f"Cycle on '{name}' cut with placeholder")
            return dict(CYCLE_PLACEHOLDER)

        resolved = self.resolve(entry.definition, ancestry | {name})

        siblings = {key: value for key, value in node.items() if key != "$ref"}
        if not siblings:
            return resolved
        merged = dict(resolved) if isinstance(resolved, dict) else {}
        merged.update(self.resolve(siblings, ancestry))
        return merged

    def _engine_ready(self, schema: Any) -> Dict[str, Any]:
        stripped = strip_extensions(schema)
        if not isinstance(stripped, dict):
            stripped = {}
        return {"$schema": JSON_SCHEMA_DIALECT, **stripped}

    def resolve_definition(self, name: str, definition: Any = None) -> Dict[str, Any]:
        """Resolve one named definition into a standalone schema.

        ``definition`` defaults to the registered one; pass a source's own copy
        to resolve a definition that lost the registry merge.
        """
        if definition is None:
            entry = self._registry.get(name)
            if entry is None:
                raise UnresolvedReferenceError(
                    f"#/$defs/{name}", self._registry.names(), reason="definition not found"
                )
            definition = entry.definition
        return self._engine_ready(self.resolve(definition, frozenset({name})))

    def resolve_document_schema(self, schema: Dict[str, Any]) -> Dict[str, Any]:
        """Resolve a whole document schema into a standalone schema."""
        body = {key: value for key, value in schema.items() if key not in _DOCUMENT_ONLY_KEYS}
        return self._engine_ready(self.resolve(body))


@dataclass(frozen=True)
class ResolvedType:
    name: str
    schema: Dict[str, Any]
    source: str

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.schema)


class EmissionContext:
    """Tracks resolved types emitted during one pipeline run."""

    def __init__(self) -> None:
        self._emitted: Dict[str, ResolvedType] = {}

    def emit(self, name: str, schema: Dict[str, Any], source: str) -> bool:
        """Register a resolved type.

        Returns True the first time ``name`` is seen and False for an identical
        re-emission.

        Raises:
            ConflictingDefinitionError: If ``name`` was emitted before with
                different content.
        """
        candidate = ResolvedType(name, schema, source)
        existing = self._emitted.get(name)
        if existing is None:
            self._emitted[name] = candidate
            return True
        if existing.fingerprint != candidate.fingerprint:
            raise ConflictingDefinitionError(name, existing.source, source)
        logger.debug(f"Type {name} from {source} identical to emission from {existing.source}")
        return False

    def get(self, name: str) -> Optional[ResolvedType]:
        return self._emitted.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._emitted

    def __len__(self) -> int:
        return len(self._emitted)

    def types(self) -> List[ResolvedType]:
        return list(self._emitted.values())


def document_type_name(source: DefinitionSource) -> str:
    return pascal_case(source.stem) + "Document"


def resolve_all(
    resolver: SchemaResolver,
    sources: Iterable[DefinitionSource],
    context: EmissionContext,
) -> List[ResolvedType]:
    """Resolve every definition and document schema of ``sources`` into ``context``.

    Reference-type definitions (``*Ref``) are identifier patterns, not types,
    and are skipped. Returns the types newly emitted by this call.
    """
    emitted: List[ResolvedType] = []
    sources = sorted(sources, key=lambda s: s.kind.priority)

    for source in sources:
        if source.kind not in (SourceKind.DEFS, SourceKind.TYPES):
            continue
        for name, definition in source.definitions.items():
            if name.endswith("Ref"):
                continue
            schema = resolver.resolve_definition(name, definition)
            if context.emit(name, schema, source.name):
                emitted.append(context.get(name))

    for source in sources:
        if source.kind is not SourceKind.DOCUMENTS:
            continue
        name = document_type_name(source)
        schema = resolver.resolve_document_schema(source.schema)
        if context.emit(name, schema, source.name):
            emitted.append(context.get(name))

    logger.info(f"Resolved {len(emitted)} schema types")
    return emitted

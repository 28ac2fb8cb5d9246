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

"""Identifier families and reference-carrying fields derived from the schema corpus.

A *reference-type definition* is a ``$defs`` entry whose name ends in ``Ref``
and which carries a ``pattern``, e.g.::

    ActorRef:
      type: string
      pattern: "^AC\\\\d{5,}$"
      x-ubml:
        prefix: AC
        humanName: Actor ID
        shortDescription: Reference to an actor
        errorHint: "Use AC followed by 5 digits, e.g. AC00001"
        category: core

A *reference field* is any property, in any schema file, whose value is a
``$ref`` to such a definition (directly, as ``items``, or inside
``oneOf``/``anyOf``).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

from ..exceptions import MissingMetadataError
from ..models.values import ValueKind, kind_of
from .id_utils import IdConfig, build_id_pattern, format_id, next_id, split_id
from .registry import DefinitionRegistry, DefinitionSource, SourceKind
from .resolver import definition_name_from_ref

logger = logging.getLogger(__name__)

REQUIRED_REF_METADATA = ("prefix", "humanName", "shortDescription", "errorHint", "category")

_UNION_KEYWORDS = ("oneOf", "anyOf")


@dataclass(frozen=True)
class IdPrefixInfo:
    prefix: str
    element_type: str
    definition: str
    pattern: str
    human_name: str
    short_description: str
    error_hint: str
    category: str
    category_display_name: str


@dataclass(frozen=True)
class CategoryInfo:
    key: str
    display_name: str
    order: int


def element_type_from_definition(name: str) -> str:
    """``ActorRef`` -> ``actor``, ``KpiRef`` -> ``kpi``."""
    base = name[: -len("Ref")] if name.endswith("Ref") else name
    return base[:1].lower() + base[1:]


def is_reference_type_definition(name: str, definition: Any) -> bool:
    return name.endswith("Ref") and isinstance(definition, dict) and "pattern" in definition


def _iter_mappings(node: Any) -> Iterator[Dict[str, Any]]:
    """Yield every mapping in a schema tree, skipping ``x-`` extension subtrees."""
    kind = kind_of(node)
    if kind is ValueKind.MAPPING:
        yield node
        for key, value in node.items():
            if isinstance(key, str) and key.startswith("x-"):
                continue
            yield from _iter_mappings(value)
    elif kind is ValueKind.SEQUENCE:
        for item in node:
            yield from _iter_mappings(item)
    elif kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
        return
    else:
        raise AssertionError(f"unhandled value kind: {kind}")


def _direct_refs(schema: Any) -> List[str]:
    """`$ref` strings of a schema and of its immediate union alternatives."""
    if not isinstance(schema, dict):
        return []
    refs = []
    if isinstance(schema.get("$ref"), str):
        refs.append(schema["$ref"])
    for keyword in _UNION_KEYWORDS:
        alternatives = schema.get(keyword)
        if isinstance(alternatives, list):
            refs.extend(alt["$ref"] for alt in alternatives if isinstance(alt, dict) and isinstance(alt.get("$ref"), str))
    return refs


def _property_refs(prop_schema: Any) -> List[str]:
    refs = _direct_refs(prop_schema)
    if isinstance(prop_schema, dict):
        refs.extend(_direct_refs(prop_schema.get("items")))
    return refs


class IdCatalog:
    """Everything derived from the schema corpus that document validation needs.

    Build with :meth:`from_registry`; instances are not modified afterwards.
    """

    def __init__(
        self,
        prefixes: Dict[str, IdPrefixInfo],
        reference_fields: Iterable[str],
        id_config: IdConfig = IdConfig(),
        document_types: Iterable[str] = (),
        detection_rules: Optional[Dict[str, Tuple[str, ...]]] = None,
        category_table: Iterable[CategoryInfo] = (),
    ):
        self.prefixes: Dict[str, IdPrefixInfo] = dict(prefixes)
        self.reference_fields = frozenset(reference_fields)
        self.id_config = id_config
        self.document_types: Tuple[str, ...] = tuple(document_types)
        self.detection_rules: Dict[str, Tuple[str, ...]] = dict(detection_rules or {})
        self.category_table: Tuple[CategoryInfo, ...] = tuple(sorted(category_table, key=lambda c: c.order))
        self.id_pattern = build_id_pattern(self.prefixes, id_config.digit_length)

    # ------------------------------------------------------------------
    # construction
    # ------------------------------------------------------------------
    @classmethod
    def from_registry(cls, registry: DefinitionRegistry, sources: Iterable[DefinitionSource]) -> "IdCatalog":
        """Derive the catalog.

        Raises:
            MissingMetadataError: Listing every reference-type definition with
                incomplete ``x-ubml`` metadata and all of its missing fields.
        """
        sources = sorted(sources, key=lambda s: s.kind.priority)

        id_config = IdConfig()
        category_table: List[CategoryInfo] = []
        for source in sources:
            if source.kind is not SourceKind.DEFS:
                continue
            if "x-ubml-id-config" in source.schema:
                id_config = IdConfig.from_schema(source.schema["x-ubml-id-config"])
            if isinstance(source.schema.get("x-ubml-categories"), list):
                category_table = [
                    CategoryInfo(
                        key=str(raw["key"]),
                        display_name=str(raw.get("displayName", raw["key"])),
                        order=int(raw.get("order", 99)),
                    )
                    for raw in source.schema["x-ubml-categories"]
                    if isinstance(raw, dict) and "key" in raw
                ]
        display_names = {c.key: c.display_name for c in category_table}

        prefixes = cls._collect_prefixes(registry, display_names)
        ref_definitions = {info.definition for info in prefixes.values()}
        reference_fields = cls._collect_reference_fields(sources, ref_definitions)

        document_types: List[str] = []
        detection_rules: Dict[str, Tuple[str, ...]] = {}
        for source in sources:
            if source.kind is not SourceKind.DOCUMENTS:
                continue
            document_types.append(source.stem)
            cli = source.schema.get("x-ubml-cli")
            detect_by = cli.get("detectBy") if isinstance(cli, dict) else None
            if isinstance(detect_by, list) and detect_by:
                detection_rules[source.stem] = tuple(str(p) for p in detect_by)

        logger.debug(
            f"ID catalog: {len(prefixes)} prefixes, {len(reference_fields)} reference fields, "
            f"{len(document_types)} document types"
        )
        return cls(
            prefixes=prefixes,
            reference_fields=reference_fields,
            id_config=id_config,
            document_types=document_types,
            detection_rules=detection_rules,
            category_table=category_table,
        )

    @staticmethod
    def _collect_prefixes(registry: DefinitionRegistry, display_names: Dict[str, str]) -> Dict[str, IdPrefixInfo]:
        missing: Dict[str, List[str]] = {}
        infos: List[IdPrefixInfo] = []

        for entry in registry:
            if not is_reference_type_definition(entry.name, entry.definition):
                continue
            meta = entry.definition.get("x-ubml")
            if not isinstance(meta, dict):
                meta = {}
            absent = [field for field in REQUIRED_REF_METADATA if not meta.get(field)]
            if absent:
                missing[entry.name] = absent
                continue

            category = str(meta["category"])
            infos.append(
                IdPrefixInfo(
                    prefix=str(meta["prefix"]),
                    element_type=str(meta.get("type") or element_type_from_definition(entry.name)),
                    definition=entry.name,
                    pattern=str(entry.definition["pattern"]),
                    human_name=str(meta["humanName"]),
                    short_description=str(meta["shortDescription"]),
                    error_hint=str(meta["errorHint"]),
                    category=category,
                    category_display_name=str(meta.get("categoryDisplayName") or display_names.get(category, category)),
                )
            )

        if missing:
            raise MissingMetadataError(missing)

        return {info.prefix: info for info in sorted(infos, key=lambda i: i.prefix)}

    @staticmethod
    def _collect_reference_fields(sources: Iterable[DefinitionSource], ref_definitions: set) -> List[str]:
        fields: Dict[str, None] = {}
        for source in sources:
            for mapping in _iter_mappings(source.schema):
                properties = mapping.get("properties")
                if not isinstance(properties, dict):
                    continue
                for prop_name, prop_schema in properties.items():
                    for ref in _property_refs(prop_schema):
                        if definition_name_from_ref(ref) in ref_definitions:
                            fields[str(prop_name)] = None
                            break
        return sorted(fields)

    # ------------------------------------------------------------------
    # identifiers
    # ------------------------------------------------------------------
    def is_valid_id(self, value: Any) -> bool:
        return isinstance(value, str) and self.id_pattern.fullmatch(value) is not None

    def is_reference_field(self, name: Any) -> bool:
        return name in self.reference_fields

    def pattern_hints(self) -> Dict[str, str]:
        """``pattern -> errorHint`` for every identifier family."""
        return {info.pattern: info.error_hint for info in self.prefixes.values()}

    def get_id_prefix(self, value: str) -> Optional[str]:
        parts = split_id(value)
        if parts is None or parts[0] not in self.prefixes:
            return None
        return parts[0]

    def element_type_for_id(self, value: str) -> Optional[str]:
        prefix = self.get_id_prefix(value)
        return self.prefixes[prefix].element_type if prefix else None

    def prefix_for_element_type(self, element_type: str) -> Optional[str]:
        for info in self.prefixes.values():
            if info.element_type == element_type:
                return info.prefix
        return None

    def format_id(self, prefix: str, number: int) -> str:
        return format_id(prefix, number, self.id_config.digit_length)

    def next_id(self, prefix: str, existing_ids: Iterable[str], start: Optional[int] = None) -> str:
        if start is None:
            start = self.id_config.init_offset
        return next_id(prefix, existing_ids, start, self.id_config.digit_length)

    def init_start_number(self) -> int:
        return self.id_config.init_offset

    def add_start_number(self) -> int:
        return self.id_config.add_offset

    def categories(self) -> List[Tuple[CategoryInfo, List[IdPrefixInfo]]]:
        """Prefixes grouped by category, in category order; unknown categories last."""
        grouped: Dict[str, List[IdPrefixInfo]] = {}
        for info in self.prefixes.values():
            grouped.setdefault(info.category, []).append(info)

        result = []
        for category in self.category_table:
            if category.key in grouped:
                result.append((category, grouped.pop(category.key)))
        for key, infos in grouped.items():
            result.append((CategoryInfo(key, infos[0].category_display_name, 99), infos))
        return result

    # ------------------------------------------------------------------
    # document type detection
    # ------------------------------------------------------------------
    def detect_type_from_filename(self, filename: str) -> Optional[str]:
        """``sales.process.ubml.yaml`` and ``process.ubml.yaml`` both detect ``process``."""
        base = re.split(r"[\\/]", filename)[-1].lower()
        for doc_type in self.document_types:
            for ext in ("yaml", "yml"):
                suffix = f"{doc_type}.ubml.{ext}"
                if base == suffix or base.endswith("." + suffix):
                    return doc_type
        return None

    def detect_type_from_content(self, content: Any) -> Optional[str]:
        """Pick the type whose characteristic top-level properties are most present."""
        if not isinstance(content, dict):
            return None
        best: Optional[str] = None
        best_score = 0
        for doc_type in self.document_types:
            score = sum(1 for prop in self.detection_rules.get(doc_type, ()) if prop in content)
            if score > best_score:
                best, best_score = doc_type, score
        return best

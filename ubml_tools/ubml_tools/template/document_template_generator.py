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

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Union

from .. import SCHEMA_VERSION
from ..file_io.template_renderer import TemplateRenderer
from ..schema.catalog import IdCatalog
from ..schema.registry import DefinitionRegistry, DefinitionSource, SourceKind
from ..schema.resolver import SchemaResolver

logger = logging.getLogger(__name__)

DEFAULT_COMMON_PROPERTIES = ("ubml", "name", "description", "metadata", "tags", "custom", "version", "status")

# consecutive sections of one template get ID ranges this far apart
SECTION_ID_STEP = 10

_PREFIX_IN_PATTERN_RE = re.compile(r"^\^([A-Z]+)")


@dataclass(frozen=True)
class TemplateSection:
    name: str
    id_prefix: Optional[str]
    description: str
    required: bool


def _singular(name: str) -> str:
    if name.endswith("ies"):
        return name[:-3] + "y"
    if name.endswith("sses") or name.endswith("xes"):
        return name[:-2]
    if name.endswith("s"):
        return name[:-1]
    return name


class DocumentTemplateGenerator:
    """Generates skeleton documents with fresh IDs.

    Section layout comes from the document schemas; ID prefixes and number
    ranges come from the ID catalog.
    """

    def __init__(
        self,
        catalog: IdCatalog,
        sources: Iterable[DefinitionSource],
        resolver: Optional[SchemaResolver] = None,
    ):
        sources = list(sources)
        self.catalog = catalog
        self.resolver = resolver or SchemaResolver(DefinitionRegistry.merge(sources))
        self._schemas: Dict[str, Dict[str, Any]] = {
            source.stem: source.schema for source in sources if source.kind is SourceKind.DOCUMENTS
        }
        self._common_properties = self._load_common_properties()

    def _load_common_properties(self) -> frozenset:
        workspace = self._schemas.get("workspace", {})
        configured = workspace.get("x-ubml-common-properties")
        if isinstance(configured, list) and configured:
            return frozenset(str(p) for p in configured)
        return frozenset(DEFAULT_COMMON_PROPERTIES)

    @property
    def document_types(self) -> List[str]:
        return list(self._schemas)

    def _schema_for(self, document_type: str) -> Dict[str, Any]:
        schema = self._schemas.get(document_type)
        if schema is None:
            raise ValueError(f"Unknown document type: {document_type}")
        return schema

    def _cli_metadata(self, document_type: str) -> Dict[str, Any]:
        cli = self._schema_for(document_type).get("x-ubml-cli")
        return cli if isinstance(cli, dict) else {}

    def _section_prefix(self, prop_schema: Any) -> Optional[str]:
        resolved = self.resolver.resolve(prop_schema)
        if not isinstance(resolved, dict):
            return None
        pattern_props = resolved.get("patternProperties")
        if not isinstance(pattern_props, dict):
            return None
        for pattern in pattern_props:
            m = _PREFIX_IN_PATTERN_RE.match(str(pattern))
            if m and m.group(1) in self.catalog.prefixes:
                return m.group(1)
        return None

    def sections(self, document_type: str) -> List[TemplateSection]:
        schema = self._schema_for(document_type)
        properties = schema.get("properties") or {}
        required = set(schema.get("required") or [])

        sections = []
        for prop_name, prop_schema in properties.items():
            if prop_name in self._common_properties:
                continue
            description = ""
            if isinstance(prop_schema, dict):
                description = str(prop_schema.get("description") or "").strip().split("\n", 1)[0]
            sections.append(
                TemplateSection(
                    name=prop_name,
                    id_prefix=self._section_prefix(prop_schema),
                    description=description,
                    required=prop_name in required,
                )
            )
        return sections

    def _start_number(self, start_ids: Union[str, int]) -> int:
        if isinstance(start_ids, int) and not isinstance(start_ids, bool):
            return start_ids
        if start_ids == "init":
            return self.catalog.init_start_number()
        if start_ids == "add":
            return self.catalog.add_start_number()
        raise ValueError(f"start_ids must be 'init', 'add' or an integer, got {start_ids!r}")

    def create_document(
        self,
        document_type: str,
        name: Optional[str] = None,
        start_ids: Union[str, int] = "add",
    ) -> Dict[str, Any]:
        """Create a minimal document with one sample element per ID-carrying section."""
        schema = self._schema_for(document_type)
        cli = self._cli_metadata(document_type)
        title = schema.get("title") or document_type
        start = self._start_number(start_ids)
        template_defaults = cli.get("templateDefaults") or {}

        document: Dict[str, Any] = {
            "ubml": SCHEMA_VERSION,
            "name": name or cli.get("defaultFilename") or f"My {title}",
            "description": f"{title} description",
        }

        index = 0
        for section in self.sections(document_type):
            if not section.id_prefix:
                continue
            sample: Dict[str, Any] = {
                "name": f"Sample {_singular(section.name)}",
                "description": "Description goes here",
            }
            defaults = template_defaults.get(section.name)
            if isinstance(defaults, dict):
                sample.update(defaults)
            element_id = self.catalog.format_id(section.id_prefix, start + index * SECTION_ID_STEP)
            document[section.name] = {element_id: sample}
            index += 1

        return document

    def next_available_id(self, prefix: str, existing_ids: Iterable[str]) -> str:
        """First free ID at or above the append offset, so it cannot collide with a template's initial range."""
        return self.catalog.next_id(prefix, existing_ids, start=self.catalog.add_start_number())

    def render_document_yaml(
        self,
        document_type: str,
        name: Optional[str] = None,
        start_ids: Union[str, int] = "add",
        use_comments: bool = True,
        template_renderer: Optional[TemplateRenderer] = None,
    ) -> str:
        document = self.create_document(document_type, name=name, start_ids=start_ids)
        schema = self._schema_for(document_type)
        cli = self._cli_metadata(document_type)
        sections = [s for s in self.sections(document_type) if s.name in document]

        renderer = template_renderer or TemplateRenderer()
        logger.debug(f"Rendering {document_type} template with {len(sections)} sections")
        return renderer.render_template(
            "document.ubml.yaml.jinja2",
            use_comments=use_comments,
            title=schema.get("title") or document_type,
            short_description=cli.get("shortDescription", ""),
            id_patterns=[f"{s.id_prefix}### for {s.name}" for s in sections],
            document=document,
            sections=[
                {"name": s.name, "description": s.description, "body": document[s.name]}
                for s in sections
            ],
        )

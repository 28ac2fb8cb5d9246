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

"""End-to-end validation of a set of UBML documents.

One :class:`ValidationPipeline` owns everything derived from a schema corpus:
the merged definition registry, the ID catalog, the resolved schemas and the
emission context they were registered in. Schema authoring errors raised while
building it abort the run; document problems are collected into a
:class:`WorkspaceReport`.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from . import SCHEMA_VERSION
from .models.document import ParsedDocument
from .models.parsing.yaml_parser import YamlParser
from .models.schema_loader import SchemaLoader
from .schema.catalog import IdCatalog
from .schema.registry import DefinitionRegistry, DefinitionSource, SourceKind
from .schema.resolver import EmissionContext, SchemaResolver, document_type_name, resolve_all
from .validation.issues import IssueReport, Severity, ValidationIssue
from .validation.schema_validator import DocumentSchemaValidator
from .validation.symbols import ReferenceValidationResult, SymbolValidator, document_key
from .validation.workspace import validate_workspace_structure

logger = logging.getLogger(__name__)


class WorkspaceReport:
    """Issues of one validation run, grouped per document plus workspace-wide warnings."""

    def __init__(
        self,
        documents: List[IssueReport],
        workspace_warnings: List[ValidationIssue],
        references: ReferenceValidationResult,
    ):
        self.documents = documents
        self.workspace_warnings = workspace_warnings
        self.references = references

    @property
    def error_count(self) -> int:
        return sum(len(r.errors) for r in self.documents)

    @property
    def warning_count(self) -> int:
        return sum(len(r.warnings) for r in self.documents) + len(self.workspace_warnings)

    @property
    def valid(self) -> bool:
        return self.error_count == 0

    def issues(self) -> List[ValidationIssue]:
        collected: List[ValidationIssue] = []
        for report in self.documents:
            collected.extend(report.errors)
            collected.extend(report.warnings)
        collected.extend(self.workspace_warnings)
        return collected

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": len(self.documents),
            "errors": self.error_count,
            "warnings": self.warning_count,
            "results": [r.to_dict() for r in self.documents],
            "workspace": [w.to_dict() for w in self.workspace_warnings],
        }


def _parse_issue_to_validation_issue(issue, severity: Severity, key: str) -> ValidationIssue:
    return ValidationIssue(
        severity=severity,
        code=issue.code,
        message=issue.message,
        document=key,
        line=issue.line,
        column=issue.column,
    )


class ValidationPipeline:
    def __init__(self, sources: Iterable[DefinitionSource]):
        self.sources: List[DefinitionSource] = list(sources)
        self.registry = DefinitionRegistry.merge(self.sources)
        self.catalog = IdCatalog.from_registry(self.registry, self.sources)
        self.resolver = SchemaResolver(self.registry)
        self.emissions = EmissionContext()
        self.resolved_types = resolve_all(self.resolver, self.sources, self.emissions)

        document_schemas = {
            source.stem: self.emissions.get(document_type_name(source)).schema
            for source in self.sources
            if source.kind is SourceKind.DOCUMENTS
        }
        self.parser = YamlParser(detector=self.catalog)
        self.schema_validator = DocumentSchemaValidator(document_schemas, self.catalog.pattern_hints())
        self.symbol_validator = SymbolValidator(self.catalog)
        logger.info(
            f"Validation pipeline ready: {len(self.catalog.prefixes)} ID prefixes, "
            f"{len(document_schemas)} document types"
        )

    @classmethod
    def from_schema_dir(
        cls,
        schema_root: Optional[Union[str, Path]] = None,
        version: str = SCHEMA_VERSION,
    ) -> "ValidationPipeline":
        return cls(SchemaLoader(schema_root).load(version))

    def parse_files(self, paths: Iterable[Union[str, Path]]) -> List[ParsedDocument]:
        return [self.parser.load_file(path) for path in paths]

    def validate_documents(
        self,
        documents: Sequence[ParsedDocument],
        suppress_unused: bool = False,
    ) -> WorkspaceReport:
        reports: List[IssueReport] = []
        by_key: Dict[str, IssueReport] = {}

        for index, document in enumerate(documents):
            key = document_key(document, index)
            report = by_key.get(key)
            if report is None:
                report = IssueReport(key)
                by_key[key] = report
                reports.append(report)

            report.extend(_parse_issue_to_validation_issue(i, Severity.ERROR, key) for i in document.errors)
            report.extend(_parse_issue_to_validation_issue(i, Severity.WARNING, key) for i in document.warnings)
            if document.ok:
                report.extend(self.schema_validator.validate(document, key))

        references = self.symbol_validator.validate(documents, suppress_unused=suppress_unused)
        for issue in references.issues:
            by_key[issue.document].add(issue)

        workspace = validate_workspace_structure(documents)

        report = WorkspaceReport(reports, workspace.warnings, references)
        logger.info(
            f"Validated {len(reports)} documents: {report.error_count} errors, {report.warning_count} warnings"
        )
        return report

    def validate_files(
        self,
        paths: Iterable[Union[str, Path]],
        suppress_unused: bool = False,
    ) -> WorkspaceReport:
        return self.validate_documents(self.parse_files(paths), suppress_unused=suppress_unused)

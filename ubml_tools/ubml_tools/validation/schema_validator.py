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

"""Run resolved document schemas against parsed documents with jsonschema."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError

from ..exceptions import SchemaAuthoringError
from ..models.document import ParsedDocument
from ..utils.format_version import check_format_version
from .issues import (
    UNKNOWN_DOCUMENT_TYPE,
    VERSION_MISMATCH,
    VERSION_MISSING,
    VERSION_NEWER,
    Severity,
    ValidationIssue,
)

logger = logging.getLogger(__name__)

VERSION_KEY = "ubml"


def _error_sort_key(error) -> tuple:
    return (tuple(str(p) for p in error.absolute_path), error.validator, error.message)


class DocumentSchemaValidator:
    """Validate documents against their type's resolved schema.

    Args:
        document_schemas: ``document type -> engine-ready schema`` (inlined and
            stripped of extensions).
        pattern_hints: ``pattern -> hint`` attached as the suggestion of a
            ``schema/pattern`` error on that exact pattern (the ``errorHint``
            of each identifier family).

    Raises:
        SchemaAuthoringError: If one of the schemas is not a valid JSON Schema.
    """

    def __init__(
        self,
        document_schemas: Dict[str, Dict[str, Any]],
        pattern_hints: Optional[Dict[str, str]] = None,
    ):
        self._pattern_hints: Dict[str, str] = dict(pattern_hints or {})
        self._validators: Dict[str, Draft202012Validator] = {}
        for doc_type, schema in document_schemas.items():
            try:
                Draft202012Validator.check_schema(schema)
            except SchemaError as exc:
                raise SchemaAuthoringError(f"Schema for document type '{doc_type}' is invalid: {exc.message}") from exc
            self._validators[doc_type] = Draft202012Validator(schema)

    @property
    def document_types(self) -> List[str]:
        return list(self._validators)

    def validate(self, document: ParsedDocument, key: str) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = list(self._version_issues(document, key))

        if document.document_type is None:
            issues.append(
                ValidationIssue(
                    severity=Severity.WARNING,
                    code=UNKNOWN_DOCUMENT_TYPE,
                    message="Could not determine the document type; schema validation skipped",
                    document=key,
                    suggestion="Name the file <name>.<type>.ubml.yaml",
                )
            )
            return issues

        validator = self._validators.get(document.document_type)
        if validator is None:
            logger.debug(f"No schema for document type '{document.document_type}' ({key})")
            return issues

        for error in sorted(validator.iter_errors(document.content), key=_error_sort_key):
            path = tuple(error.absolute_path)
            issue = ValidationIssue(
                severity=Severity.ERROR,
                code=f"schema/{error.validator}",
                message=error.message,
                document=key,
                path=path,
                suggestion=self._hint_for(error),
            )
            issues.append(issue.at(document.locate(path)))
        return issues

    def _hint_for(self, error) -> Optional[str]:
        if error.validator == "pattern" and isinstance(error.validator_value, str):
            return self._pattern_hints.get(error.validator_value)
        return None

    def _version_issues(self, document: ParsedDocument, key: str) -> Iterable[ValidationIssue]:
        if not isinstance(document.content, dict):
            return
        result = check_format_version(document.version)
        path = (VERSION_KEY,)

        if result.missing:
            yield ValidationIssue(
                severity=Severity.WARNING,
                code=VERSION_MISSING,
                message=result.message,
                document=key,
            )
        elif not result.compatible:
            issue = ValidationIssue(
                severity=Severity.ERROR,
                code=VERSION_MISMATCH,
                message=result.message,
                document=key,
                path=path,
            )
            yield issue.at(document.locate(path))
        elif result.minor_newer:
            issue = ValidationIssue(
                severity=Severity.WARNING,
                code=VERSION_NEWER,
                message=result.message,
                document=key,
                path=path,
            )
            yield issue.at(document.locate(path))

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

"""Workspace-level structure checks. These only ever produce warnings."""

from dataclasses import dataclass
from typing import Dict, List, Sequence

from ..models.document import ParsedDocument
from .issues import (
    MISSING_ACTORS,
    MISSING_WORKSPACE,
    MULTIPLE_SINGLETON,
    SUGGEST_GLOSSARY,
    Severity,
    ValidationIssue,
)
from .symbols import document_key

SINGLETON = "singleton"
CATALOG = "catalog"
MULTIPLE = "multiple"

DOCUMENT_MULTIPLICITY: Dict[str, str] = {
    "workspace": SINGLETON,
    "glossary": SINGLETON,
    "strategy": SINGLETON,
    "actors": CATALOG,
    "entities": CATALOG,
    "metrics": CATALOG,
}

# below this many documents a workspace is not expected to have a glossary
GLOSSARY_SUGGESTION_THRESHOLD = 5


def get_document_multiplicity(document_type: str) -> str:
    return DOCUMENT_MULTIPLICITY.get(document_type, MULTIPLE)


@dataclass
class WorkspaceValidationResult:
    warnings: List[ValidationIssue]
    document_types: Dict[str, List[str]]

    @property
    def valid(self) -> bool:
        return True


def _warning(code: str, message: str, suggestion: str, files: Sequence[str] = ()) -> ValidationIssue:
    return ValidationIssue(
        severity=Severity.WARNING,
        code=code,
        message=message,
        suggestion=suggestion,
        files=tuple(files),
    )


def validate_workspace_structure(documents: Sequence[ParsedDocument]) -> WorkspaceValidationResult:
    document_types: Dict[str, List[str]] = {}
    for index, document in enumerate(documents):
        if document.document_type:
            document_types.setdefault(document.document_type, []).append(document_key(document, index))

    warnings: List[ValidationIssue] = []

    if "workspace" not in document_types:
        warnings.append(
            _warning(
                MISSING_WORKSPACE,
                "No workspace file found",
                "Create a *.workspace.ubml.yaml file to define your project",
            )
        )

    for doc_type, files in document_types.items():
        if get_document_multiplicity(doc_type) == SINGLETON and len(files) > 1:
            warnings.append(
                _warning(
                    MULTIPLE_SINGLETON,
                    f"Multiple {doc_type} files found (expected single file)",
                    f"Consider consolidating into one {doc_type}.ubml.yaml file",
                    files,
                )
            )

    if "process" in document_types and "actors" not in document_types:
        warnings.append(
            _warning(
                MISSING_ACTORS,
                "Process files exist but no actors defined",
                "Add actors.ubml.yaml to define who performs process steps",
                document_types["process"],
            )
        )

    if len(documents) >= GLOSSARY_SUGGESTION_THRESHOLD and "glossary" not in document_types:
        warnings.append(
            _warning(
                SUGGEST_GLOSSARY,
                "Complex workspace without glossary",
                "Add glossary.ubml.yaml to define shared terminology",
            )
        )

    return WorkspaceValidationResult(warnings=warnings, document_types=document_types)

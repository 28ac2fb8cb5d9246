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

"""Diagnostics produced by document validation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..file_io.source_location import SourceLocation
from ..models.values import StructuralPath, to_pointer

DUPLICATE_ID = "ubml/duplicate-id"
UNDEFINED_REFERENCE = "ubml/undefined-reference"
UNUSED_DEFINITION = "ubml/unused-definition"

MISSING_WORKSPACE = "ubml/missing-workspace"
MULTIPLE_SINGLETON = "ubml/multiple-singleton"
MISSING_ACTORS = "ubml/missing-actors"
SUGGEST_GLOSSARY = "ubml/suggest-glossary"

VERSION_MISMATCH = "ubml/version-mismatch"
VERSION_NEWER = "ubml/version-newer"
VERSION_MISSING = "ubml/version-missing"
UNKNOWN_DOCUMENT_TYPE = "ubml/unknown-document-type"


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationIssue:
    severity: Severity
    code: str
    message: str
    document: Optional[str] = None
    path: StructuralPath = ()
    line: Optional[int] = None  # 1-based
    column: Optional[int] = None  # 1-based
    suggestion: Optional[str] = None
    files: Tuple[str, ...] = ()

    @property
    def yaml_path(self) -> str:
        return to_pointer(self.path)

    def at(self, location: Optional[SourceLocation]) -> "ValidationIssue":
        """Copy with the line/column of ``location``; unchanged when it is None."""
        if location is None:
            return self
        return ValidationIssue(
            severity=self.severity,
            code=self.code,
            message=self.message,
            document=self.document,
            path=self.path,
            line=location.line,
            column=location.column,
            suggestion=self.suggestion,
            files=self.files,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
        }
        if self.document is not None:
            data["file"] = self.document
        if self.path:
            data["yaml_path"] = self.yaml_path
        if self.line is not None:
            data["line"] = self.line
        if self.column is not None:
            data["column"] = self.column
        if self.suggestion:
            data["suggestion"] = self.suggestion
        if self.files:
            data["files"] = list(self.files)
        return data


class IssueReport:
    """Errors and warnings collected for one document, or for the workspace as a whole."""

    def __init__(self, document: Optional[str] = None):
        self.document = document
        self.errors: List[ValidationIssue] = []
        self.warnings: List[ValidationIssue] = []

    def add(self, issue: ValidationIssue) -> None:
        if issue.severity is Severity.ERROR:
            self.errors.append(issue)
        else:
            self.warnings.append(issue)

    def extend(self, issues) -> None:
        for issue in issues:
            self.add(issue)

    def add_error(
        self,
        code: str,
        message: str,
        path: StructuralPath = (),
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.errors.append(ValidationIssue(Severity.ERROR, code, message, self.document, path, line, column))

    def add_warning(
        self,
        code: str,
        message: str,
        path: StructuralPath = (),
        line: Optional[int] = None,
        column: Optional[int] = None,
    ) -> None:
        self.warnings.append(ValidationIssue(Severity.WARNING, code, message, self.document, path, line, column))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.document,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
        }

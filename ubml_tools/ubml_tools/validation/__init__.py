"""Validation of parsed UBML documents.

Symbol validation (identifier definitions and references) and workspace
structure checks work on the decoded value trees only; schema validation runs
the resolved document schemas through jsonschema.
"""

from .issues import IssueReport, Severity, ValidationIssue
from .symbols import (
    DefinedIdEntry,
    ReferencedIdEntry,
    ReferenceValidationResult,
    SymbolValidator,
)
from .workspace import WorkspaceValidationResult, validate_workspace_structure
from .schema_validator import DocumentSchemaValidator

__all__ = [
    "IssueReport",
    "Severity",
    "ValidationIssue",
    "DefinedIdEntry",
    "ReferencedIdEntry",
    "ReferenceValidationResult",
    "SymbolValidator",
    "WorkspaceValidationResult",
    "validate_workspace_structure",
    "DocumentSchemaValidator",
]

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

"""Cross-document identifier validation.

All documents of a workspace share one namespace of identifiers. An
identifier is *defined* where it appears as a mapping key and *referenced*
where it appears as the value (or a list element of the value) of a
reference field. Validation runs two passes over the documents in the order
given, then cross-checks:

* every identifier is defined once (``ubml/duplicate-id``),
* every reference points at a definition (``ubml/undefined-reference``),
* every definition is referenced (``ubml/unused-definition``, a warning).
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from ..models.document import ParsedDocument
from ..models.values import StructuralPath, ValueKind, kind_of, to_pointer
from ..schema.catalog import IdCatalog
from .issues import (
    DUPLICATE_ID,
    UNDEFINED_REFERENCE,
    UNUSED_DEFINITION,
    Severity,
    ValidationIssue,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DefinedIdEntry:
    id: str
    document: str
    path: StructuralPath


@dataclass
class ReferencedIdEntry:
    id: str
    occurrences: List[Tuple[str, StructuralPath]] = field(default_factory=list)

    @property
    def documents(self) -> List[str]:
        """Distinct referencing documents, in order of first occurrence."""
        return list(dict.fromkeys(document for document, _ in self.occurrences))


@dataclass
class ReferenceValidationResult:
    valid: bool
    errors: List[ValidationIssue]
    warnings: List[ValidationIssue]
    defined_ids: Dict[str, DefinedIdEntry]
    referenced_ids: Dict[str, ReferencedIdEntry]

    @property
    def issues(self) -> List[ValidationIssue]:
        return self.errors + self.warnings


def document_key(document: ParsedDocument, index: int) -> str:
    return document.filename or f"<document {index + 1}>"


def iter_defined_ids(content: Any, catalog: IdCatalog, path: StructuralPath = ()) -> Iterator[Tuple[str, StructuralPath]]:
    """Yield ``(id, path)`` for every mapping key that is an identifier, depth first."""
    kind = kind_of(content)
    if kind is ValueKind.MAPPING:
        for key, value in content.items():
            child = path + (key,)
            if catalog.is_valid_id(key):
                yield key, child
            yield from iter_defined_ids(value, catalog, child)
    elif kind is ValueKind.SEQUENCE:
        for index, item in enumerate(content):
            yield from iter_defined_ids(item, catalog, path + (index,))
    elif kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
        return
    else:
        raise AssertionError(f"unhandled value kind: {kind}")


def iter_referenced_ids(content: Any, catalog: IdCatalog, path: StructuralPath = ()) -> Iterator[Tuple[str, StructuralPath]]:
    """Yield ``(id, path)`` for every identifier held by a reference field, at any depth."""
    kind = kind_of(content)
    if kind is ValueKind.MAPPING:
        for key, value in content.items():
            child = path + (key,)
            if catalog.is_reference_field(key):
                if catalog.is_valid_id(value):
                    yield value, child
                elif isinstance(value, list):
                    for index, item in enumerate(value):
                        if catalog.is_valid_id(item):
                            yield item, child + (index,)
            yield from iter_referenced_ids(value, catalog, child)
    elif kind is ValueKind.SEQUENCE:
        for index, item in enumerate(content):
            yield from iter_referenced_ids(item, catalog, path + (index,))
    elif kind in (ValueKind.NULL, ValueKind.BOOL, ValueKind.NUMBER, ValueKind.STRING):
        return
    else:
        raise AssertionError(f"unhandled value kind: {kind}")


class SymbolValidator:
    """Check definition/reference integrity across a set of documents."""

    def __init__(self, catalog: IdCatalog):
        self.catalog = catalog

    def validate(self, documents: Sequence[ParsedDocument], suppress_unused: bool = False) -> ReferenceValidationResult:
        """Validate ``documents`` as one namespace.

        Args:
            documents: Documents in caller order; the order decides which of two
                duplicate definitions is the original.
            suppress_unused: Skip the ``unused-definition`` warnings entirely.
        """
        by_key: Dict[str, ParsedDocument] = {}
        keyed: List[Tuple[str, ParsedDocument]] = []
        for index, document in enumerate(documents):
            key = document_key(document, index)
            by_key.setdefault(key, document)
            keyed.append((key, document))

        errors: List[ValidationIssue] = []
        warnings: List[ValidationIssue] = []
        defined: Dict[str, DefinedIdEntry] = {}
        referenced: Dict[str, ReferencedIdEntry] = {}

        # pass 1: definitions
        for key, document in keyed:
            for id_, path in iter_defined_ids(document.content, self.catalog):
                original = defined.get(id_)
                if original is None:
                    defined[id_] = DefinedIdEntry(id_, key, path)
                    continue
                issue = ValidationIssue(
                    severity=Severity.ERROR,
                    code=DUPLICATE_ID,
                    message=(
                        f'Duplicate ID "{id_}" (also defined in {original.document} '
                        f"at {to_pointer(original.path)})"
                    ),
                    document=key,
                    path=path,
                    suggestion=f"Use a different {self._human_name(id_)} for one of the definitions",
                )
                errors.append(issue.at(document.locate(path)))

        # pass 2: references
        for key, document in keyed:
            for id_, path in iter_referenced_ids(document.content, self.catalog):
                referenced.setdefault(id_, ReferencedIdEntry(id_)).occurrences.append((key, path))

        for id_, entry in referenced.items():
            if id_ in defined:
                continue
            for doc_key in entry.documents:
                first_path = next(path for occ_doc, path in entry.occurrences if occ_doc == doc_key)
                issue = ValidationIssue(
                    severity=Severity.ERROR,
                    code=UNDEFINED_REFERENCE,
                    message=f'Reference to undefined ID "{id_}"',
                    document=doc_key,
                    path=first_path,
                    suggestion=self._undefined_hint(id_),
                )
                errors.append(issue.at(self._locate(by_key, doc_key, first_path)))

        if not suppress_unused:
            for id_, entry in defined.items():
                if id_ in referenced:
                    continue
                issue = ValidationIssue(
                    severity=Severity.WARNING,
                    code=UNUSED_DEFINITION,
                    message=f'ID "{id_}" is defined but never referenced',
                    document=entry.document,
                    path=entry.path,
                )
                warnings.append(issue.at(self._locate(by_key, entry.document, entry.path)))

        logger.debug(
            f"Symbol validation: {len(defined)} definitions, {len(referenced)} referenced IDs, "
            f"{len(errors)} errors, {len(warnings)} warnings"
        )
        return ReferenceValidationResult(
            valid=not errors,
            errors=errors,
            warnings=warnings,
            defined_ids=defined,
            referenced_ids=referenced,
        )

    @staticmethod
    def _locate(by_key: Dict[str, ParsedDocument], key: str, path: StructuralPath):
        document = by_key.get(key)
        return document.locate(path) if document is not None else None

    def _human_name(self, id_: str) -> str:
        prefix = self.catalog.get_id_prefix(id_)
        return self.catalog.prefixes[prefix].human_name if prefix else "ID"

    def _undefined_hint(self, id_: str) -> Optional[str]:
        prefix = self.catalog.get_id_prefix(id_)
        if prefix is None:
            return None
        info = self.catalog.prefixes[prefix]
        return f"Define {info.element_type} {id_} in the workspace, or check the {info.human_name} for typos"

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

"""Custom exceptions for the UBML tools."""

from typing import Dict, Iterable, List, Sequence


class UbmlToolsError(Exception):
    """Base exception for UBML tooling errors."""
    pass


class SchemaAuthoringError(UbmlToolsError):
    """Exception raised for defects in the schema sources themselves.

    These abort the whole run; they are never collected as issues.
    """
    pass


class UnresolvedReferenceError(SchemaAuthoringError):
    """Exception raised when a `$ref` cannot be mapped to a known definition."""

    def __init__(self, ref: str, known_names: Iterable[str], reason: str = ""):
        self.ref = ref
        self.known_names: List[str] = sorted(known_names)
        detail = f" ({reason})" if reason else ""
        super().__init__(
            f"Schema error: unresolved reference '{ref}'{detail}\n"
            f"Available definitions: {', '.join(self.known_names)}"
        )


class MissingMetadataError(SchemaAuthoringError):
    """Exception raised when reference-type definitions lack required metadata.

    Carries every offending definition with its full list of missing fields.
    """

    def __init__(self, missing: Dict[str, Sequence[str]]):
        self.missing: Dict[str, List[str]] = {name: list(fields) for name, fields in missing.items()}
        lines = [f"  - {name}: missing {', '.join(fields)}" for name, fields in self.missing.items()]
        super().__init__(
            f"Schema error: {len(self.missing)} reference type definition(s) "
            f"are missing required x-ubml metadata:\n" + "\n".join(lines)
        )


class ConflictingDefinitionError(SchemaAuthoringError):
    """Exception raised when one type name is emitted twice with different content."""

    def __init__(self, name: str, first_source: str, second_source: str):
        self.name = name
        self.first_source = first_source
        self.second_source = second_source
        super().__init__(
            f"Type {name} has conflicting definitions:\n"
            f"  - {first_source}\n"
            f"  - {second_source}\n"
            f"Fix the schema to have consistent type definitions."
        )


class SchemaLoadError(UbmlToolsError):
    """Exception raised when the schema corpus cannot be found or parsed."""
    pass


class DocumentLoadError(UbmlToolsError):
    """Exception raised when a document file cannot be read."""
    pass


class FormatVersionError(UbmlToolsError):
    """Exception raised when a format version string cannot be parsed."""
    pass

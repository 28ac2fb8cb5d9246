"""Schema corpus handling: definition registry, reference resolution and the ID catalog.

The bundled corpus lives next to this package in versioned directories
(``1.0/defs``, ``1.0/types``, ``1.0/documents``, ``1.0/fragments``).
"""

from .registry import DefinitionRegistry, DefinitionSource, RegisteredDefinition, SourceKind
from .resolver import (
    CYCLE_PLACEHOLDER,
    EmissionContext,
    ResolvedType,
    SchemaResolver,
    fingerprint,
    resolve_all,
    strip_extensions,
)
from .catalog import IdCatalog, IdPrefixInfo
from .id_utils import IdConfig

__all__ = [
    "DefinitionRegistry",
    "DefinitionSource",
    "RegisteredDefinition",
    "SourceKind",
    "CYCLE_PLACEHOLDER",
    "EmissionContext",
    "ResolvedType",
    "SchemaResolver",
    "fingerprint",
    "resolve_all",
    "strip_extensions",
    "IdCatalog",
    "IdPrefixInfo",
    "IdConfig",
]

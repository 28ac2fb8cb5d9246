from __future__ import annotations

import textwrap
from typing import Any, Dict, List

import pytest

from ubml_tools.pipeline import ValidationPipeline
from ubml_tools.schema.registry import DefinitionSource, SourceKind


def dedent(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


def ref_definition(prefix: str, category: str = "core", **overrides: Any) -> Dict[str, Any]:
    """A complete reference-type definition for ``prefix``."""
    meta = {
        "prefix": prefix,
        "humanName": f"{prefix} ID",
        "shortDescription": f"Things identified by {prefix}",
        "errorHint": f"Use {prefix} followed by 5 digits",
        "category": category,
    }
    meta.update(overrides)
    return {"type": "string", "pattern": f"^{prefix}\\d{{5,}}$", "x-ubml": meta}


def defs_source(definitions: Dict[str, Any], name: str = "defs/refs.defs.yaml", **extra: Any) -> DefinitionSource:
    return DefinitionSource(name=name, kind=SourceKind.DEFS, schema={"$defs": definitions, **extra})


def types_source(name: str, definitions: Dict[str, Any]) -> DefinitionSource:
    return DefinitionSource(name=f"types/{name}.types.yaml", kind=SourceKind.TYPES, schema={"$defs": definitions})


def document_source(name: str, schema: Dict[str, Any]) -> DefinitionSource:
    return DefinitionSource(name=f"documents/{name}.document.yaml", kind=SourceKind.DOCUMENTS, schema=schema)


@pytest.fixture(scope="session")
def pipeline() -> ValidationPipeline:
    """Pipeline over the schema corpus bundled with the package."""
    return ValidationPipeline.from_schema_dir()


@pytest.fixture
def catalog(pipeline):
    return pipeline.catalog


@pytest.fixture
def parse(pipeline):
    """Parse dedented YAML text into a ParsedDocument."""

    def _parse(text: str, filename: str = None):
        return pipeline.parser.parse_text(dedent(text), filename=filename)

    return _parse


@pytest.fixture
def write_files(tmp_path):
    """Write ``{relative name: yaml text}`` below tmp_path and return the paths."""

    def _write(files: Dict[str, str]) -> List:
        paths = []
        for name, text in files.items():
            path = tmp_path / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(dedent(text), encoding="utf-8")
            paths.append(path)
        return paths

    return _write

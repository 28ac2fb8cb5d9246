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

"""Schema corpus loader.

A corpus is a directory with one sub-directory per source kind::

    1.0/
      defs/refs.defs.yaml
      types/process.types.yaml
      documents/process.document.yaml
      fragments/...

Corpora are kept side by side in directories named after the format version
they describe.
"""

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional, Union

import yaml

from .. import SCHEMA_VERSION
from ..exceptions import FormatVersionError, SchemaLoadError
from ..schema.registry import DefinitionSource, SourceKind
from ..utils.format_version import parse_format_version

logger = logging.getLogger(__name__)

SCHEMA_DIR_ENV = "UBML_SCHEMA_DIR"


def get_bundled_schema_root() -> Path:
    return Path(__file__).resolve().parent.parent / "schema"


def _is_corpus_dir(path: Path) -> bool:
    return any((path / kind.value).is_dir() for kind in SourceKind)


class SchemaLoader:
    """Load definition sources from a versioned schema directory.

    Args:
        schema_root: Directory holding version directories, or a single corpus
            directory. Defaults to ``$UBML_SCHEMA_DIR`` and then to the corpus
            bundled with this package.
    """

    def __init__(self, schema_root: Optional[Union[str, Path]] = None):
        if schema_root is None:
            env_root = os.environ.get(SCHEMA_DIR_ENV)
            schema_root = Path(env_root) if env_root else get_bundled_schema_root()
        self.schema_root = Path(schema_root)
        self._cache: Dict[str, List[DefinitionSource]] = {}

    def resolve_version_dir(self, version: str) -> Path:
        """Find the corpus directory for ``version``.

        The exact version is used when present; otherwise the largest minor
        version with the same major.

        Raises:
            SchemaLoadError: If no corpus with a matching major version exists.
        """
        if _is_corpus_dir(self.schema_root):
            return self.schema_root

        if not self.schema_root.is_dir():
            raise SchemaLoadError(f"Schema directory not found: {self.schema_root}")

        exact = self.schema_root / version
        if exact.is_dir():
            return exact

        try:
            wanted = parse_format_version(version)
        except FormatVersionError as exc:
            raise SchemaLoadError(str(exc)) from exc

        available = []
        for version_dir in self.schema_root.iterdir():
            if not version_dir.is_dir():
                continue
            try:
                dir_version = parse_format_version(version_dir.name)
            except FormatVersionError:
                # Skip directories that don't match the version pattern
                continue
            if dir_version.major == wanted.major:
                available.append((dir_version.minor, version_dir))

        if not available:
            raise SchemaLoadError(f"No schema corpus for version {version} under {self.schema_root}")

        _, best = max(available)
        logger.debug(f"Schema version {version} resolved to {best.name}")
        return best

    def load(self, version: str = SCHEMA_VERSION) -> List[DefinitionSource]:
        """Load every schema file of the corpus for ``version``, in kind then file name order."""
        corpus_dir = self.resolve_version_dir(version)
        cache_key = str(corpus_dir)
        if cache_key in self._cache:
            return self._cache[cache_key]

        sources: List[DefinitionSource] = []
        for kind in SourceKind:
            kind_dir = corpus_dir / kind.value
            if not kind_dir.is_dir():
                continue
            files = sorted(list(kind_dir.glob("*.yaml")) + list(kind_dir.glob("*.yml")))
            for file_path in files:
                sources.append(self.load_source(file_path, kind, name=f"{kind.value}/{file_path.name}"))

        if not sources:
            raise SchemaLoadError(f"Schema corpus is empty: {corpus_dir}")

        logger.debug(f"Loaded {len(sources)} schema files from {corpus_dir}")
        self._cache[cache_key] = sources
        return sources

    @staticmethod
    def load_source(file_path: Path, kind: SourceKind, name: Optional[str] = None) -> DefinitionSource:
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                schema = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise SchemaLoadError(f"Invalid YAML in schema file {file_path}: {exc}") from exc
        except OSError as exc:
            raise SchemaLoadError(f"Failed to read schema file {file_path}: {exc}") from exc

        if schema is None:
            schema = {}
        if not isinstance(schema, dict):
            raise SchemaLoadError(f"Schema file {file_path} must contain a mapping")
        return DefinitionSource(name=name or file_path.name, kind=kind, schema=schema)

    def clear_cache(self) -> None:
        self._cache.clear()

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

"""YAML document parser producing ParsedDocument objects."""

import yaml
import logging
from pathlib import Path
from typing import Any, List, Optional, Set, Union

from ...exceptions import DocumentLoadError
from ..document import ParseIssue, ParsedDocument

logger = logging.getLogger(__name__)


class _UbmlLoader(yaml.SafeLoader):
    """SafeLoader restricted to the JSON-like value model of UBML documents.

    Timestamps and ``!!binary`` stay the strings the author wrote. ``!!set``
    becomes a list of its members, and ``!!omap``/``!!pairs`` a list of
    single-entry mappings, mirroring their node trees.
    """


def _construct_scalar_as_str(loader: yaml.SafeLoader, node: yaml.ScalarNode) -> str:
    return loader.construct_scalar(node)


def _construct_set_as_list(loader: yaml.SafeLoader, node: yaml.MappingNode) -> List[Any]:
    if not isinstance(node, yaml.MappingNode):
        raise yaml.constructor.ConstructorError(
            None, None, f"expected a mapping node, but found {node.id}", node.start_mark
        )
    return [loader.construct_object(key_node, deep=True) for key_node, _ in node.value]


def _construct_pairs_as_list(loader: yaml.SafeLoader, node: yaml.SequenceNode) -> List[Any]:
    if not isinstance(node, yaml.SequenceNode):
        raise yaml.constructor.ConstructorError(
            None, None, f"expected a sequence node, but found {node.id}", node.start_mark
        )
    return loader.construct_sequence(node, deep=True)


_UbmlLoader.add_constructor("tag:yaml.org,2002:timestamp", _construct_scalar_as_str)
_UbmlLoader.add_constructor("tag:yaml.org,2002:binary", _construct_scalar_as_str)
_UbmlLoader.add_constructor("tag:yaml.org,2002:set", _construct_set_as_list)
_UbmlLoader.add_constructor("tag:yaml.org,2002:omap", _construct_pairs_as_list)
_UbmlLoader.add_constructor("tag:yaml.org,2002:pairs", _construct_pairs_as_list)


def _issue_from_yaml_error(exc: yaml.YAMLError) -> ParseIssue:
    mark = getattr(exc, "problem_mark", None)
    problem = getattr(exc, "problem", None) or str(exc)
    context = getattr(exc, "context", None)
    message = f"{context}: {problem}" if context else problem
    if mark is None:
        return ParseIssue(message=message)
    # PyYAML uses 0-based line/column
    return ParseIssue(message=message, line=mark.line + 1, column=mark.column + 1)


def _find_duplicate_keys(root: Optional[yaml.Node]) -> List[ParseIssue]:
    issues: List[ParseIssue] = []
    visited: Set[int] = set()

    def _walk(node: yaml.Node) -> None:
        # aliases share node objects, and may be recursive
        if id(node) in visited:
            return
        visited.add(id(node))

        if isinstance(node, yaml.MappingNode):
            seen: Set[str] = set()
            for key_node, value_node in node.value:
                if isinstance(key_node, yaml.ScalarNode) and key_node.tag != "tag:yaml.org,2002:merge":
                    if key_node.value in seen:
                        mark = key_node.start_mark
                        issues.append(
                            ParseIssue(
                                message=f"Map keys must be unique: '{key_node.value}'",
                                line=mark.line + 1,
                                column=mark.column + 1,
                                code="yaml/duplicate-key",
                            )
                        )
                    seen.add(key_node.value)
                _walk(value_node)
        elif isinstance(node, yaml.SequenceNode):
            for item in node.value:
                _walk(item)

    if root is not None:
        _walk(root)
    return issues


class YamlParser:
    """Parse UBML documents, keeping the node tree for source positions.

    Args:
        detector: Optional object with ``detect_type_from_filename`` and
            ``detect_type_from_content`` (an ``IdCatalog``). Without it parsed
            documents carry no document type.
    """

    def __init__(self, detector: Any = None):
        self._detector = detector

    def _detect_type(self, filename: Optional[str], content: Any) -> Optional[str]:
        if self._detector is None:
            return None
        if filename:
            detected = self._detector.detect_type_from_filename(filename)
            if detected:
                return detected
        return self._detector.detect_type_from_content(content)

    def parse_text(
        self,
        text: str,
        filename: Optional[str] = None,
        file_path: Optional[Path] = None,
    ) -> ParsedDocument:
        """Parse YAML text. Syntax problems are recorded on the result, never raised."""
        errors: List[ParseIssue] = []
        warnings: List[ParseIssue] = []
        duplicates: List[ParseIssue] = []
        root: Optional[yaml.Node] = None
        content: Any = None

        loader = _UbmlLoader(text)
        try:
            root = loader.get_single_node()
            # before construction, which flattens merge keys into the node tree
            duplicates = _find_duplicate_keys(root)
            if root is not None:
                content = loader.construct_document(root)
        except yaml.YAMLError as exc:
            logger.debug(f"YAML error in {filename or '<string>'}: {exc}")
            errors.append(_issue_from_yaml_error(exc))
            root = None
            content = None
        finally:
            loader.dispose()

        if content is None:
            if root is None and not errors:
                warnings.append(
                    ParseIssue(message="Document is empty", line=1, column=1, code="yaml/empty-document")
                )
            content = {}
        elif not isinstance(content, dict):
            errors.append(
                ParseIssue(
                    message=f"Document root must be a mapping, got {type(content).__name__}",
                    line=1,
                    column=1,
                    code="yaml/invalid-root",
                )
            )

        errors.extend(duplicates)

        return ParsedDocument(
            source=text,
            content=content,
            root_node=root,
            filename=filename,
            file_path=file_path,
            document_type=self._detect_type(filename, content),
            errors=tuple(errors),
            warnings=tuple(warnings),
        )

    def load_file(self, file_path: Union[str, Path]) -> ParsedDocument:
        """Read and parse one document file.

        Raises:
            DocumentLoadError: If the file cannot be read as UTF-8 text.
        """
        path = Path(file_path)

        if not path.is_file():
            raise DocumentLoadError(f"Document file not found: {path}")

        try:
            logger.debug(f"Loading document file: {path}")
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise DocumentLoadError(f"Failed to read document file {path}: {exc}") from exc

        return self.parse_text(text, filename=str(path), file_path=path)

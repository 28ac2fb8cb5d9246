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

"""Workspace checker for UBML documents."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..exceptions import DocumentLoadError
from ..models.document import ParseIssue, ParsedDocument
from ..pipeline import ValidationPipeline, WorkspaceReport

__all__ = ['check_files', 'WorkspaceReport']

logger = logging.getLogger(__name__)


def check_files(
    file_paths: List[Path],
    schema_dir: Optional[Union[str, Path]] = None,
    suppress_unused: bool = False,
) -> WorkspaceReport:
    """Validate a list of UBML files as one workspace.

    Files that cannot be read are reported as errors of that file instead of
    stopping the run.

    Raises:
        SchemaAuthoringError: If the schema corpus itself is defective.
        SchemaLoadError: If the schema corpus cannot be loaded.
    """
    pipeline = ValidationPipeline.from_schema_dir(schema_dir)

    documents = []
    for file_path in file_paths:
        try:
            documents.append(pipeline.parser.load_file(file_path))
        except DocumentLoadError as e:
            logger.warning(str(e))
            documents.append(
                ParsedDocument(
                    source="",
                    content={},
                    filename=str(file_path),
                    file_path=Path(file_path),
                    errors=(ParseIssue(message=str(e), code="io/read-error"),),
                )
            )

    return pipeline.validate_documents(documents, suppress_unused=suppress_unused)

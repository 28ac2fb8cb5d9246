#!/usr/bin/env python3
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

"""CLI entry point for checking UBML workspaces."""

import argparse
import json
import sys
from pathlib import Path
from typing import List

from ..exceptions import SchemaAuthoringError, SchemaLoadError
from ..utils.logging_utils import configure_checker_logging
from ..validation.issues import ValidationIssue
from . import check_files

UBML_EXTENSIONS = ('.ubml.yaml', '.ubml.yml')

EXIT_OK = 0
EXIT_ERRORS = 1
EXIT_SCHEMA_ERROR = 2


def find_ubml_files(paths: List[str]) -> List[Path]:
    """Find all UBML document files in given paths."""
    ubml_files = []

    for path_str in paths:
        path = Path(path_str)

        if not path.exists():
            print(f"Warning: Path does not exist: {path}", file=sys.stderr)
            continue

        if path.is_file():
            if path.name.endswith(UBML_EXTENSIONS):
                ubml_files.append(path)
            else:
                print(f"Warning: File does not match UBML file pattern: {path}", file=sys.stderr)
        elif path.is_dir():
            for ext in UBML_EXTENSIONS:
                ubml_files.extend(path.rglob(f'*{ext}'))
        else:
            print(f"Warning: Path is neither file nor directory: {path}", file=sys.stderr)

    return sorted(set(ubml_files))


def _format_issue(issue: ValidationIssue) -> str:
    label = 'ERROR' if issue.severity.value == 'error' else 'WARNING'
    position = ''
    if issue.line is not None:
        position = f":{issue.line}"
        if issue.column is not None:
            position += f":{issue.column}"
    text = f"  {label}{position}: {issue.message} [{issue.code}]"
    if issue.path:
        text += f" (yaml_path={issue.yaml_path})"
    if issue.suggestion:
        text += f"\n    hint: {issue.suggestion}"
    return text


def main(argv: List[str] | None = None) -> None:
    """Main entry point for the checker CLI."""
    parser = argparse.ArgumentParser(
        description='Validate UBML documents as one workspace',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        'paths',
        nargs='*',
        default=None,
        help='File paths or directories to check (default: current directory)',
    )
    parser.add_argument(
        '--format',
        choices=['human', 'json'],
        default='human',
        help='Output format (default: human)',
    )
    parser.add_argument(
        '--suppress-unused',
        action='store_true',
        help='Do not warn about IDs that are defined but never referenced',
    )
    parser.add_argument(
        '--schema-dir',
        default=None,
        help='Schema corpus directory (default: $UBML_SCHEMA_DIR or the bundled schemas)',
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable debug logging',
    )

    args = parser.parse_args(argv)
    configure_checker_logging(args.verbose)

    if not args.paths:
        args.paths = ['.']

    ubml_files = find_ubml_files(args.paths)

    if not ubml_files:
        print("No UBML files found.", file=sys.stderr)
        sys.exit(EXIT_ERRORS)

    try:
        report = check_files(ubml_files, schema_dir=args.schema_dir, suppress_unused=args.suppress_unused)
    except (SchemaAuthoringError, SchemaLoadError) as e:
        print(str(e), file=sys.stderr)
        sys.exit(EXIT_SCHEMA_ERROR)

    if args.format == 'json':
        print(json.dumps(report.to_dict(), indent=2))
    else:  # human-readable
        for result in report.documents:
            if result.errors or result.warnings:
                print(f"\n{result.document}:")
                for issue in result.errors + result.warnings:
                    print(_format_issue(issue))
        if report.workspace_warnings:
            print("\nworkspace:")
            for issue in report.workspace_warnings:
                print(_format_issue(issue))
        print(
            f"\n{len(report.documents)} files checked: "
            f"{report.error_count} errors, {report.warning_count} warnings"
        )

    if report.error_count > 0:
        sys.exit(EXIT_ERRORS)
    sys.exit(EXIT_OK)


if __name__ == '__main__':
    main()

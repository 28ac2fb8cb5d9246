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

"""Format version utilities for UBML documents.

The ``ubml`` key at the root of every document declares which schema version
the document conforms to (e.g. ``1.0``). Schema corpora are stored in
directories named after the same version.

Compatibility rule:
  * **Major** must match exactly - a mismatch is an error.
  * **Minor** of the document newer than the tool → warning.
  * A trailing patch component is accepted and ignored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional

from .. import SCHEMA_VERSION
from ..exceptions import FormatVersionError


_VERSION_RE = re.compile(r"^v?(\d+)\.(\d+)(?:\.(\d+))?$")


@dataclass(frozen=True)
class SchemaVersion:
    """A parsed ``MAJOR.MINOR`` schema version."""

    major: int
    minor: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"


def parse_format_version(raw: Any) -> SchemaVersion:
    """Parse a version like ``1.0`` (``v`` prefix and patch part allowed).

    YAML decodes an unquoted ``ubml: 1.0`` as a float, so numbers are accepted
    and read back through their string form.

    Raises:
        FormatVersionError: If the value cannot be parsed.
    """
    if isinstance(raw, (int, float)) and not isinstance(raw, bool):
        raw = str(raw)
    if not isinstance(raw, str):
        raise FormatVersionError(
            f"Format version must be a string, got {type(raw).__name__}: {raw!r}"
        )

    m = _VERSION_RE.match(raw.strip())
    if m is None:
        raise FormatVersionError(
            f"Invalid format version string: '{raw}'. Expected 'MAJOR.MINOR' (e.g. '{SCHEMA_VERSION}')."
        )
    return SchemaVersion(int(m.group(1)), int(m.group(2)))


def get_supported_format_version() -> SchemaVersion:
    """Return the format version supported by this package."""
    return parse_format_version(SCHEMA_VERSION)


@dataclass(frozen=True)
class VersionCheckResult:
    """Result of a format-version compatibility check."""

    compatible: bool
    message: str
    file_version: Optional[SchemaVersion] = None
    supported_version: Optional[SchemaVersion] = None
    minor_newer: bool = False
    missing: bool = False


def check_format_version(raw_version: Any) -> VersionCheckResult:
    """Check whether *raw_version* is compatible with this package.

    * Missing version → compatible, ``missing=True``.
    * Same major and document minor ≤ supported minor → compatible.
    * Major mismatch or unparseable value → incompatible.
    * Document minor > supported minor → compatible with ``minor_newer=True``.
    """
    supported = get_supported_format_version()

    if raw_version is None:
        return VersionCheckResult(
            compatible=True,
            missing=True,
            message=f"Missing 'ubml' version field. Consider adding 'ubml: \"{supported}\"'.",
            supported_version=supported,
        )

    try:
        file_ver = parse_format_version(raw_version)
    except FormatVersionError as exc:
        return VersionCheckResult(compatible=False, message=str(exc), supported_version=supported)

    if file_ver.major != supported.major:
        return VersionCheckResult(
            compatible=False,
            message=(
                f"Incompatible format version: document declares {file_ver} "
                f"but this tool supports major version {supported.major} (supported: {supported})."
            ),
            file_version=file_ver,
            supported_version=supported,
        )

    if file_ver.minor > supported.minor:
        return VersionCheckResult(
            compatible=True,
            minor_newer=True,
            message=(
                f"Format version {file_ver} is newer than the supported {supported}. "
                f"Some features may not be validated."
            ),
            file_version=file_ver,
            supported_version=supported,
        )

    return VersionCheckResult(
        compatible=True,
        message=f"Format version {file_ver} is compatible (supported: {supported}).",
        file_version=file_ver,
        supported_version=supported,
    )

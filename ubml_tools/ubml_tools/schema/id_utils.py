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

"""Formatting and parsing of UBML identifiers (``AC00001``, ``PR01000``, ...)."""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional, Pattern, Tuple

_ID_PARTS_RE = re.compile(r"([A-Z]+)([0-9]+)")


@dataclass(frozen=True)
class IdConfig:
    """Global identifier format.

    ``init_offset`` is the first number used in a fresh document and
    ``add_offset`` the first one used when appending to an existing document,
    so the two ranges do not collide.
    """

    digit_length: int = 5
    init_offset: int = 1
    add_offset: int = 1000

    @classmethod
    def from_schema(cls, raw: Optional[Dict[str, Any]]) -> "IdConfig":
        """Build from an ``x-ubml-id-config`` mapping; absent keys keep their defaults."""
        if not isinstance(raw, dict):
            return cls()
        defaults = cls()
        return cls(
            digit_length=int(raw.get("digitLength", defaults.digit_length)),
            init_offset=int(raw.get("initOffset", defaults.init_offset)),
            add_offset=int(raw.get("addOffset", defaults.add_offset)),
        )


def format_id(prefix: str, number: int, digit_length: int = 5) -> str:
    """``format_id("AC", 1)`` -> ``"AC00001"``."""
    return f"{prefix}{number:0{digit_length}d}"


def split_id(value: str) -> Optional[Tuple[str, int]]:
    m = _ID_PARTS_RE.fullmatch(value)
    if not m:
        return None
    return m.group(1), int(m.group(2))


def parse_id_number(value: str) -> Optional[int]:
    """``parse_id_number("PR01000")`` -> ``1000``."""
    parts = split_id(value)
    return parts[1] if parts else None


def next_id(prefix: str, existing_ids: Iterable[str], start: int = 1, digit_length: int = 5) -> str:
    """First ID for ``prefix`` counting up from ``start`` that is not in ``existing_ids``."""
    taken = set(existing_ids)
    number = start
    candidate = format_id(prefix, number, digit_length)
    while candidate in taken:
        number += 1
        candidate = format_id(prefix, number, digit_length)
    return candidate


def build_id_pattern(prefixes: Iterable[str], digit_length: int) -> Pattern[str]:
    """Combined pattern ``(P1|P2|...)[0-9]{N,}`` matching any known identifier.

    Use with ``fullmatch``: ASCII digits only, and no trailing newline.
    """
    alternatives = "|".join(re.escape(p) for p in prefixes)
    if not alternatives:
        # no identifier families: match nothing
        return re.compile(r"(?!)")
    return re.compile(rf"({alternatives})[0-9]{{{digit_length},}}")

"""Template rendering utilities for consistent Jinja2 rendering across the project."""

from __future__ import annotations

import json
import os

import yaml
from jinja2 import Environment, FileSystemLoader


def _get_template_directories() -> list[str]:
    """Resolve template search paths.

    Templates are shipped as package data, so the in-package directory works for
    both a source checkout and an installed distribution.
    """

    # Base dir is .../ubml_tools/file_io
    base_dir = os.path.dirname(os.path.abspath(__file__))
    core_template_dir = os.path.abspath(os.path.join(base_dir, "../template/templates"))

    if os.path.exists(core_template_dir):
        return [core_template_dir]
    return []


def toyaml_filter(value) -> str:
    """Jinja2 filter rendering a value as YAML.

    Scalars are emitted as JSON literals, which are valid inline YAML; mappings
    and sequences as an unindented block.
    """

    if isinstance(value, (dict, list)):
        return yaml.safe_dump(value, default_flow_style=False, sort_keys=False, allow_unicode=True).rstrip("\n")
    return json.dumps(value, ensure_ascii=False)


def first_line_filter(value) -> str:
    return str(value or "").strip().split("\n", 1)[0]


class TemplateRenderer:
    """Unified template rendering utility."""

    def __init__(self, template_dir: str | list[str] | None = None):
        if template_dir is None:
            template_dirs = _get_template_directories()
        elif isinstance(template_dir, str):
            template_dirs = [template_dir]
        else:
            template_dirs = list(template_dir)

        self.template_dirs = template_dirs
        self.env = Environment(
            loader=FileSystemLoader(self.template_dirs),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            newline_sequence="\n",
            autoescape=False,
        )
        self.env.filters["toyaml"] = toyaml_filter
        self.env.filters["first_line"] = first_line_filter

    def render_template(self, template_name: str, **kwargs) -> str:
        template = self.env.get_template(template_name)
        return template.render(**kwargs)


"""File-facing helpers: source positions for diagnostics and template rendering."""

from .source_location import SourceLocation, SourceLocationResolver, offset_to_line_column
from .template_renderer import TemplateRenderer

__all__ = [
    "SourceLocation",
    "SourceLocationResolver",
    "offset_to_line_column",
    "TemplateRenderer",
]

"""Generation of new UBML documents from the schema corpus."""

from .document_template_generator import DocumentTemplateGenerator, TemplateSection

__all__ = ["DocumentTemplateGenerator", "TemplateSection"]

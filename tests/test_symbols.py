import pytest

from ubml_tools.models.document import ParsedDocument
from ubml_tools.validation.issues import (
    DUPLICATE_ID,
    UNDEFINED_REFERENCE,
    UNUSED_DEFINITION,
    Severity,
)
from ubml_tools.validation.symbols import (
    SymbolValidator,
    document_key,
    iter_defined_ids,
    iter_referenced_ids,
)

ACTORS = """
ubml: "1.0"
name: Actors
actors:
  AC00001:
    name: Owner
    kind: role
"""

WORKSPACE = """
ubml: "1.0"
name: Acme
organization:
  name: Acme Corp
  sponsor: AC00001
"""


@pytest.fixture
def validator(catalog):
    return SymbolValidator(catalog)


def codes(issues):
    return [issue.code for issue in issues]


class TestCrossDocumentReferences:
    def test_defined_and_referenced_is_clean(self, validator, parse):
        docs = [parse(ACTORS, "actors.ubml.yaml"), parse(WORKSPACE, "workspace.ubml.yaml")]
        result = validator.validate(docs)
        assert result.valid
        assert result.errors == []
        assert result.warnings == []
        assert set(result.defined_ids) == {"AC00001"}
        assert result.referenced_ids["AC00001"].occurrences == [("workspace.ubml.yaml", ("organization", "sponsor"))]

    def test_defined_but_unreferenced_warns(self, validator, parse):
        result = validator.validate([parse(ACTORS, "actors.ubml.yaml")])
        assert result.valid
        assert result.errors == []
        [warning] = result.warnings
        assert warning.severity is Severity.WARNING
        assert warning.code == UNUSED_DEFINITION
        assert warning.document == "actors.ubml.yaml"
        assert warning.path == ("actors", "AC00001")
        assert warning.message == 'ID "AC00001" is defined but never referenced'
        assert (warning.line, warning.column) == (5, 5)

    def test_reference_without_definition_fails(self, validator, parse):
        result = validator.validate([parse(WORKSPACE, "workspace.ubml.yaml")])
        assert not result.valid
        [error] = result.errors
        assert error.code == UNDEFINED_REFERENCE
        assert error.message == 'Reference to undefined ID "AC00001"'
        assert error.path == ("organization", "sponsor")
        assert (error.line, error.column) == (5, 12)
        assert "AC00001" in error.suggestion
        assert result.warnings == []

    def test_suppress_unused(self, validator, parse):
        result = validator.validate([parse(ACTORS, "actors.ubml.yaml")], suppress_unused=True)
        assert result.warnings == []

    def test_validation_is_repeatable(self, validator, parse):
        docs = [parse(ACTORS, "actors.ubml.yaml"), parse(WORKSPACE, "workspace.ubml.yaml")]
        first = validator.validate(docs)
        second = validator.validate(docs)
        assert first.issues == second.issues


class TestDuplicates:
    PROCESS_X = """
    ubml: "1.0"
    processes:
      PR00001:
        name: Original
    """

    PROCESS_Y = """
    ubml: "1.0"
    processes:
      PR00001:
        name: Copy
    """

    def test_duplicate_across_documents(self, validator, parse):
        docs = [parse(self.PROCESS_X, "x.process.ubml.yaml"), parse(self.PROCESS_Y, "y.process.ubml.yaml")]
        result = validator.validate(docs, suppress_unused=True)
        [error] = result.errors
        assert error.code == DUPLICATE_ID
        assert error.document == "y.process.ubml.yaml"
        assert error.message == 'Duplicate ID "PR00001" (also defined in x.process.ubml.yaml at /processes/PR00001)'
        assert result.defined_ids["PR00001"].document == "x.process.ubml.yaml"

    def test_every_duplicate_cites_the_first_definition(self, validator, parse):
        docs = [
            parse(self.PROCESS_X, "x.process.ubml.yaml"),
            parse(self.PROCESS_Y, "y.process.ubml.yaml"),
            parse(self.PROCESS_Y, "z.process.ubml.yaml"),
        ]
        result = validator.validate(docs, suppress_unused=True)
        assert [e.document for e in result.errors] == ["y.process.ubml.yaml", "z.process.ubml.yaml"]
        for error in result.errors:
            assert "also defined in x.process.ubml.yaml" in error.message

    def test_duplicate_inside_one_document(self, validator, parse):
        doc = parse(
            """
            ubml: "1.0"
            processes:
              PR00001:
                name: Outer
                steps:
                  ST00001:
                    name: First
                    loop:
                      steps:
                        ST00001:
                          name: Again
            """,
            "p.process.ubml.yaml",
        )
        result = validator.validate([doc], suppress_unused=True)
        [error] = result.errors
        assert error.path == ("processes", "PR00001", "steps", "ST00001", "loop", "steps", "ST00001")
        assert "/processes/PR00001/steps/ST00001)" in error.message
        assert error.line == 11

    def test_order_decides_the_original(self, validator, parse):
        docs = [parse(self.PROCESS_Y, "y.process.ubml.yaml"), parse(self.PROCESS_X, "x.process.ubml.yaml")]
        [error] = validator.validate(docs, suppress_unused=True).errors
        assert error.document == "x.process.ubml.yaml"


class TestUndefinedReferences:
    def test_one_error_per_document_at_first_occurrence(self, validator, parse):
        first = parse(
            """
            ubml: "1.0"
            processes:
              PR00001:
                owner: AC00009
                steps:
                  ST00001:
                    performer: AC00009
            """,
            "a.process.ubml.yaml",
        )
        second = parse(
            """
            ubml: "1.0"
            kpis:
              KP00001:
                owner: AC00009
            """,
            "b.metrics.ubml.yaml",
        )
        result = validator.validate([first, second], suppress_unused=True)
        undefined = [e for e in result.errors if e.code == UNDEFINED_REFERENCE]
        assert [(e.document, e.path) for e in undefined] == [
            ("a.process.ubml.yaml", ("processes", "PR00001", "owner")),
            ("b.metrics.ubml.yaml", ("kpis", "KP00001", "owner")),
        ]
        assert len(result.referenced_ids["AC00009"].occurrences) == 3

    def test_list_references(self, validator, parse):
        doc = parse(
            """
            ubml: "1.0"
            processes:
              PR00001:
                steps:
                  ST00001:
                    raci:
                      responsible: [AC00001, AC00002]
                    next: [ST00001]
            """,
            "p.process.ubml.yaml",
        )
        result = validator.validate([doc], suppress_unused=True)
        paths = [e.path for e in result.errors]
        assert paths == [
            ("processes", "PR00001", "steps", "ST00001", "raci", "responsible", 0),
            ("processes", "PR00001", "steps", "ST00001", "raci", "responsible", 1),
        ]
        assert result.errors[1].line == 7

    def test_identifier_in_non_reference_field_is_not_a_reference(self, validator, parse):
        doc = parse(
            """
            ubml: "1.0"
            name: AC00001
            description: mentions AC00002
            tags: [AC00003]
            """,
            "w.workspace.ubml.yaml",
        )
        result = validator.validate([doc])
        assert result.referenced_ids == {}
        assert result.errors == []

    def test_malformed_identifier_is_ignored(self, validator, parse):
        doc = parse(
            """
            ubml: "1.0"
            organization:
              sponsor: AC1
            """,
            "workspace.ubml.yaml",
        )
        assert validator.validate([doc]).issues == []

    def test_block_scalar_with_trailing_newline_is_not_an_identifier(self, validator, parse):
        workspace = parse(
            """
            ubml: "1.0"
            organization:
              sponsor: |
                AC00001
            """,
            "workspace.ubml.yaml",
        )
        assert workspace.content["organization"]["sponsor"] == "AC00001\n"
        result = validator.validate([parse(ACTORS, "actors.ubml.yaml"), workspace])
        assert result.errors == []
        assert result.referenced_ids == {}
        assert codes(result.warnings) == [UNUSED_DEFINITION]

    def test_non_ascii_digits_are_not_identifiers(self, validator, parse):
        doc = parse(
            """
            ubml: "1.0"
            actors:
              AC٠٠٠٠١:
                name: Owner
            organization:
              sponsor: AC٠٠٠٠٢
            """,
            "workspace.ubml.yaml",
        )
        result = validator.validate([doc])
        assert result.defined_ids == {}
        assert result.referenced_ids == {}
        assert result.issues == []


class TestDocumentKeys:
    def test_unnamed_documents_are_numbered(self, validator):
        docs = [
            ParsedDocument(source="", content={"actors": {"AC00001": {}}}),
            ParsedDocument(source="", content={"organization": {"sponsor": "AC00002"}}),
        ]
        result = validator.validate(docs)
        assert result.warnings[0].document == "<document 1>"
        assert result.errors[0].document == "<document 2>"
        # no node tree, so no position
        assert result.errors[0].line is None

    def test_document_key(self):
        assert document_key(ParsedDocument(source="", content={}, filename="a.ubml.yaml"), 3) == "a.ubml.yaml"
        assert document_key(ParsedDocument(source="", content={}), 3) == "<document 4>"


def test_walkers_visit_sequences(catalog):
    content = {"items": [{"AC00001": {"reportsTo": "AC00002"}}]}
    assert list(iter_defined_ids(content, catalog)) == [("AC00001", ("items", 0, "AC00001"))]
    assert list(iter_referenced_ids(content, catalog)) == [("AC00002", ("items", 0, "AC00001", "reportsTo"))]

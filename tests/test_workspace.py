from ubml_tools.models.document import ParsedDocument
from ubml_tools.validation.issues import (
    MISSING_ACTORS,
    MISSING_WORKSPACE,
    MULTIPLE_SINGLETON,
    SUGGEST_GLOSSARY,
    Severity,
)
from ubml_tools.validation.workspace import (
    CATALOG,
    MULTIPLE,
    SINGLETON,
    get_document_multiplicity,
    validate_workspace_structure,
)


def doc(filename, document_type):
    return ParsedDocument(source="", content={}, filename=filename, document_type=document_type)


def codes(result):
    return [w.code for w in result.warnings]


def test_complete_workspace_has_no_warnings():
    result = validate_workspace_structure(
        [doc("workspace.ubml.yaml", "workspace"), doc("actors.ubml.yaml", "actors"), doc("a.process.ubml.yaml", "process")]
    )
    assert result.valid
    assert result.warnings == []
    assert result.document_types == {
        "workspace": ["workspace.ubml.yaml"],
        "actors": ["actors.ubml.yaml"],
        "process": ["a.process.ubml.yaml"],
    }


def test_missing_workspace():
    result = validate_workspace_structure([doc("actors.ubml.yaml", "actors")])
    [warning] = result.warnings
    assert warning.code == MISSING_WORKSPACE
    assert warning.severity is Severity.WARNING
    assert warning.message == "No workspace file found"


def test_empty_input_only_misses_workspace():
    assert codes(validate_workspace_structure([])) == [MISSING_WORKSPACE]


def test_multiple_singletons_list_their_files():
    result = validate_workspace_structure(
        [
            doc("workspace.ubml.yaml", "workspace"),
            doc("a.glossary.ubml.yaml", "glossary"),
            doc("b.glossary.ubml.yaml", "glossary"),
        ]
    )
    [warning] = result.warnings
    assert warning.code == MULTIPLE_SINGLETON
    assert warning.message == "Multiple glossary files found (expected single file)"
    assert warning.files == ("a.glossary.ubml.yaml", "b.glossary.ubml.yaml")


def test_catalog_types_may_repeat():
    result = validate_workspace_structure(
        [doc("workspace.ubml.yaml", "workspace"), doc("a.actors.ubml.yaml", "actors"), doc("b.actors.ubml.yaml", "actors")]
    )
    assert result.warnings == []


def test_processes_without_actors():
    result = validate_workspace_structure(
        [doc("workspace.ubml.yaml", "workspace"), doc("a.process.ubml.yaml", "process"), doc("b.process.ubml.yaml", "process")]
    )
    [warning] = result.warnings
    assert warning.code == MISSING_ACTORS
    assert warning.files == ("a.process.ubml.yaml", "b.process.ubml.yaml")


def test_glossary_suggested_for_larger_workspaces():
    docs = [doc("workspace.ubml.yaml", "workspace"), doc("actors.ubml.yaml", "actors")]
    docs += [doc(f"p{i}.process.ubml.yaml", "process") for i in range(2)]
    assert SUGGEST_GLOSSARY not in codes(validate_workspace_structure(docs))

    docs.append(doc("p2.process.ubml.yaml", "process"))
    assert codes(validate_workspace_structure(docs)) == [SUGGEST_GLOSSARY]

    docs.append(doc("glossary.ubml.yaml", "glossary"))
    assert validate_workspace_structure(docs).warnings == []


def test_undetected_documents_still_count_towards_size():
    docs = [doc("workspace.ubml.yaml", "workspace")] + [doc(f"n{i}.yaml", None) for i in range(4)]
    result = validate_workspace_structure(docs)
    assert codes(result) == [SUGGEST_GLOSSARY]
    assert list(result.document_types) == ["workspace"]


def test_multiplicity_table():
    assert get_document_multiplicity("workspace") == SINGLETON
    assert get_document_multiplicity("actors") == CATALOG
    assert get_document_multiplicity("process") == MULTIPLE

import json

import pytest

from conftest import dedent
from ubml_tools.checker import check_files
from ubml_tools.checker import run_check
from ubml_tools.checker.run_check import EXIT_ERRORS, EXIT_OK, EXIT_SCHEMA_ERROR, find_ubml_files, main

ACTORS = """
ubml: "1.0"
actors:
  AC00001:
    name: Owner
    kind: role
"""

WORKSPACE = """
ubml: "1.0"
name: Acme
organization:
  sponsor: AC00001
"""


@pytest.fixture(autouse=True)
def no_logging_setup(monkeypatch):
    # root handlers would otherwise keep pointing at capsys streams after the test
    monkeypatch.setattr(run_check, "configure_checker_logging", lambda verbose=False: None)


def run(argv):
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def test_find_ubml_files(write_files, tmp_path, capsys):
    write_files({"a/actors.ubml.yaml": ACTORS, "b/workspace.ubml.yml": WORKSPACE, "notes.yaml": "x: 1\n"})
    found = find_ubml_files([str(tmp_path), str(tmp_path / "notes.yaml"), str(tmp_path / "missing")])
    assert found == [tmp_path / "a" / "actors.ubml.yaml", tmp_path / "b" / "workspace.ubml.yml"]
    err = capsys.readouterr().err
    assert "does not match UBML file pattern" in err
    assert "does not exist" in err


def test_clean_workspace_exits_zero(write_files, tmp_path, capsys):
    write_files({"actors.ubml.yaml": ACTORS, "workspace.ubml.yaml": WORKSPACE})
    assert run([str(tmp_path)]) == EXIT_OK
    out = capsys.readouterr().out
    assert "2 files checked: 0 errors, 0 warnings" in out


def test_errors_exit_one_with_positions(write_files, tmp_path, capsys):
    write_files({"workspace.ubml.yaml": WORKSPACE})
    assert run([str(tmp_path)]) == EXIT_ERRORS
    out = capsys.readouterr().out
    assert 'ERROR:4:12: Reference to undefined ID "AC00001" [ubml/undefined-reference]' in out
    assert "(yaml_path=/organization/sponsor)" in out


def test_malformed_identifier_shows_hint(write_files, tmp_path, capsys):
    write_files({"workspace.ubml.yaml": WORKSPACE.replace("AC00001", "AC1")})
    assert run([str(tmp_path)]) == EXIT_ERRORS
    out = capsys.readouterr().out
    assert "[schema/pattern] (yaml_path=/organization/sponsor)" in out
    assert "hint: Actor IDs are AC followed by at least 5 digits, e.g. AC00001" in out


def test_json_output(write_files, tmp_path, capsys):
    write_files({"actors.ubml.yaml": ACTORS})
    assert run(["--format", "json", str(tmp_path)]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["files"] == 1
    assert data["errors"] == 0
    [result] = data["results"]
    assert [w["code"] for w in result["warnings"]] == ["ubml/unused-definition"]
    assert [w["code"] for w in data["workspace"]] == ["ubml/missing-workspace"]


def test_suppress_unused_flag(write_files, tmp_path, capsys):
    write_files({"actors.ubml.yaml": ACTORS})
    assert run(["--format", "json", "--suppress-unused", str(tmp_path)]) == EXIT_OK
    data = json.loads(capsys.readouterr().out)
    assert data["results"][0]["warnings"] == []


def test_no_files(tmp_path, capsys):
    assert run([str(tmp_path)]) == EXIT_ERRORS
    assert "No UBML files found." in capsys.readouterr().err


def test_broken_schema_corpus_exits_two(write_files, tmp_path, capsys):
    write_files(
        {
            "docs/actors.ubml.yaml": ACTORS,
            "schemas/defs/refs.defs.yaml": """
            $defs:
              ActorRef:
                type: string
                pattern: '^AC\\d{5,}$'
            """,
        }
    )
    code = run(["--schema-dir", str(tmp_path / "schemas"), str(tmp_path / "docs")])
    assert code == EXIT_SCHEMA_ERROR
    err = capsys.readouterr().err
    assert "missing required x-ubml metadata" in err
    assert "ActorRef: missing prefix" in err


def test_missing_schema_dir_exits_two(write_files, tmp_path, capsys):
    write_files({"actors.ubml.yaml": ACTORS})
    assert run(["--schema-dir", str(tmp_path / "nowhere"), str(tmp_path)]) == EXIT_SCHEMA_ERROR
    assert "Schema directory not found" in capsys.readouterr().err


def test_check_files_reports_unreadable_file(tmp_path):
    path = tmp_path / "gone.actors.ubml.yaml"
    report = check_files([path])
    [result] = report.documents
    assert [e.code for e in result.errors] == ["io/read-error"]
    assert result.document == str(path)

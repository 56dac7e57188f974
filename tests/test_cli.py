import json
import sqlite3

import pytest

from search_sets.cli import build_parser, main


def test_parser_defaults():
    args = build_parser().parse_args(["element-sets", "--files", "a.ifc", "--database", "s.db"])

    assert args.parameter == "Category"
    assert args.duplicates == "append"
    assert args.disciplines is None


def test_parser_rejects_unknown_parameter():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["element-sets", "--parameter", "Colour",
                                   "--files", "a.ifc", "--database", "s.db"])


def test_list_missing_database(tmp_path, capsys):
    assert main(["list", "--database", str(tmp_path / "missing.db")]) == 1
    assert "Database not found" in capsys.readouterr().out


def test_missing_input_file(tmp_path, capsys):
    code = main(["disciplines", "--files", str(tmp_path / "missing.ifc"),
                 "--database", str(tmp_path / "sets.db")])

    assert code == 1
    assert "File not found" in capsys.readouterr().out


@pytest.fixture
def federation_files(tmp_path):
    pytest.importorskip("ifcopenshell")
    from conftest import write_ifc_model

    paths = []
    for name, workset in (("Tower_ARCH_01.ifc", "Shell"), ("Tower_STRC_01.ifc", "Frame")):
        path = tmp_path / name
        write_ifc_model(path, "Tower", workset=workset)
        paths.append(str(path))
    return paths


def test_full_run(tmp_path, capsys, federation_files):
    database = str(tmp_path / "sets.db")
    common = ["--files", *federation_files, "--database", database]
    report = tmp_path / "report.json"

    assert main(["disciplines", *common]) == 0
    assert main(["element-sets", "--parameter", "Workset", *common, "--report", str(report)]) == 0
    assert main(["scan", *common, "--disciplines", "ARCH"]) == 0
    assert main(["custom-sets", "--category", "Pset_WallCommon", "--attribute", "FireRating",
                 *common, "--disciplines", "STRC"]) == 0

    data = json.loads(report.read_text())
    assert data["status"] == "completed"
    assert data["operation"] == "element_sets"
    assert data["disciplines"] == {"ARCH": 1, "STRC": 1}

    capsys.readouterr()
    assert main(["list", "--database", database]) == 0
    out = capsys.readouterr().out
    assert "[1. DISCIPLINES]" in out
    assert "[2. CLASH SETS]" in out
    assert "[3. CUSTOM SETS]" in out
    assert "Frame" in out


def test_errors_are_reported(tmp_path, capsys, federation_files):
    report = tmp_path / "report.json"

    code = main(["element-sets", "--files", *federation_files,
                 "--database", str(tmp_path / "sets.db"), "--report", str(report)])

    assert code == 1
    assert "ERROR: Please create discipline search sets first" in capsys.readouterr().out
    assert json.loads(report.read_text())["status"] == "failed"


def test_unsupported_database_is_reported(tmp_path, capsys, federation_files):
    database = tmp_path / "sets.db"
    assert main(["disciplines", "--files", *federation_files, "--database", str(database)]) == 0

    conn = sqlite3.connect(database)
    conn.execute("UPDATE schema_info SET value = '0.1.0' WHERE key = 'version'")
    conn.commit()
    conn.close()
    capsys.readouterr()

    assert main(["disciplines", "--files", *federation_files, "--database", str(database)]) == 1
    assert "ERROR: ValueError: Unsupported set store schema version 0.1.0" in capsys.readouterr().out

    assert main(["list", "--database", str(database)]) == 1
    assert "ERROR: Unsupported set store schema version" in capsys.readouterr().out


def test_unreadable_model_is_reported(tmp_path, capsys, federation_files, monkeypatch):
    import ifcopenshell

    def unreadable(path, *args, **kwargs):
        raise RuntimeError(f"Unable to parse {path}")

    monkeypatch.setattr(ifcopenshell, "open", unreadable)
    report = tmp_path / "report.json"

    code = main(["disciplines", "--files", *federation_files,
                 "--database", str(tmp_path / "sets.db"), "--report", str(report)])

    assert code == 1
    assert "ERROR: RuntimeError: Unable to parse" in capsys.readouterr().out
    assert json.loads(report.read_text())["error"].startswith("RuntimeError")

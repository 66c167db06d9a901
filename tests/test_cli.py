"""
Tests for buildora/cli.py — end-to-end through main(argv).

Each test points --db at its own tmp_path database.
"""
from __future__ import annotations

import re
import zipfile

import pytest

from buildora.cli import build_parser, main


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ("BUILDORA_DB_PATH", "BUILDORA_EXPORT_DIR", "BUILDORA_COMPRESSION_LEVEL",
                "BUILDORA_STRICT_DATA_URIS", "BUILDORA_NAME_CONFLICTS"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def db(tmp_path):
    return str(tmp_path / "projects.db")


def _run(capsys, db, *argv) -> tuple[int, str, str]:
    code = main(["--db", db, *argv])
    out, err = capsys.readouterr()
    return code, out, err


def _new_project(capsys, db, name="My Site") -> str:
    code, out, _ = _run(capsys, db, "new", name)
    assert code == 0
    return re.search(r"Created project (\w+) \(", out).group(1)


def _id_from(out: str) -> str:
    return re.search(r"\((\w+)\)\s*$", out.strip()).group(1)


# ── Parser ────────────────────────────────────────────────────────────────────

def test_subcommand_required():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_add_content_sources_are_exclusive():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["add", "p", "a.html", "--content", "x", "--from-file", "y"])


# ── Project lifecycle ─────────────────────────────────────────────────────────

def test_new_list_show(capsys, db):
    pid = _new_project(capsys, db)

    code, out, _ = _run(capsys, db, "list")
    assert code == 0
    assert pid in out and "My Site" in out

    code, out, _ = _run(capsys, db, "show", pid)
    assert code == 0
    assert "index.html  [html]" in out
    assert "style.css  [css]" in out


def test_list_empty(capsys, db):
    code, out, _ = _run(capsys, db, "list")
    assert code == 0
    assert "No saved projects." in out


def test_tree_mutations(capsys, db):
    pid = _new_project(capsys, db)

    code, out, _ = _run(capsys, db, "mkdir", pid, "pages")
    assert code == 0
    pages = _id_from(out)

    code, out, _ = _run(capsys, db, "add", pid, "about.html", "--content", "<h1>About</h1>",
                        "--parent", pages)
    assert code == 0
    assert "Added pages/about.html" in out
    about = _id_from(out)

    code, out, _ = _run(capsys, db, "rename", pid, about, "team.html")
    assert out.strip() == "Renamed to pages/team.html"

    code, out, _ = _run(capsys, db, "mv", pid, about, "root")
    assert out.strip() == "Moved to team.html"

    code, out, _ = _run(capsys, db, "rm", pid, pages)
    assert out.strip() == "Removed 1 node(s)"

    _, out, _ = _run(capsys, db, "show", pid)
    assert "team.html" in out
    assert "pages/" not in out


def test_import_command(capsys, db, tmp_path):
    pid = _new_project(capsys, db)
    logo = tmp_path / "logo.png"
    logo.write_bytes(b"\x89PNG\r\n\x1a\n")

    code, out, _ = _run(capsys, db, "import", pid, str(logo))
    assert code == 0
    assert "[100%] logo.png" in out
    assert "Imported 1 node(s)" in out


def test_duplicate_and_delete(capsys, db):
    pid = _new_project(capsys, db)

    code, out, _ = _run(capsys, db, "duplicate", pid)
    assert code == 0
    assert "(My Site Copy)" in out

    code, out, _ = _run(capsys, db, "delete", pid)
    assert code == 0
    code, _, err = _run(capsys, db, "show", pid)
    assert code == 1
    assert "No project with id" in err


def test_load_manifest(capsys, db, tmp_path):
    manifest = tmp_path / "site.yaml"
    manifest.write_text("name: From YAML\nfiles:\n  - path: index.html\n    content: hi\n",
                        encoding="utf-8")
    code, out, _ = _run(capsys, db, "load", str(manifest))
    assert code == 0
    assert "(From YAML, 1 files)" in out


# ── Export ────────────────────────────────────────────────────────────────────

def test_export(capsys, db, tmp_path):
    pid = _new_project(capsys, db)
    out_dir = tmp_path / "out"

    code, out, _ = _run(capsys, db, "export", pid, "--output-dir", str(out_dir))

    assert code == 0
    assert "Export successful" in out
    with zipfile.ZipFile(out_dir / "My Site.zip") as zf:
        assert sorted(zf.namelist()) == [
            "My Site/", "My Site/index.html", "My Site/script.js", "My Site/style.css",
        ]


def test_export_single_file(capsys, db, tmp_path):
    pid = _new_project(capsys, db)
    out_dir = tmp_path / "out"

    code, _, _ = _run(capsys, db, "export", pid, "--single-file", "-o", str(out_dir))

    assert code == 0
    with zipfile.ZipFile(out_dir / "My Site.zip") as zf:
        assert zf.namelist() == ["My Site/", "My Site/index.html"]


# ── Errors ────────────────────────────────────────────────────────────────────

def test_duplicate_name_is_reported(capsys, db):
    pid = _new_project(capsys, db)
    code, _, err = _run(capsys, db, "add", pid, "index.html")
    assert code == 1
    assert "ERROR: 'index.html' already exists" in err


def test_single_file_export_without_index(capsys, db, tmp_path):
    pid = _new_project(capsys, db)
    _, out, _ = _run(capsys, db, "show", pid)
    index_id = re.search(r"index\.html  \[html\]  \((\w+)\)", out).group(1)
    _run(capsys, db, "rm", pid, index_id)

    code, _, err = _run(capsys, db, "export", pid, "--single-file", "-o", str(tmp_path))
    assert code == 1
    assert "must contain 'index.html'" in err


def test_unknown_file_id(capsys, db):
    pid = _new_project(capsys, db)
    code, _, err = _run(capsys, db, "rm", pid, "missing")
    assert code == 1
    assert "No file with id 'missing'" in err

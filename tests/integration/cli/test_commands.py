"""Integration tests for the CLI commands (check, commit, list, history, diff, export)"""

import json

import pytest
from typer.testing import CliRunner

from tiplint.cli.cli import app


TIP = """\
---
title: "Tip of the Week #{order}"
layout: tips
sidenav: side-nav-tips.html
published: true
permalink: tips/{order}
type: markdown
order: "{order}"
---

{body}
"""


@pytest.fixture(name="runner")
def runner_fixture():
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run from tmp_path with a throwaway catalog database."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("TIPLINT_DB_URL", f"sqlite:///{tmp_path}/test.db")
    for name in ("FAIL_ON", "DISABLED_RULES", "INCLUDES_DIR", "OUTPUT_DIR", "MAX_VERSIONS"):
        monkeypatch.delenv(f"TIPLINT_{name}", raising=False)


@pytest.fixture(name="content")
def content_fixture(tmp_path):
    root = tmp_path / "content"
    root.mkdir()
    (root / "001.md").write_text(TIP.format(order="1", body="First tip."))
    (root / "002.md").write_text(TIP.format(order="2", body="Second tip."))
    return root


def test_check_clean(runner, content):
    result = runner.invoke(app, ["check", str(content)])
    assert result.exit_code == 0, result.output
    assert "Checked 2 file(s): 0 error(s), 0 warning(s)" in result.output


def test_check_reports_errors_and_fails(runner, content):
    (content / "003.md").write_text(TIP.format(order="1", body="```c++\nint x;\n"))
    result = runner.invoke(app, ["check", str(content)])
    assert result.exit_code == 1
    assert "[permalink-duplicate]" in result.output
    assert "[fence-unclosed]" in result.output
    assert "003.md:11: error [fence-unclosed]" in result.output


def test_check_fail_on_warning(runner, content):
    (content / "003.md").write_text("---\ntitle: T\nlayout: tips\npermalink: tips/3\n---\nBody\n")
    assert runner.invoke(app, ["check", str(content)]).exit_code == 0
    result = runner.invoke(app, ["check", str(content), "--fail-on", "warning"])
    assert result.exit_code == 1
    assert "[order-missing]" in result.output


def test_check_disable_rule(runner, content):
    (content / "003.md").write_text("---\ntitle: T\nlayout: tips\n---\nBody\n")
    result = runner.invoke(app, ["check", str(content), "--disable", "permalink-missing", "--disable", "order-missing"])
    assert result.exit_code == 0, result.output


def test_check_rejects_unknown_rule_id(runner, content):
    result = runner.invoke(app, ["check", str(content), "--disable", "bogus-rule"])
    assert result.exit_code == 1
    assert "Unknown rule id(s): bogus-rule" in result.output


def test_check_includes_dir(runner, content, tmp_path):
    includes = tmp_path / "_includes"
    includes.mkdir()
    result = runner.invoke(app, ["check", str(content), "--includes-dir", str(includes)])
    assert "[sidenav-unresolved]" in result.output
    assert result.exit_code == 0


def test_check_json(runner, content):
    (content / "003.md").write_text("no front-matter\n")
    result = runner.invoke(app, ["check", str(content), "--json"])
    assert result.exit_code == 1
    issues = json.loads(result.output)
    assert {i["rule"] for i in issues} >= {"frontmatter-missing", "permalink-missing"}
    assert all(i["path"].endswith("003.md") for i in issues)


def test_check_missing_path(runner):
    result = runner.invoke(app, ["check", "nowhere"])
    assert result.exit_code == 1
    assert "Path not found" in result.output


def test_check_invalid_config(runner, content, tmp_path):
    (tmp_path / "tiplint.yaml").write_text("key: [unclosed\n")
    result = runner.invoke(app, ["check", str(content)])
    assert result.exit_code == 1
    assert "Invalid tiplint.yaml" in result.output


def test_commit_list_and_export(runner, content, tmp_path):
    result = runner.invoke(app, ["commit", str(content)])
    assert result.exit_code == 0, result.output
    assert "2 created, 0 updated, 0 unchanged, 0 removed" in result.output

    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0, result.output
    lines = result.output.splitlines()
    assert "tips/1" in lines[0] and "tips/2" in lines[1]

    result = runner.invoke(app, ["export", "--out-dir", str(tmp_path / "dist")])
    assert result.exit_code == 0, result.output
    data = json.loads((tmp_path / "dist" / "catalog.json").read_text())
    assert [e["permalink"] for e in data] == ["tips/1", "tips/2"]


def test_commit_removes_deleted_file_and_accepts_relative_path(runner, content):
    runner.invoke(app, ["commit", str(content)])
    (content / "002.md").unlink()
    result = runner.invoke(app, ["commit", "content"])
    assert result.exit_code == 0, result.output
    assert "0 created, 0 updated, 1 unchanged, 1 removed" in result.output
    assert "removed: " in result.output and "002.md" in result.output
    result = runner.invoke(app, ["list"])
    assert "tips/2" not in result.output
    assert runner.invoke(app, ["history", "content/001.md"]).exit_code == 0


def test_list_empty_catalog(runner):
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 1
    assert "No documents found" in result.output


def test_history_and_diff(runner, content):
    runner.invoke(app, ["commit", str(content)])
    (content / "001.md").write_text(TIP.format(order="1", body="First tip, take two."))
    runner.invoke(app, ["commit", str(content)])
    (content / "001.md").write_text(TIP.format(order="1", body="First tip, take three."))
    runner.invoke(app, ["commit", str(content)])

    result = runner.invoke(app, ["history", "tips/1"])
    assert result.exit_code == 0, result.output
    assert "v1" in result.output and "v2" in result.output

    result = runner.invoke(app, ["diff", "tips/1", "1", "2"])
    assert result.exit_code == 0, result.output
    assert "-First tip." in result.output
    assert "+First tip, take two." in result.output


def test_diff_against_current_shows_frontmatter(runner, content):
    runner.invoke(app, ["commit", str(content)])
    (content / "001.md").write_text(TIP.format(order="1", body="First tip.").replace("Week #1", "Week #1, revised"))
    runner.invoke(app, ["commit", str(content)])

    result = runner.invoke(app, ["diff", "tips/1", "1"])
    assert result.exit_code == 0, result.output
    assert "title: 'Tip of the Week #1' -> 'Tip of the Week #1, revised'" in result.output
    assert "+First tip." not in result.output


def test_history_unknown_document(runner):
    result = runner.invoke(app, ["history", "tips/404"])
    assert result.exit_code == 1
    assert "No document with permalink" in result.output


def test_init_reset(runner, content):
    runner.invoke(app, ["commit", str(content)])
    result = runner.invoke(app, ["init", "--reset"])
    assert result.exit_code == 0, result.output
    assert "Existing data cleared." in result.output
    assert runner.invoke(app, ["list"]).exit_code == 1

"""Tests for the typer CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from contractdown.cli.app import app
from contractdown.cli.watch import report_documents

runner = CliRunner()


@pytest.mark.parametrize(
    "args",
    [
        [],
        ["extract"],
        ["descriptors"],
        ["watch"],
        ["serve"],
    ],
    ids=["root", "extract", "descriptors", "watch", "serve"],
)
def test_short_help_flag(args: list[str]) -> None:
    result = runner.invoke(app, [*args, "-h"])
    assert result.exit_code == 0
    assert "Usage" in result.output


class TestExtractCommand:
    def test_renders_tables(self, petstore_path: Path) -> None:
        result = runner.invoke(app, ["extract", str(petstore_path)])
        assert result.exit_code == 0, result.output
        assert "Endpoints" in result.output
        assert "(3 endpoints, 2 types)" in result.output

    def test_json_output(self, petstore_path: Path) -> None:
        result = runner.invoke(app, ["extract", str(petstore_path), "--json"])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["metadata"]["title"] == "Pet Store"
        assert [e["verb"] for e in data["endpoints"]] == ["GET", "POST", "PUT"]
        assert "root" not in data

    def test_issues_exit_non_zero(self, tmp_path: Path) -> None:
        doc = tmp_path / "broken.md"
        doc.write_text("# API\n\n## ping\n\nMethod: TRACE\n", encoding="utf-8")
        result = runner.invoke(app, ["extract", str(doc)])
        assert result.exit_code == 1

    def test_lenient_flag_keeps_going(self, tmp_path: Path) -> None:
        doc = tmp_path / "broken.md"
        doc.write_text("# API\n\n## ping\n\nMethod: TRACE\n\n## pong\n\nMethod: GET\n", encoding="utf-8")
        result = runner.invoke(app, ["--log-level", "ERROR", "extract", str(doc), "--json", "--lenient"])
        assert result.exit_code == 0, result.output
        assert [e["name"] for e in json.loads(result.output)["endpoints"]] == ["pong"]

    def test_strict_mode_from_env(self, tmp_path: Path) -> None:
        doc = tmp_path / "broken.md"
        doc.write_text("# API\n\n## ping\n\nMethod: TRACE\n", encoding="utf-8")
        result = runner.invoke(app, ["extract", str(doc), "--json"], env={"CONTRACTDOWN_STRICT": "false"})
        assert result.exit_code == 0, result.output

    def test_missing_document(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["extract", str(tmp_path / "missing.md")])
        assert result.exit_code == 1


class TestDescriptorsCommand:
    def test_lists_name_and_verb(self, petstore_path: Path) -> None:
        result = runner.invoke(app, ["descriptors", str(petstore_path)])
        assert result.exit_code == 0, result.output
        assert json.loads(result.output) == [
            {"name": "pets/{pet_id}", "verb": "GET"},
            {"name": "pets", "verb": "POST"},
            {"name": "pets/{pet_id}/tag", "verb": "PUT"},
        ]

    def test_keys_by_handler_and_writes_file(self, petstore_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "descriptors.json"
        result = runner.invoke(
            app,
            ["descriptors", str(petstore_path), "--handlers", "tests.fixtures.petstore:HANDLERS", "--output", str(out)],
        )
        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["tests.fixtures.petstore:create_pet"] == {"name": "pets", "verb": "POST"}

    def test_bad_handler_target(self, petstore_path: Path) -> None:
        result = runner.invoke(app, ["descriptors", str(petstore_path), "--handlers", "no_such_module_xyz:HANDLERS"])
        assert result.exit_code == 1


class TestServeCommand:
    def test_starts_uvicorn_with_bound_app(self, petstore_path: Path) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(
                app,
                ["serve", str(petstore_path), "--handlers", "tests.fixtures.petstore:HANDLERS", "--port", "9001"],
            )
        assert result.exit_code == 0, result.output
        mock_run.assert_called_once()
        served_app = mock_run.call_args[0][0]
        assert len(served_app.state.bound_routes) == 3
        assert mock_run.call_args[1] == {"host": "127.0.0.1", "port": 9001}

    def test_binds_from_descriptor_file(self, petstore_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "descriptors.json"
        written = runner.invoke(
            app,
            ["descriptors", str(petstore_path), "--handlers", "tests.fixtures.petstore:HANDLERS", "--output", str(out)],
        )
        assert written.exit_code == 0, written.output
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(
                app,
                [
                    "serve",
                    str(petstore_path),
                    "--handlers",
                    "tests.fixtures.petstore:HANDLERS",
                    "--descriptors",
                    str(out),
                ],
            )
        assert result.exit_code == 0, result.output
        served_app = mock_run.call_args[0][0]
        assert {(r.verb, r.path) for r in served_app.state.bound_routes} == {
            ("GET", "/pets/{pet_id}"),
            ("POST", "/pets"),
            ("PUT", "/pets/{pet_id}/tag"),
        }

    def test_descriptor_for_undeclared_route_fails(self, petstore_path: Path, tmp_path: Path) -> None:
        out = tmp_path / "descriptors.json"
        out.write_text(json.dumps({"tests.fixtures.petstore:get_pet": {"name": "feed", "verb": "GET"}}), encoding="utf-8")
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(
                app,
                [
                    "serve",
                    str(petstore_path),
                    "--handlers",
                    "tests.fixtures.petstore:HANDLERS",
                    "--descriptors",
                    str(out),
                ],
            )
        assert result.exit_code == 1
        mock_run.assert_not_called()

    def test_setup_failure_does_not_start(self, petstore_path: Path) -> None:
        with patch("uvicorn.run") as mock_run:
            result = runner.invoke(app, ["serve", str(petstore_path), "--handlers", "tests.fixtures.petstore:get_pet"])
        assert result.exit_code == 1
        mock_run.assert_not_called()


class TestReportDocuments:
    def test_reports_counts_and_issues(self, petstore_path: Path, tmp_path: Path) -> None:
        broken = tmp_path / "broken.md"
        broken.write_text("# API\n\n## ping\n", encoding="utf-8")
        with patch("contractdown.cli.watch.console") as mock_console:
            report_documents({petstore_path, broken, tmp_path / "gone.md"}, strict=True)
        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list)
        assert "3 endpoints, 2 types" in printed
        assert "1 issue(s)" in printed
        assert "removed before it could be read" in printed

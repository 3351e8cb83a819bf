"""Tests for the project command group."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from lineagectl.cli import cli


def _import(runner: CliRunner, manifest_file: Path, *extra: str) -> str:
    result = runner.invoke(
        cli, ["--json", "project", "import-manifest", str(manifest_file), *extra]
    )
    assert result.exit_code == 0, result.output
    return json.loads(result.output)["data"]["id"]


def _json(runner: CliRunner, *args: str) -> dict[str, Any]:
    result = runner.invoke(cli, ["--json", *args])
    assert result.exit_code == 0, result.output
    return json.loads(result.output)


@pytest.mark.usefixtures("_isolated_workspace")
class TestProjectLifecycle:
    def test_import_and_list(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file, "--name", "Jaffle plan")
        listed = _json(cli_runner, "project", "list")
        assert listed["data"]["items"][0]["id"] == project_id
        assert listed["data"]["items"][0]["name"] == "Jaffle plan"

    def test_store_created_in_workspace(
        self, cli_runner: CliRunner, manifest_file: Path, tmp_path: Path
    ) -> None:
        _import(cli_runner, manifest_file)
        assert (tmp_path / ".lineagectl" / "lineagectl.db").is_file()

    def test_list_table(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        _import(cli_runner, manifest_file)
        result = cli_runner.invoke(cli, ["project", "list"])
        assert result.exit_code == 0
        assert "jaffle_shop" in result.output

    def test_quiet_list_prints_ids(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        result = cli_runner.invoke(cli, ["-q", "project", "list"])
        assert result.output.strip() == project_id

    def test_show(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        shown = _json(cli_runner, "project", "show", project_id)
        assert shown["data"]["metadata"]["nodeCount"] == 11

    def test_show_missing(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["project", "show", "proj-1-missing"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_delete_with_confirmation(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        result = cli_runner.invoke(cli, ["project", "delete", project_id], input="y\n")
        assert result.exit_code == 0, result.output
        assert _json(cli_runner, "project", "list")["data"]["count"] == 0

    def test_delete_aborted(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        result = cli_runner.invoke(cli, ["project", "delete", project_id], input="n\n")
        assert result.exit_code == 1
        assert _json(cli_runner, "project", "list")["data"]["count"] == 1


@pytest.mark.usefixtures("_isolated_workspace")
class TestProjectFiles:
    def test_export_import_copy(
        self, cli_runner: CliRunner, manifest_file: Path, tmp_path: Path
    ) -> None:
        project_id = _import(cli_runner, manifest_file)
        out = tmp_path / "project.json"
        exported = cli_runner.invoke(cli, ["project", "export", project_id, "-o", str(out)])
        assert exported.exit_code == 0, exported.output
        document = json.loads(out.read_text(encoding="utf-8"))
        assert document["metadata"]["id"] == project_id

        imported = _json(cli_runner, "project", "import", str(out))
        assert imported["data"]["id"] != project_id
        assert _json(cli_runner, "project", "list")["data"]["count"] == 2

    def test_export_to_stdout_is_raw_document(
        self, cli_runner: CliRunner, manifest_file: Path
    ) -> None:
        project_id = _import(cli_runner, manifest_file)
        result = cli_runner.invoke(cli, ["project", "export", project_id])
        document = json.loads(result.output)
        assert set(document) == {"metadata", "nodes", "edges", "filters", "manifestInfo"}

    def test_import_invalid_json(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        bad = tmp_path / "bad.json"
        bad.write_text("{oops", encoding="utf-8")
        result = cli_runner.invoke(cli, ["project", "import", str(bad)])
        assert result.exit_code == 1
        assert "Invalid JSON file" in result.output

    def test_backup_and_restore(
        self, cli_runner: CliRunner, manifest_file: Path, tmp_path: Path
    ) -> None:
        project_id = _import(cli_runner, manifest_file)
        backup = tmp_path / "backup.json"
        assert cli_runner.invoke(cli, ["project", "backup", "-o", str(backup)]).exit_code == 0
        cli_runner.invoke(cli, ["project", "delete", project_id, "--yes"])

        restored = cli_runner.invoke(cli, ["--json", "project", "restore", str(backup), "--yes"])
        assert restored.exit_code == 0, restored.output
        assert json.loads(restored.output)["data"]["count"] == 1
        assert _json(cli_runner, "project", "show", project_id)["ok"] is True

    def test_restore_rejects_project_file(
        self, cli_runner: CliRunner, manifest_file: Path, tmp_path: Path
    ) -> None:
        project_id = _import(cli_runner, manifest_file)
        single = tmp_path / "single.json"
        cli_runner.invoke(cli, ["project", "export", project_id, "-o", str(single)])
        result = cli_runner.invoke(cli, ["project", "restore", str(single), "--yes"])
        assert result.exit_code == 1
        assert "single project file" in result.output


@pytest.mark.usefixtures("_isolated_workspace")
class TestAnnotationCommands:
    def test_add_node(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        added = _json(
            cli_runner,
            "project",
            "add-node",
            project_id,
            "model.jaffle.fct_orders",
            "--label",
            "fct_returns",
        )
        assert added["data"]["id"].startswith("user-node-")
        listed = _json(cli_runner, "project", "list")
        assert listed["data"]["items"][0]["plannedNodeCount"] == 1

    def test_update_node(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        updated = _json(
            cli_runner,
            "project",
            "update-node",
            project_id,
            "model.jaffle.dim_customers",
            "--description",
            "Customer dimension",
            "--tag",
            "finance",
            "--tag",
            "pii",
        )
        assert updated["data"]["node"]["data"]["tags"] == ["finance", "pii"]

    def test_update_unknown_node(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        project_id = _import(cli_runner, manifest_file)
        result = cli_runner.invoke(
            cli, ["project", "update-node", project_id, "model.jaffle.nope", "--label", "x"]
        )
        assert result.exit_code == 1

"""Tests for the standalone build command."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from lineagectl.cli import cli


@pytest.mark.usefixtures("_isolated_workspace")
class TestBuildCommand:
    def test_json_summary(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "build", str(manifest_file)])
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["ok"] is True
        assert data["op"] == "build"
        assert data["data"]["node_count"] == 11
        assert data["data"]["component_count"] == 3

    def test_include_graph(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        result = cli_runner.invoke(cli, ["--json", "build", str(manifest_file), "--graph"])
        data = json.loads(result.output)
        assert len(data["data"]["graph"]["edges"]) == 8

    def test_human_output(self, cli_runner: CliRunner, manifest_file: Path) -> None:
        result = cli_runner.invoke(cli, ["build", str(manifest_file)])
        assert result.exit_code == 0
        assert "jaffle_shop" in result.output

    def test_malformed_manifest_exits_1(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        path = tmp_path / "manifest.json"
        path.write_text("[]", encoding="utf-8")
        result = cli_runner.invoke(cli, ["build", str(path)])
        assert result.exit_code == 1
        assert "Expected an object" in result.output

    def test_missing_file_is_usage_error(self, cli_runner: CliRunner, tmp_path: Path) -> None:
        result = cli_runner.invoke(cli, ["build", str(tmp_path / "nope.json")])
        assert result.exit_code == 2

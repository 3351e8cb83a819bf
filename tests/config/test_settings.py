"""Tests for LineageSettings: unified settings with TOML source."""

from __future__ import annotations

from pathlib import Path

import click
import pytest

from lineagectl.config.settings import LineageSettings


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LINEAGECTL_CONFIG", "LINEAGECTL_QUIET", "LINEAGECTL_LAYOUT__NODE_WIDTH"):
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    def test_all_defaults(self, tmp_path: Path) -> None:
        settings = LineageSettings.from_cli(workspace_root=tmp_path)
        assert settings.workspace_root == tmp_path
        assert settings.config_path is None
        assert settings.json_output is False
        assert settings.layout.node_width == 180
        assert settings.filters.default_resource_types == ["model", "seed"]
        assert settings.db_path == tmp_path / ".lineagectl" / "lineagectl.db"

    def test_frozen(self, tmp_path: Path) -> None:
        settings = LineageSettings.from_cli(workspace_root=tmp_path)
        with pytest.raises(Exception):
            settings.quiet = True  # type: ignore[misc]


class TestTomlSource:
    def test_loads_sections(self, tmp_path: Path) -> None:
        (tmp_path / "lineagectl.toml").write_text(
            '[layout]\nrank_spacing = 200\n[store]\ndb_name = "plans.db"\n'
        )
        settings = LineageSettings.from_cli(workspace_root=tmp_path)
        assert settings.layout.rank_spacing == 200
        assert settings.layout.node_width == 180
        assert settings.db_path.name == "plans.db"

    def test_explicit_config_path(self, tmp_path: Path) -> None:
        custom = tmp_path / "conf" / "team.toml"
        custom.parent.mkdir()
        custom.write_text('[filters]\ndefault_tag_mode = "AND"\n')
        settings = LineageSettings.from_cli(config_path=str(custom), workspace_root=tmp_path)
        assert settings.filters.default_tag_mode == "AND"
        assert settings.config_path == custom

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "lineagectl.toml").write_text("[layout\n")
        with pytest.raises(click.ClickException, match="Invalid TOML"):
            LineageSettings.from_cli(workspace_root=tmp_path)


class TestPriority:
    def test_cli_flags(self, tmp_path: Path) -> None:
        settings = LineageSettings.from_cli(
            workspace_root=tmp_path, json_output=True, quiet=True, verbose=True
        )
        assert settings.json_output is True
        assert settings.quiet is True
        assert settings.verbose is True

    def test_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LINEAGECTL_QUIET", "true")
        assert LineageSettings.from_cli(workspace_root=tmp_path).quiet is True

    def test_nested_env_beats_toml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "lineagectl.toml").write_text("[layout]\nnode_width = 150\n")
        monkeypatch.setenv("LINEAGECTL_LAYOUT__NODE_WIDTH", "240")
        settings = LineageSettings.from_cli(workspace_root=tmp_path)
        assert settings.layout.node_width == 240


class TestWorkspaceRoot:
    def test_root_from_config_location(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "lineagectl.toml").write_text("")
        child = tmp_path / "models"
        child.mkdir()
        monkeypatch.chdir(child)
        settings = LineageSettings.from_cli()
        assert settings.workspace_root == tmp_path

    def test_root_from_existing_store(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / ".lineagectl").mkdir()
        child = tmp_path / "models"
        child.mkdir()
        monkeypatch.chdir(child)
        assert LineageSettings.from_cli().workspace_root == tmp_path

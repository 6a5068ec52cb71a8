"""Tests for convex-devtools up command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from convex_devtools.cli.main import cli

runner = CliRunner()


class TestUpCommand:
    def test_help(self) -> None:
        result = runner.invoke(cli, ["up", "--help"])
        assert result.exit_code == 0
        assert "--port" in result.output

    def test_missing_functions_dir(self, tmp_path: Path) -> None:
        with patch("convex_devtools.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            result = runner.invoke(cli, ["up", "--dir", str(tmp_path)])
        assert result.exit_code != 0
        assert "Functions directory not found" in result.output

    def test_invalid_config_reported(self, project_dir: Path, tmp_path: Path) -> None:
        config_dir = project_dir / ".convex-devtools"
        config_dir.mkdir()
        (config_dir / "config.yaml").write_text("server: [oops\n")

        with patch("convex_devtools.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            result = runner.invoke(cli, ["up", "--dir", str(project_dir)])

        assert result.exit_code != 0
        assert "Failed to parse config" in result.output

    def test_runs_server_with_port_override(self, project_dir: Path, tmp_path: Path) -> None:
        with (
            patch("convex_devtools.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch(
                "convex_devtools.daemon.lifecycle.run_server", new_callable=AsyncMock
            ) as run_server,
        ):
            result = runner.invoke(cli, ["up", "--dir", str(project_dir), "--port", "6001"])

        assert result.exit_code == 0, result.output
        run_server.assert_awaited_once()
        _, config = run_server.call_args.args
        assert config.server.port == 6001

    def test_bad_port_rejected(self, project_dir: Path) -> None:
        result = runner.invoke(cli, ["up", "--dir", str(project_dir), "--port", "99999"])
        assert result.exit_code == 2

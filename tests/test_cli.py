"""
CLI interface tests for bower-extract.
Tests the command-line interface and main entry points.
"""

import json
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from bower_extract.error_handling import setup_error_handling
from bower_extract.main import cli


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self):
        """Test CLI help message."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "bower-extract" in result.output.lower()

    def test_cli_version(self):
        """Test CLI version display."""
        runner = CliRunner()
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "1.0.0" in result.output

    def test_info_command(self):
        """Test the info command."""
        runner = CliRunner()
        result = runner.invoke(cli, ["info"])

        assert result.exit_code == 0
        assert "bower-extract" in result.output.lower()
        assert "index*.js" in result.output


class TestResolveCommand:
    """Test the resolve command."""

    def test_json_report_in_declaration_order(self, project, temp_dir):
        project.manifest({"jquery": "*", "momentjs": "*"})
        project.component("jquery", {"jquery.js": "// jquery", "jquery.min.js": ""})
        project.component("momentjs", {"moment.js": "// moment"})
        report_path = temp_dir / "report.json"

        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--cwd",
                str(project.root),
                "--no-install",
                "--output-format",
                "json",
                "--output-file",
                str(report_path),
                "--quiet",
            ],
        )

        assert result.exit_code == 0
        report = json.loads(report_path.read_text())
        assert report["total_files"] == 2
        assert [f["dependency"] for f in report["files"]] == ["jquery", "momentjs"]
        assert report["files"][0]["path"] == str(project.base_dir / "jquery" / "jquery.js")
        assert report["errors"] == []

    def test_console_output(self, project):
        project.manifest({"jquery": "*"})
        project.component("jquery", {"jquery.js": "// jquery"})

        runner = CliRunner()
        result = runner.invoke(cli, ["resolve", "--cwd", str(project.root), "--no-install"])

        assert result.exit_code == 0
        assert "jquery" in result.output
        assert "1 file(s) resolved" in result.output

    def test_unresolved_dependency_exits_with_error(self, project, temp_dir):
        project.manifest({"jquery": "*", "ghost": "*"})
        project.component("jquery", {"jquery.js": "// jquery"})
        report_path = temp_dir / "report.json"

        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "resolve",
                "--cwd",
                str(project.root),
                "--no-install",
                "--output-format",
                "json",
                "-o",
                str(report_path),
                "-q",
            ],
        )

        assert result.exit_code == 1
        report = json.loads(report_path.read_text())
        assert [f["dependency"] for f in report["files"]] == ["jquery"]
        assert report["errors"][0]["dependency"] == "ghost"
        assert report["errors"][0]["label"] == "bower-extract"

    def test_missing_manifest_exits_with_error(self, temp_dir):
        runner = CliRunner()
        result = runner.invoke(cli, ["resolve", "--cwd", str(temp_dir), "--no-install", "-q"])

        assert result.exit_code == 1

    def test_directory_option(self, project):
        project.directory = "vendor"
        project.manifest({"lib": "*"})
        project.component("lib", {"lib.js": "// lib"})

        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["resolve", "--cwd", str(project.root), "--directory", "vendor", "--no-install"],
        )

        assert result.exit_code == 0
        assert "1 file(s) resolved" in result.output

    def test_output_file_requires_json(self, temp_dir):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["resolve", "--cwd", str(temp_dir), "--output-file", str(temp_dir / "out.json")],
        )

        assert result.exit_code != 0
        assert "JSON format" in result.output

    def test_command_and_extra_args_are_forwarded(self, project):
        project.manifest({"jquery": "*"})
        project.component("jquery", {"jquery.js": "// jquery"})

        with patch(
            "bower_extract.main.PackageManagerCommand.run",
            new_callable=AsyncMock,
            return_value=("", ""),
        ) as mock_run:
            runner = CliRunner()
            result = runner.invoke(
                cli,
                [
                    "resolve",
                    "--cwd",
                    str(project.root),
                    "--command",
                    "install",
                    "-q",
                    "--production",
                ],
            )

        assert result.exit_code == 0
        mock_run.assert_awaited_once()
        command, args, cwd = mock_run.await_args.args
        assert command == "install"
        assert args == ("--production",)
        assert cwd == project.root.resolve()


class TestConfigCommands:
    """Test configuration management commands."""

    def test_config_init_writes_valid_sample(self, temp_dir):
        config_path = temp_dir / "sample.json"

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "init", "--path", str(config_path)])
        assert result.exit_code == 0
        assert json.loads(config_path.read_text())["extract"]["command"] == "update"

        result = runner.invoke(cli, ["config", "validate", str(config_path)])
        assert result.exit_code == 0

    def test_config_init_refuses_overwrite(self, temp_dir):
        config_path = temp_dir / "sample.json"
        config_path.write_text("{}")

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "init", "--path", str(config_path)])

        assert result.exit_code != 0
        assert config_path.read_text() == "{}"

    def test_config_validate_reports_invalid_values(self, temp_dir):
        config_path = temp_dir / "bad.json"
        config_path.write_text(json.dumps({"extract": {"command_timeout": -5}}))

        runner = CliRunner()
        result = runner.invoke(cli, ["config", "validate", str(config_path)])

        assert result.exit_code == 1
        assert "command_timeout" in result.output

    def test_config_show(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "\"update\"" in result.output

    def test_log_format_from_config_reaches_loggers(self, project, tmp_path):
        project.manifest({"jquery": "*"})
        project.component("jquery", {"jquery.js": "// jquery"})
        config_dir = tmp_path / "home" / ".config" / "bower-extract"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(
            json.dumps(
                {"logging": {"log_format": "%(levelname)s %(message)s", "enable_json": False}}
            )
        )

        with patch("bower_extract.main.configure_logging") as mock_configure, patch(
            "bower_extract.main.setup_error_handling", wraps=setup_error_handling
        ) as mock_setup:
            runner = CliRunner()
            result = runner.invoke(
                cli, ["resolve", "--cwd", str(project.root), "--no-install", "-q"]
            )

        assert result.exit_code == 0
        assert mock_configure.call_args.kwargs["enable_json"] is False
        assert mock_configure.call_args.kwargs["log_format"] == "%(levelname)s %(message)s"
        assert mock_setup.call_args.kwargs["log_format"] == "%(levelname)s %(message)s"

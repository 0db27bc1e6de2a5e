"""Tests for CLI commands."""

import json

from irssi_varlink.cli.app import app


class TestConfigCommand:
    """Tests for 'irssi-varlink config' command."""

    def test_config_show_displays_content(self, cli_runner, tmp_path):
        config_file = tmp_path / "varlink.toml"
        config_file.write_text('[servers.libera]\nnick = "mynick"\n')

        result = cli_runner.invoke(app, ["config", "show", "--path", str(config_file)])
        assert result.exit_code == 0
        assert "[servers.libera]" in result.stdout

    def test_config_show_missing_file(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["config", "show", "--path", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "not found" in result.stdout

    def test_config_validate_success(self, cli_runner, tmp_path):
        config_file = tmp_path / "varlink.toml"
        config_file.write_text('[servers.libera]\nnick = "mynick"\n')

        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(config_file)]
        )
        assert result.exit_code == 0
        assert "Configuration is valid" in result.stdout
        assert "mynick" in result.stdout

    def test_config_validate_invalid_toml(self, cli_runner, tmp_path):
        invalid_file = tmp_path / "invalid.toml"
        invalid_file.write_text("not valid toml [[[")

        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(invalid_file)]
        )
        assert result.exit_code == 1
        assert "Invalid TOML" in result.stdout

    def test_config_validate_invalid_config(self, cli_runner, tmp_path):
        invalid_config = tmp_path / "bad.toml"
        invalid_config.write_text("read_size = -1\n")

        result = cli_runner.invoke(
            app, ["config", "validate", "--path", str(invalid_config)]
        )
        assert result.exit_code == 1
        assert "validation failed" in result.stdout.lower()

    def test_config_paths(self, cli_runner, varlink_home):
        result = cli_runner.invoke(app, ["config", "paths"])
        assert result.exit_code == 0
        assert "varlink.sock" in result.stdout

    def test_config_unknown_action(self, cli_runner):
        result = cli_runner.invoke(app, ["config", "unknown"])
        assert result.exit_code == 1
        assert "Unknown action" in result.stdout


class TestClientCommands:
    """Tests for commands that talk to a running service."""

    def test_info(self, cli_runner, running_bridge, socket_path):
        result = cli_runner.invoke(app, ["info", "--socket", str(socket_path)])
        assert result.exit_code == 0
        assert "irssi-varlink" in result.stdout
        assert "org.irssi.varlink" in result.stdout

    def test_call_prints_reply(self, cli_runner, running_bridge, socket_path):
        result = cli_runner.invoke(
            app,
            [
                "call",
                "org.irssi.varlink.GetServerNick",
                '{"server": "libera"}',
                "--socket",
                str(socket_path),
            ],
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {"parameters": {"nick": "mynick"}}

    def test_call_error_reply_exits_nonzero(
        self, cli_runner, running_bridge, socket_path
    ):
        result = cli_runner.invoke(
            app,
            [
                "call",
                "org.irssi.varlink.GetServerNick",
                '{"server": "nowhere"}',
                "--socket",
                str(socket_path),
            ],
        )
        assert result.exit_code == 1
        assert "org.irssi.varlink.ServerNotFound" in result.stdout

    def test_call_rejects_bad_parameters(self, cli_runner, socket_path):
        result = cli_runner.invoke(
            app,
            ["call", "org.varlink.service.GetInfo", "[1]", "-s", str(socket_path)],
        )
        assert result.exit_code == 1
        assert "JSON object" in result.stdout

    def test_send(self, cli_runner, running_bridge, socket_path, registry):
        result = cli_runner.invoke(
            app,
            ["send", "#chan", "hello", "-S", "libera", "-s", str(socket_path)],
        )
        assert result.exit_code == 0
        assert "Sent to #chan on libera" in result.stdout
        sent = registry.find_by_tag("libera").sent
        assert [(m.target, m.message) for m in sent] == [("#chan", "hello")]

    def test_send_unknown_server(self, cli_runner, running_bridge, socket_path):
        result = cli_runner.invoke(
            app,
            ["send", "#chan", "hi", "-S", "nowhere", "-s", str(socket_path)],
        )
        assert result.exit_code == 1
        assert "Server not found" in result.stdout

    def test_unreachable_service(self, cli_runner, tmp_path):
        result = cli_runner.invoke(
            app, ["info", "--socket", str(tmp_path / "missing.sock")]
        )
        assert result.exit_code == 1
        assert "Cannot reach varlink service" in result.stdout


class TestServeCommand:
    """Tests for 'irssi-varlink serve' startup failures."""

    def test_missing_config_file(self, cli_runner, tmp_path, restore_root_logger):
        result = cli_runner.invoke(
            app, ["serve", "--config", str(tmp_path / "missing.toml")]
        )
        assert result.exit_code == 1
        assert "Config file not found" in result.stdout

    def test_unusable_socket_path(self, cli_runner, tmp_path, restore_root_logger):
        blocker = tmp_path / "file"
        blocker.write_text("")
        config_file = tmp_path / "varlink.toml"
        config_file.write_text("")

        result = cli_runner.invoke(
            app,
            [
                "serve",
                "--config",
                str(config_file),
                "--socket",
                str(blocker / "varlink.sock"),
            ],
        )
        assert result.exit_code == 1
        assert "Failed to create UNIX socket" in result.stdout


class TestWatchFormatting:
    def test_format_event_escapes_markup(self):
        from irssi_varlink.cli.commands.client import _format_event

        line = _format_event(
            {
                "server": "libera",
                "target": "#chan",
                "nick": "alice",
                "message": "[bold]not markup[/bold]",
                "timestamp": 0,
            }
        )
        assert "\\[bold]not markup" in line
        assert "[cyan]libera[/cyan]" in line

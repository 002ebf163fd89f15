"""Integration tests for CLI commands against a running daemon."""

import json
from datetime import date
from pathlib import Path

import pytest
from click.testing import CliRunner

from suibhne import __version__
from suibhne.cli.client import DaemonConnection
from suibhne.cli.daemon_cmd import _daemon_args
from suibhne.cli.main import cli
from suibhne.config import CONFIG_ENV_VAR, SOCKET_ENV_VAR
from suibhne.daemon.server import SuibhneDaemon

pytestmark = pytest.mark.integration


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


def invoke(runner: CliRunner, daemon: SuibhneDaemon, *args: str):
    """Run a CLI command against the test daemon's socket."""
    return runner.invoke(cli, ["--socket", str(daemon.socket_path), *args])


class TestMetaCommands:
    """Tests for ping, status, permissions and commands."""

    def test_ping(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """ping should print pong and exit 0."""
        result = invoke(runner, running_daemon, "ping")

        assert result.exit_code == 0
        assert json.loads(result.output)["pong"] is True

    def test_status(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """status should report the daemon's socket."""
        result = invoke(runner, running_daemon, "status")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["app"] == "Suibhne"
        assert data["version"] == __version__
        assert data["socketPath"] == str(running_daemon.socket_path)
        assert data["socketActive"] is True

    def test_permissions(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """permissions should list every resource."""
        result = invoke(runner, running_daemon, "permissions")

        assert result.exit_code == 0
        assert set(json.loads(result.output)) == {"contacts", "config", "skills"}

    def test_permissions_request(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """permissions request should resolve one resource."""
        result = invoke(runner, running_daemon, "permissions", "request", "contacts")

        assert result.exit_code == 0
        assert json.loads(result.output) == {"resource": "contacts", "status": "authorized"}

    def test_commands(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """commands should list the command table."""
        result = invoke(runner, running_daemon, "commands")

        assert result.exit_code == 0
        names = [entry["name"] for entry in json.loads(result.output)]
        assert "contacts.search" in names
        assert "reminders.complete" in names


class TestContactsCommand:
    """Tests for suibhne contacts."""

    def test_create_and_search(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """A created contact should be found by search."""
        result = invoke(
            runner, running_daemon,
            "contacts", "create", "--name", "Ada Lovelace", "--phone", "+44 20 7946 0000",
        )
        assert result.exit_code == 0
        contact_id = json.loads(result.output)["id"]

        result = invoke(runner, running_daemon, "contacts", "search", "ada", "love")
        assert result.exit_code == 0
        assert [c["id"] for c in json.loads(result.output)] == [contact_id]

    def test_update_and_delete(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """update should add an email and delete should remove the contact."""
        result = invoke(runner, running_daemon, "contacts", "create", "-n", "Grace Hopper")
        contact_id = json.loads(result.output)["id"]

        result = invoke(runner, running_daemon, "contacts", "update", contact_id, "--add-email", "grace@navy.mil")
        assert result.exit_code == 0
        assert json.loads(result.output)["emails"] == ["grace@navy.mil"]

        result = invoke(runner, running_daemon, "contacts", "delete", contact_id)
        assert result.exit_code == 0

        result = invoke(runner, running_daemon, "contacts", "get", contact_id)
        assert result.exit_code == 0
        assert json.loads(result.output) is None

    def test_update_missing(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """update of an unknown contact should fail."""
        result = invoke(runner, running_daemon, "contacts", "update", "NOPE", "--notes", "x")

        assert result.exit_code == 1
        assert "Contact not found: NOPE" in result.output

    def test_update_requires_a_change(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """update without options is a usage error."""
        result = invoke(runner, running_daemon, "contacts", "update", "C1")

        assert result.exit_code == 2
        assert "Nothing to update" in result.output

    def test_list_empty(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """list on an empty book prints an empty array."""
        result = invoke(runner, running_daemon, "contacts", "list")

        assert result.exit_code == 0
        assert json.loads(result.output) == []


class TestConfigCommand:
    """Tests for suibhne config and skills."""

    def test_get_missing_file(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """config get should fail when the OpenClaw config does not exist."""
        result = invoke(runner, running_daemon, "config", "get")

        assert result.exit_code == 1
        assert "File not found:" in result.output

    def test_set_then_get(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """config set should parse values and config get should read them back."""
        result = invoke(runner, running_daemon, "config", "set", "gateway.port", "8080")
        assert result.exit_code == 0
        assert json.loads(result.output)["value"] == 8080

        result = invoke(runner, running_daemon, "config", "get", "gateway.port")
        assert result.exit_code == 0
        assert json.loads(result.output)["value"] == 8080

    def test_set_raw(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """--raw should keep the value as a string."""
        result = invoke(runner, running_daemon, "config", "set", "--raw", "gateway.token", "0042")

        assert result.exit_code == 0
        assert json.loads(result.output)["value"] == "0042"

    def test_skills_list(self, runner: CliRunner, running_daemon: SuibhneDaemon) -> None:
        """skills list should show skill directories."""
        (running_daemon.settings.skills_dirs[0] / "weather").mkdir()

        result = invoke(runner, running_daemon, "skills", "list")

        assert result.exit_code == 0
        assert [s["name"] for s in json.loads(result.output)] == ["weather"]


class TestFailures:
    """Tests for error reporting."""

    @pytest.mark.parametrize(
        ("args", "command"),
        [
            (["calendar", "events"], "calendar.events"),
            (["reminders", "add"], "reminders.add"),
            (["skills", "install", "https://example.com/skill"], "skills.install"),
        ],
    )
    def test_not_implemented(
        self, runner: CliRunner, running_daemon: SuibhneDaemon, args: list[str], command: str
    ) -> None:
        """Commands without a backend should exit 1 with the daemon's message."""
        result = invoke(runner, running_daemon, *args)

        assert result.exit_code == 1
        assert f"Command not yet implemented: {command}" in result.output

    def test_daemon_unavailable(self, runner: CliRunner, socket_dir: Path) -> None:
        """Commands should fail cleanly when no daemon is listening."""
        result = runner.invoke(cli, ["--socket", str(socket_dir / "absent.sock"), "ping"])

        assert result.exit_code == 1
        assert "Daemon socket not found" in result.output

    def test_daemon_status_unavailable(self, runner: CliRunner, socket_dir: Path) -> None:
        """daemon status should report a daemon that is not responding."""
        result = runner.invoke(cli, ["--socket", str(socket_dir / "absent.sock"), "daemon", "status"])

        assert result.exit_code == 1
        assert "Daemon is not responding" in result.output


class TestLocalCommands:
    """Tests for commands that do not talk to the daemon."""

    def test_version(self, runner: CliRunner) -> None:
        """version should print the package version."""
        result = runner.invoke(cli, ["version"])

        assert result.exit_code == 0
        assert result.output.strip() == f"suibhne {__version__}"

    def test_logs(self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """logs should print the tail of today's log file."""
        log_dir = tmp_path / "logs"
        log_dir.mkdir()
        (log_dir / f"{date.today().isoformat()}.log").write_text("first\nsecond\nthird\n", encoding="utf-8")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"log_dir: {log_dir}\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))

        result = runner.invoke(cli, ["logs", "-n", "2"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["second", "third"]

    def test_logs_missing(self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """logs should say so when there is no log file yet."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"log_dir: {tmp_path / 'nowhere'}\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))

        result = runner.invoke(cli, ["logs"])

        assert result.exit_code == 0
        assert "No log file found" in result.output


class TestSocketResolution:
    """Tests for how the CLI picks the daemon socket."""

    def test_socket_from_config_file(
        self,
        runner: CliRunner,
        running_daemon: SuibhneDaemon,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """Without --socket the config file's socket_path is used."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(f"socket_path: {running_daemon.socket_path}\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(config_file))
        monkeypatch.delenv(SOCKET_ENV_VAR, raising=False)

        result = runner.invoke(cli, ["ping"])

        assert result.exit_code == 0
        assert json.loads(result.output)["pong"] is True

    def test_socket_from_environment(
        self, runner: CliRunner, running_daemon: SuibhneDaemon, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """SUIBHNE_SOCKET stands in for --socket."""
        monkeypatch.setenv(SOCKET_ENV_VAR, str(running_daemon.socket_path))

        result = runner.invoke(cli, ["ping"])

        assert result.exit_code == 0

    def test_daemon_args_without_override(self) -> None:
        """The daemon resolves its own socket when none was given."""
        assert "--socket" not in _daemon_args(None, False)

    def test_daemon_args_with_override(self, tmp_path: Path) -> None:
        """An explicit socket is passed through to the daemon."""
        args = _daemon_args(tmp_path / "d.sock", True)
        assert args[-3:] == ["--socket", str(tmp_path / "d.sock"), "--verbose"]


class TestDaemonConnection:
    """Tests for the client connection object."""

    def test_request_on_unopened_connection(self, socket_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """A connection that failed to open is reported, not sent on."""
        monkeypatch.setattr(DaemonConnection, "open", lambda self: None)

        with pytest.raises(RuntimeError, match="Connection is not open"):
            DaemonConnection(socket_path).request("ping")

"""Tests for the paramiko based executor"""

from pathlib import Path
from unittest.mock import MagicMock, patch

import paramiko
import pytest

from shipout.api.exceptions import CredentialError, RemoteCommandError, TransportError
from shipout.core.credentials import Credential
from shipout.remote.ssh import SSHExecutor, load_private_key


def _channel_output(stdout=b"", stderr=b"", exit_status=0):
    out = MagicMock()
    out.read.return_value = stdout
    out.channel.recv_exit_status.return_value = exit_status
    err = MagicMock()
    err.read.return_value = stderr
    return MagicMock(), out, err


@pytest.fixture
def ssh_client():
    with patch("shipout.remote.ssh.paramiko.SSHClient") as client_class:
        client = client_class.return_value
        client.exec_command.return_value = _channel_output()
        yield client


@pytest.fixture
def executor(ssh_client):
    return SSHExecutor("server.example.net", "deploy", port=3791,
                       credential=Credential(source="agent", agent_socket="/tmp/agent.sock"))


def _commands(ssh_client):
    return [c.args[0] for c in ssh_client.exec_command.call_args_list]


class TestConnection:

    def test_connects_lazily_once(self, executor, ssh_client):
        ssh_client.connect.assert_not_called()

        executor.make_directory("/srv/a")
        executor.make_directory("/srv/b")

        ssh_client.connect.assert_called_once()
        kwargs = ssh_client.connect.call_args.kwargs
        assert kwargs["hostname"] == "server.example.net"
        assert kwargs["port"] == 3791
        assert kwargs["username"] == "deploy"
        assert kwargs["allow_agent"] is True
        assert "pkey" not in kwargs

    def test_uses_private_key_material(self, ssh_client):
        key = MagicMock(spec=paramiko.PKey)
        credential = Credential(source="key", private_key="-----BEGIN KEY-----", key_path=Path("/k"))

        with patch("shipout.remote.ssh.load_private_key", return_value=key) as loader:
            SSHExecutor("h", "u", credential=credential).connect()

        loader.assert_called_once_with("-----BEGIN KEY-----")
        kwargs = ssh_client.connect.call_args.kwargs
        assert kwargs["pkey"] is key
        assert kwargs["allow_agent"] is False

    def test_authentication_failure(self, executor, ssh_client):
        ssh_client.connect.side_effect = paramiko.AuthenticationException("denied")

        with pytest.raises(TransportError, match="Authentication failed"):
            executor.connect()

        ssh_client.close.assert_called_once()

    def test_socket_failure(self, executor, ssh_client):
        ssh_client.connect.side_effect = OSError("Connection refused")

        with pytest.raises(TransportError, match="Unable to connect"):
            executor.connect()

    def test_context_manager_closes_session(self, executor, ssh_client):
        with executor:
            executor.make_directory("/srv/a")

        ssh_client.close.assert_called_once()

    def test_close_without_connection(self, executor, ssh_client):
        executor.close()

        ssh_client.close.assert_not_called()


class TestCommands:

    def test_make_directory(self, executor, ssh_client):
        executor.make_directory("/srv/app/staging/2024-03-09_14:05:07")

        assert _commands(ssh_client) == ["mkdir -p /srv/app/staging/2024-03-09_14:05:07"]

    def test_symlink_swap_goes_through_temporary_link(self, executor, ssh_client):
        executor.update_symlink("/srv/app/r1", "/srv/app/current")

        assert _commands(ssh_client) == [
            "ln -sfn /srv/app/r1 /srv/app/current.tmp && mv -Tf /srv/app/current.tmp /srv/app/current"
        ]

    def test_paths_are_quoted(self, executor, ssh_client):
        executor.make_directory("/srv/my app")

        assert _commands(ssh_client) == ["mkdir -p '/srv/my app'"]

    def test_unpack_returns_file_list(self, executor, ssh_client):
        ssh_client.exec_command.return_value = _channel_output(b"README.md\npackage.json\n\n")

        files = executor.unpack("app-v1.0.0.tgz", "/srv/app/r1")

        assert files == ["README.md", "package.json"]
        assert _commands(ssh_client) == ["cd /srv/app/r1 && tar xzvf app-v1.0.0.tgz"]

    def test_list_directory_sorted(self, executor, ssh_client):
        ssh_client.exec_command.return_value = _channel_output(b"r2\ncurrent\nr1\n")

        assert executor.list_directory("/srv/app") == ["current", "r1", "r2"]

    def test_resolve_symlink(self, executor, ssh_client):
        ssh_client.exec_command.return_value = _channel_output(b"/srv/app/r1\n")

        assert executor.resolve_symlink("/srv/app/current") == "/srv/app/r1"
        assert "readlink -f /srv/app/current" in _commands(ssh_client)[0]

    def test_resolve_symlink_not_a_link(self, executor, ssh_client):
        assert executor.resolve_symlink("/srv/app/current") is None

    def test_remove_paths_batched(self, executor, ssh_client):
        executor.remove_paths(["/srv/app/r1", "/srv/app/r2"])

        assert _commands(ssh_client) == ["rm -rf /srv/app/r1 /srv/app/r2"]

    def test_remove_nothing_sends_nothing(self, executor, ssh_client):
        executor.remove_paths([])

        ssh_client.exec_command.assert_not_called()

    def test_non_zero_exit_raises(self, executor, ssh_client):
        ssh_client.exec_command.return_value = _channel_output(stderr=b"Permission denied", exit_status=1)

        with pytest.raises(RemoteCommandError) as exc_info:
            executor.make_directory("/root/forbidden")

        assert exc_info.value.exit_status == 1
        assert exc_info.value.stderr == "Permission denied"

    def test_run_reports_failure_without_raising(self, executor, ssh_client):
        ssh_client.exec_command.return_value = _channel_output(stderr=b"not found", exit_status=127)

        result = executor.run("node --version")

        assert not result.ok
        assert result.exit_status == 127

    def test_upload_over_sftp(self, executor, ssh_client):
        sftp = ssh_client.open_sftp.return_value

        executor.upload(Path("/work/package/app.tgz"), "/srv/app/r1/app.tgz")

        sftp.put.assert_called_once_with("/work/package/app.tgz", "/srv/app/r1/app.tgz")
        sftp.close.assert_called_once()

    def test_upload_failure(self, executor, ssh_client):
        ssh_client.open_sftp.return_value.put.side_effect = OSError("No such file")

        with pytest.raises(TransportError, match="Unable to copy"):
            executor.upload(Path("/work/package/app.tgz"), "/srv/app/r1/app.tgz")


def test_load_private_key_rejects_garbage():
    with pytest.raises(CredentialError):
        load_private_key("not a key")

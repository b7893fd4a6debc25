# shipout/remote/ssh.py
"""SSH remote executor backed by paramiko"""

import io
import logging
import shlex
from pathlib import Path
from typing import Iterable, List, Optional

import paramiko

from .base import CommandResult, RemoteExecutor
from ..api.exceptions import CredentialError, RemoteCommandError, TransportError
from ..constants import DEFAULT_CONNECT_TIMEOUT, TEMP_LINK_SUFFIX
from ..core.credentials import Credential

logger = logging.getLogger(__name__)

_KEY_TYPES = (paramiko.RSAKey, paramiko.ECDSAKey, paramiko.Ed25519Key)


def load_private_key(material: str) -> paramiko.PKey:
    """Parse private key material of any supported type"""
    for key_type in _KEY_TYPES:
        try:
            return key_type.from_private_key(io.StringIO(material))
        except paramiko.SSHException:
            continue
    raise CredentialError("Unsupported or encrypted private key")


class SSHExecutor(RemoteExecutor):
    """Runs deployment operations over one SSH session per run

    Commands assume a GNU userland on the target host: the current link is
    swapped with `mv -T`, which BSD and macOS `mv` lack.
    """

    def __init__(self,
                 host: str,
                 username: str,
                 port: int = 22,
                 credential: Optional[Credential] = None,
                 timeout: int = DEFAULT_CONNECT_TIMEOUT):
        """
        Initialize SSH executor

        Args:
            host: Hostname or IP address
            username: Login user
            port: sshd port
            credential: Resolved credential (agent or key)
            timeout: Connect timeout in seconds
        """
        self.host = host
        self.username = username
        self.port = port
        self.credential = credential
        self.timeout = timeout
        self._client: Optional[paramiko.SSHClient] = None

    @property
    def description(self) -> str:
        return f"{self.username}@{self.host}:{self.port}"

    def connect(self) -> paramiko.SSHClient:
        """Open the session if not already open"""
        if self._client is not None:
            return self._client

        client = paramiko.SSHClient()
        client.load_system_host_keys()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        options = {
            "hostname": self.host,
            "port": self.port,
            "username": self.username,
            "timeout": self.timeout,
            "look_for_keys": False,
            "allow_agent": False,
        }
        if self.credential is not None and self.credential.private_key:
            options["pkey"] = load_private_key(self.credential.private_key)
        else:
            options["allow_agent"] = True

        logger.debug(f"Connecting to {self.description}")
        try:
            client.connect(**options)
        except paramiko.AuthenticationException as e:
            client.close()
            raise TransportError(f"Authentication failed for {self.description}: {e}")
        except (paramiko.SSHException, OSError) as e:
            client.close()
            raise TransportError(f"Unable to connect to {self.description}: {e}")

        self._client = client
        return client

    def close(self) -> None:
        if self._client is not None:
            logger.debug(f"Closing connection to {self.description}")
            self._client.close()
            self._client = None

    def run(self, command: str) -> CommandResult:
        client = self.connect()
        logger.debug(f"Executing {command}")
        try:
            _, stdout, stderr = client.exec_command(command)
            out = stdout.read().decode("utf-8", errors="replace")
            err = stderr.read().decode("utf-8", errors="replace")
            exit_status = stdout.channel.recv_exit_status()
        except (paramiko.SSHException, OSError) as e:
            raise TransportError(f"Failed to execute command on {self.description}: {e}")

        return CommandResult(command=command, exit_status=exit_status, stdout=out, stderr=err)

    def _checked(self, command: str) -> CommandResult:
        result = self.run(command)
        if not result.ok:
            raise RemoteCommandError(command, result.exit_status, result.stderr)
        return result

    def make_directory(self, path: str) -> None:
        self._checked(f"mkdir -p {shlex.quote(path)}")

    def update_symlink(self, target: str, link: str) -> None:
        temp_link = shlex.quote(link + TEMP_LINK_SUFFIX)
        # rename(2) replaces the old link in one step
        self._checked(
            f"ln -sfn {shlex.quote(target)} {temp_link} && "
            f"mv -Tf {temp_link} {shlex.quote(link)}"
        )

    def upload(self, local_path: Path, remote_path: str) -> None:
        client = self.connect()
        logger.debug(f"Uploading {local_path} to {self.host}:{remote_path}")
        try:
            sftp = client.open_sftp()
            try:
                sftp.put(str(local_path), remote_path)
            finally:
                sftp.close()
        except (paramiko.SSHException, OSError) as e:
            raise TransportError(f"Unable to copy {local_path} to {self.host}:{remote_path}: {e}")

    def unpack(self, archive_name: str, directory: str) -> List[str]:
        result = self._checked(
            f"cd {shlex.quote(directory)} && tar xzvf {shlex.quote(archive_name)}"
        )
        return result.lines()

    def list_directory(self, path: str) -> List[str]:
        quoted = shlex.quote(path)
        result = self._checked(f"if [ -d {quoted} ]; then ls -1 {quoted}; fi")
        return sorted(result.lines())

    def resolve_symlink(self, path: str) -> Optional[str]:
        quoted = shlex.quote(path)
        result = self._checked(f"if [ -L {quoted} ]; then readlink -f {quoted}; fi")
        target = result.stdout.strip()
        return target or None

    def remove_paths(self, paths: Iterable[str]) -> None:
        paths = list(paths)
        if not paths:
            return
        self._checked("rm -rf " + " ".join(shlex.quote(p) for p in paths))

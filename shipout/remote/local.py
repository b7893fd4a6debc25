# shipout/remote/local.py
"""Executor for targets on this machine"""

import logging
import os
import shutil
import subprocess
import tarfile
from pathlib import Path
from typing import Iterable, List, Optional

from .base import CommandResult, RemoteExecutor
from ..api.exceptions import RemoteCommandError, TransportError
from ..constants import TEMP_LINK_SUFFIX

logger = logging.getLogger(__name__)


def _extract_options() -> dict:
    """Use the "data" extraction filter on interpreters that ship it

    Extraction filters appeared in 3.9.17, 3.10.12 and 3.11.4.
    """
    if hasattr(tarfile, "data_filter"):
        return {"filter": "data"}
    return {}


class LocalExecutor(RemoteExecutor):
    """Performs deployment operations directly on the local filesystem

    Used when the target host is the machine running the deploy, so no SSH
    server is needed.
    """

    @property
    def description(self) -> str:
        return "localhost"

    def run(self, command: str) -> CommandResult:
        logger.debug(f"Executing {command}")
        try:
            completed = subprocess.run(command, shell=True, capture_output=True, text=True)
        except OSError as e:
            raise TransportError(f"Failed to execute {command}: {e}")
        return CommandResult(
            command=command,
            exit_status=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr
        )

    def make_directory(self, path: str) -> None:
        try:
            Path(path).mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise TransportError(f"Unable to create {path}: {e}")

    def update_symlink(self, target: str, link: str) -> None:
        link_path = Path(link)
        temp_link = Path(link + TEMP_LINK_SUFFIX)

        try:
            # Remove temp link if it exists
            if temp_link.exists() or temp_link.is_symlink():
                temp_link.unlink()

            temp_link.symlink_to(target, target_is_directory=True)

            # Atomically replace old link
            os.replace(temp_link, link_path)
        except OSError as e:
            raise TransportError(f"Unable to link {link} to {target}: {e}")

    def upload(self, local_path: Path, remote_path: str) -> None:
        try:
            shutil.copyfile(local_path, remote_path)
        except OSError as e:
            raise TransportError(f"Unable to copy {local_path} to {remote_path}: {e}")

    def unpack(self, archive_name: str, directory: str) -> List[str]:
        archive = Path(directory) / archive_name
        try:
            with tarfile.open(archive, "r:gz") as tar:
                names = tar.getnames()
                tar.extractall(directory, **_extract_options())
        except (OSError, tarfile.TarError) as e:
            raise RemoteCommandError(f"tar xzf {archive}", 2, str(e))
        return names

    def list_directory(self, path: str) -> List[str]:
        directory = Path(path)
        if not directory.is_dir():
            return []
        try:
            return sorted(entry.name for entry in directory.iterdir())
        except OSError as e:
            raise TransportError(f"Unable to list {path}: {e}")

    def resolve_symlink(self, path: str) -> Optional[str]:
        if not os.path.islink(path):
            return None
        return os.path.realpath(path)

    def remove_paths(self, paths: Iterable[str]) -> None:
        failures = []
        for path in paths:
            try:
                if os.path.islink(path) or os.path.isfile(path):
                    os.unlink(path)
                elif os.path.exists(path):
                    shutil.rmtree(path)
            except OSError as e:
                failures.append(f"{path}: {e.strerror or e}")

        if failures:
            raise RemoteCommandError("rm -rf", 1, "; ".join(failures))

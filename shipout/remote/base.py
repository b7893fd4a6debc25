# shipout/remote/base.py
"""Remote executor abstract base class"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one remote command"""

    command: str
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0

    def lines(self) -> List[str]:
        """Get non-empty stdout lines"""
        return [line for line in self.stdout.splitlines() if line.strip()]


class RemoteExecutor(ABC):
    """Operations the deployment pipeline performs on the target host

    Every call blocks until the operation completes or fails. Implementations
    raise TransportError (or RemoteCommandError) on failure.
    """

    def __enter__(self) -> 'RemoteExecutor':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    @abstractmethod
    def description(self) -> str:
        """Human readable target, e.g. user@host:22"""
        pass

    @abstractmethod
    def run(self, command: str) -> CommandResult:
        """
        Execute a shell command on the target

        Args:
            command: Command line

        Returns:
            CommandResult, whatever the exit status
        """
        pass

    @abstractmethod
    def make_directory(self, path: str) -> None:
        """Create a directory and any missing parents"""
        pass

    @abstractmethod
    def update_symlink(self, target: str, link: str) -> None:
        """
        Point link at target

        The swap must leave link pointing at either the old or the new
        target at every moment, never at nothing.
        """
        pass

    @abstractmethod
    def upload(self, local_path: Path, remote_path: str) -> None:
        """Copy a local file to the target"""
        pass

    @abstractmethod
    def unpack(self, archive_name: str, directory: str) -> List[str]:
        """
        Extract a gzip tar archive in place

        Args:
            archive_name: Archive file name inside directory
            directory: Directory holding the archive

        Returns:
            Extracted entry names
        """
        pass

    @abstractmethod
    def list_directory(self, path: str) -> List[str]:
        """
        List entry names of a directory

        Returns:
            Sorted names, or an empty list if the directory does not exist
        """
        pass

    @abstractmethod
    def resolve_symlink(self, path: str) -> Optional[str]:
        """
        Resolve a symlink to its absolute target

        Returns:
            Target path, or None if path is not a symlink
        """
        pass

    @abstractmethod
    def remove_paths(self, paths: Iterable[str]) -> None:
        """Recursively remove paths in a single request"""
        pass

    def close(self) -> None:
        """Release the connection (optional)"""
        pass

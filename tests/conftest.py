"""Shared pytest fixtures"""

import json
import posixpath
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import pytest

from shipout.api.exceptions import TransportError
from shipout.remote.base import CommandResult, RemoteExecutor


def write_manifest(root: Path, manifest: Dict) -> Path:
    path = root / "package.json"
    path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def make_project(tmp_path):
    """Factory creating a throwaway project directory

    Usage: make_project({"name": ..., "version": ...}, files={"src/app.js": "..."})
    """

    def _make(manifest: Dict, files: Optional[Dict[str, str]] = None, name: str = "project") -> Path:
        root = tmp_path / name
        root.mkdir()
        for relative, content in (files or {}).items():
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        write_manifest(root, manifest)
        return root

    return _make


@pytest.fixture
def staging_manifest():
    return {
        "name": "my-app",
        "version": "1.2.3",
        "shipout": {
            "staging": {
                "host": "server.example.net",
                "port": 3791,
                "username": "someuser",
                "base_directory": "/some/path",
            },
            "production": {
                "host": "prod.example.net",
                "username": "deploy",
                "base_directory": "/srv/app",
                "keep_releases": 2,
            },
        },
    }


class FakeExecutor(RemoteExecutor):
    """In-memory executor recording every call"""

    def __init__(self,
                 listing: Optional[List[str]] = None,
                 current_target: Optional[str] = None,
                 outputs: Optional[Dict[str, CommandResult]] = None,
                 fail_on: Iterable[str] = ()):
        self.listing = list(listing or [])
        self.current_target = current_target
        self.outputs = dict(outputs or {})
        self.fail_on = set(fail_on)
        self.calls = []
        self.removed = []
        self.closed = False

    @property
    def description(self) -> str:
        return "fake@host:22"

    def _record(self, operation, *args):
        self.calls.append((operation,) + args)
        if operation in self.fail_on:
            raise TransportError(f"{operation} failed")

    def run(self, command: str) -> CommandResult:
        self._record("run", command)
        return self.outputs.get(command, CommandResult(command, 0, "", ""))

    def make_directory(self, path: str) -> None:
        self._record("make_directory", path)

    def update_symlink(self, target: str, link: str) -> None:
        self._record("update_symlink", target, link)

    def upload(self, local_path: Path, remote_path: str) -> None:
        self._record("upload", local_path, remote_path)

    def unpack(self, archive_name: str, directory: str) -> List[str]:
        self._record("unpack", archive_name, directory)
        return ["README.md", "package.json"]

    def list_directory(self, path: str) -> List[str]:
        self._record("list_directory", path)
        return sorted(self.listing)

    def resolve_symlink(self, path: str) -> Optional[str]:
        self._record("resolve_symlink", path)
        return self.current_target

    def remove_paths(self, paths: Iterable[str]) -> None:
        paths = list(paths)
        self._record("remove_paths", paths)
        self.removed.extend(posixpath.basename(p) for p in paths)

    def close(self) -> None:
        self.closed = True

    def operations(self) -> List[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def fake_executor():
    return FakeExecutor()

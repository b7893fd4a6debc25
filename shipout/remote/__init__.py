# shipout/remote/__init__.py
"""Remote executors for shipout"""

from .base import RemoteExecutor, CommandResult
from .local import LocalExecutor
from .ssh import SSHExecutor
from .factory import create_executor

__all__ = [
    "RemoteExecutor",
    "CommandResult",
    "LocalExecutor",
    "SSHExecutor",
    "create_executor",
]

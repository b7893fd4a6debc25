# shipout/api/__init__.py
"""API layer for shipout"""

from .exceptions import (
    ShipoutError,
    ConfigurationError,
    UnknownEnvironmentError,
    MissingRequiredFieldError,
    CredentialError,
    ArchiveError,
    ArchiveWriteError,
    TransportError,
    RemoteCommandError,
    PipelineError,
    MissingContextKeyError,
    ContextConflictError,
    RetentionPlanError,
    RemoteToolVersionError,
)
from .deployer import Deployer, deploy

__all__ = [
    # Main classes
    "Deployer",

    # Convenience functions
    "deploy",

    # Exceptions
    "ShipoutError",
    "ConfigurationError",
    "UnknownEnvironmentError",
    "MissingRequiredFieldError",
    "CredentialError",
    "ArchiveError",
    "ArchiveWriteError",
    "TransportError",
    "RemoteCommandError",
    "PipelineError",
    "MissingContextKeyError",
    "ContextConflictError",
    "RetentionPlanError",
    "RemoteToolVersionError",
]

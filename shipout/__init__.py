"""shipout - Package a project and ship it to a remote host.

Builds a release archive from package.json, uploads it into a timestamped
release directory over SSH, repoints the ``current`` link and prunes old
releases.
"""

from .__version__ import __version__, __version_info__, __author__, __license__

# Exceptions
from .api.exceptions import (
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

# Core API
from .api.deployer import Deployer, deploy

# Data models
from .models import (
    PackageManifest,
    DeploymentConfiguration,
    ReleaseIdentity,
    RemoteLayout,
    ArtifactDescriptor,
    RetentionPlan,
    DeployResult,
)

__all__ = [
    # Version information
    "__version__",
    "__version_info__",
    "__author__",
    "__license__",

    # Main classes
    "Deployer",

    # Core API functions
    "deploy",

    # Data models
    "PackageManifest",
    "DeploymentConfiguration",
    "ReleaseIdentity",
    "RemoteLayout",
    "ArtifactDescriptor",
    "RetentionPlan",
    "DeployResult",

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

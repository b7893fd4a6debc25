# shipout/models/__init__.py
"""Data models for shipout"""

from .manifest import PackageManifest
from .config import DeploymentConfiguration
from .release import ReleaseIdentity, RemoteLayout
from .result import (
    ArtifactDescriptor,
    RetentionPlan,
    StageStatus,
    PipelineStatus,
    DeployResult,
)

__all__ = [
    # Manifest models
    "PackageManifest",

    # Config models
    "DeploymentConfiguration",

    # Release models
    "ReleaseIdentity",
    "RemoteLayout",

    # Result models
    "ArtifactDescriptor",
    "RetentionPlan",
    "StageStatus",
    "PipelineStatus",
    "DeployResult",
]

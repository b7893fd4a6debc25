"""Core functionality for shipout"""

from .credentials import Credential, resolve_credential
from .config_resolver import ConfigurationResolver
from .archive_builder import ArchiveBuilder
from .pipeline import Pipeline, PipelineContext, Stage
from .retention import RetentionPlanner, plan
from .stages import (
    PackageStage,
    MakeRemoteDirectoryStage,
    CreateCurrentSymlinkStage,
    CopyArchiveToRemoteStage,
    UnpackRemoteStage,
    PruneOldReleasesStage,
    LocalCleanupStage,
    CheckToolVersionStage,
)

__all__ = [
    "Credential",
    "resolve_credential",
    "ConfigurationResolver",
    "ArchiveBuilder",
    "Pipeline",
    "PipelineContext",
    "Stage",
    "RetentionPlanner",
    "plan",
    "PackageStage",
    "MakeRemoteDirectoryStage",
    "CreateCurrentSymlinkStage",
    "CopyArchiveToRemoteStage",
    "UnpackRemoteStage",
    "PruneOldReleasesStage",
    "LocalCleanupStage",
    "CheckToolVersionStage",
]

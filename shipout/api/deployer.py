"""Deployer API for shipping a project to its target host"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Mapping, Optional, Union

from ..constants import MSG_DEPLOY_SUCCESS, Transport
from ..core.archive_builder import ArchiveBuilder
from ..core.config_resolver import ConfigurationResolver
from ..core.credentials import Credential, resolve_credential
from ..core.pipeline import Pipeline, Stage
from ..core.stages import (
    CheckToolVersionStage,
    CopyArchiveToRemoteStage,
    CreateCurrentSymlinkStage,
    LocalCleanupStage,
    MakeRemoteDirectoryStage,
    PackageStage,
    PruneOldReleasesStage,
    UnpackRemoteStage,
)
from ..models import (
    ArtifactDescriptor,
    DeployResult,
    PipelineStatus,
    ReleaseIdentity,
    RemoteLayout,
)
from ..remote.base import RemoteExecutor
from ..remote.factory import create_executor
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class Deployer:
    """Deployer class for release deployments

    Everything that can fail before the first side effect happens in
    ``__init__``: the manifest is loaded, the environment resolved, the
    release named and the credential located.
    """

    def __init__(self,
                 project_root: Optional[Union[str, Path]] = None,
                 environment: Optional[str] = None,
                 private_key: Optional[Union[str, Path]] = None,
                 transport: Union[str, Transport] = Transport.SSH,
                 prune: bool = True,
                 environ: Optional[Mapping[str, str]] = None,
                 executor: Optional[RemoteExecutor] = None,
                 clock: Optional[datetime] = None):
        """
        Initialize deployer

        Args:
            project_root: Project directory containing package.json
                (defaults to the current directory)
            environment: Environment to deploy; defaults to APP_ENVIRONMENT
            private_key: SSH private key file overriding the default lookup
            transport: "ssh" or "local"
            prune: Whether to delete old releases after deploying
            environ: Environment variables (defaults to os.environ)
            executor: Pre-built executor, mainly for tests
            clock: Fixed start time used to name the release

        Raises:
            ConfigurationError: If configuration or credentials are unusable
        """
        try:
            self.transport = Transport(transport)
        except ValueError:
            raise ConfigurationError(f"Unsupported transport: {transport}")

        self.project_root = Path(project_root or Path.cwd()).resolve()
        self.prune = prune

        self.resolver = ConfigurationResolver(self.project_root, environ=environ)
        self.manifest = self.resolver.manifest
        self.config = self.resolver.resolve(environment)

        self.release = ReleaseIdentity.now(clock)
        self.layout = RemoteLayout(self.config.release_root, self.release)
        self.builder = ArchiveBuilder(self.project_root, self.manifest)

        self.credential: Optional[Credential] = None
        if executor is None:
            if self.transport == Transport.SSH:
                self.credential = resolve_credential(private_key, environ)
            executor = create_executor(self.config, self.credential, self.transport)
        self.executor = executor

    def build_pipeline(self) -> Pipeline:
        """
        Assemble the stages for this run

        Returns:
            Pipeline whose composition has been checked
        """
        verbose = self.config.verbose
        stages: List[Stage] = [
            CheckToolVersionStage(self.executor, self.layout, tool, minimum, verbose=verbose)
            for tool, minimum in sorted(self.config.required_tools.items())
        ]
        stages.extend([
            PackageStage(self.builder, verbose=verbose),
            MakeRemoteDirectoryStage(self.executor, self.layout, verbose=verbose),
            CreateCurrentSymlinkStage(self.executor, self.layout, verbose=verbose),
            CopyArchiveToRemoteStage(self.executor, self.layout, verbose=verbose),
            UnpackRemoteStage(self.executor, self.layout, verbose=verbose),
        ])
        if self.prune:
            stages.append(
                PruneOldReleasesStage(
                    self.executor,
                    self.layout,
                    self.config.keep_releases,
                    verbose=verbose
                )
            )
        stages.append(LocalCleanupStage(self.builder, verbose=verbose))

        pipeline = Pipeline(stages, name=f"deploy:{self.config.environment}")
        pipeline.check_composition()
        return pipeline

    def deploy(self) -> DeployResult:
        """
        Run the deployment

        Returns:
            DeployResult: Result of a completed run

        Raises:
            ShipoutError: The first stage failure; later stages do not run
        """
        pipeline = self.build_pipeline()
        result = DeployResult(
            status=PipelineStatus.RUNNING,
            environment=self.config.environment,
            host=self.config.host,
            release=self.release.name,
            release_directory=self.layout.release_directory,
        )

        logger.info(
            f"Deploying {self.manifest.name} v{self.manifest.version} "
            f"to {self.config.destination} ({self.config.environment})"
        )

        try:
            context = pipeline.run()
        finally:
            result.stages = pipeline.stage_statuses()
            self.executor.close()

        result.context = context.to_dict()
        result.artifact = ArtifactDescriptor(context["path"], context["file_name"],
                                             context.get("archive_size"))
        result.retention = context.get("retention")
        result.complete(pipeline.status)

        logger.info(MSG_DEPLOY_SUCCESS.format(
            name=self.manifest.name,
            version=self.manifest.version,
            host=self.config.host,
            release_directory=result.release_directory
        ))
        return result


def deploy(project_root: Optional[Union[str, Path]] = None,
           environment: Optional[str] = None,
           **options) -> DeployResult:
    """
    Convenience function to deploy a project

    Args:
        project_root: Project directory containing package.json
        environment: Environment to deploy
        **options: Additional Deployer options

    Returns:
        DeployResult: Deployment result
    """
    deployer = Deployer(project_root, environment=environment, **options)
    return deployer.deploy()

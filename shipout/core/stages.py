"""Deployment stages"""

import re
from typing import Any, Dict, Mapping

from packaging.version import InvalidVersion, Version

from .archive_builder import ArchiveBuilder
from .pipeline import PipelineContext, Stage
from .retention import RetentionPlanner
from ..api.exceptions import RemoteToolVersionError
from ..constants import MSG_LINK_UPDATED
from ..models.release import RemoteLayout
from ..remote.base import RemoteExecutor


class PackageStage(Stage):
    """Packs the project into an archive under the local package/ directory"""

    name = "package"
    provides = ("path", "file_name", "archive_size")

    def __init__(self, builder: ArchiveBuilder, **kwargs):
        super().__init__(**kwargs)
        self.builder = builder

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        self.logger.info(
            f"Packaging to {self.builder.package_directory()}/{self.builder.archive_name()}..."
        )
        artifact = self.builder.build()
        return {"path": artifact.path, "file_name": artifact.file_name, "archive_size": artifact.size}


class RemoteStage(Stage):
    """Stage operating on the target host"""

    def __init__(self, executor: RemoteExecutor, layout: RemoteLayout, **kwargs):
        super().__init__(**kwargs)
        self.executor = executor
        self.layout = layout


class MakeRemoteDirectoryStage(RemoteStage):
    """Creates the release directory on the target host"""

    name = "mkdir"
    provides = ("release_directory",)

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        release_directory = self.layout.release_directory
        self.logger.info(f"Creating {release_directory} on {self.executor.description}...")
        self.executor.make_directory(release_directory)
        return {"release_directory": release_directory}


class CreateCurrentSymlinkStage(RemoteStage):
    """Points the current link at the new release directory"""

    name = "link"
    requires = ("release_directory",)
    provides = ("current_link",)

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        target = context.require(self.name, "release_directory")
        link = self.layout.current_link
        self.executor.update_symlink(target, link)
        self.logger.info(MSG_LINK_UPDATED.format(link=link, target=target))
        return {"current_link": link}


class CopyArchiveToRemoteStage(RemoteStage):
    """Uploads the archive into the release directory"""

    name = "copy"
    requires = ("path", "file_name", "release_directory")
    provides = ("remote_archive",)

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        local_dir = context.require(self.name, "path")
        file_name = context.require(self.name, "file_name")
        remote_archive = self.layout.archive_path(file_name)

        self.logger.info(f"Copying {local_dir}/{file_name} to {self.executor.description}")
        self.executor.upload(local_dir / file_name, remote_archive)
        return {"remote_archive": remote_archive}


class UnpackRemoteStage(RemoteStage):
    """Extracts the uploaded archive on the target host"""

    name = "unpack"
    requires = ("file_name", "release_directory")
    provides = ("remote_file_list",)

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        file_name = context.require(self.name, "file_name")
        release_directory = context.require(self.name, "release_directory")

        self.logger.info(f"Unpacking {file_name} on remote host...")
        file_list = self.executor.unpack(file_name, release_directory)
        self.logger.debug(f"Unpacked {len(file_list)} entries")
        return {"remote_file_list": file_list}


class PruneOldReleasesStage(RemoteStage):
    """Deletes releases beyond the retention count, keeping the active one"""

    name = "prune"
    provides = ("retention",)

    def __init__(self, executor: RemoteExecutor, layout: RemoteLayout, keep_releases: int, **kwargs):
        super().__init__(executor, layout, **kwargs)
        self.keep_releases = keep_releases
        self.planner = RetentionPlanner(executor)

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        if self.keep_releases >= 0:
            self.logger.info(
                f"Cleaning up all but latest {self.keep_releases} releases on the remote host"
            )
        retention = self.planner.prune(self.layout.root, self.keep_releases)
        return {"retention": retention}


class LocalCleanupStage(Stage):
    """Removes the local package/ staging directory"""

    name = "localCleanup"
    requires = ("path",)
    provides = ("local_cleanup",)

    def __init__(self, builder: ArchiveBuilder, **kwargs):
        super().__init__(**kwargs)
        self.builder = builder

    def execute(self, context: PipelineContext) -> Mapping[str, Any]:
        context.require(self.name, "path")
        self.logger.info(f"Cleaning up {self.builder.root_package_directory()}...")
        self.builder.clean_up()
        return {"local_cleanup": True}


_VERSION_RE = re.compile(r"v?(\d+(?:\.\d+)*)")


class CheckToolVersionStage(RemoteStage):
    """Fails unless a tool on the target host meets a minimum version"""

    def __init__(self,
                 executor: RemoteExecutor,
                 layout: RemoteLayout,
                 tool: str,
                 min_version: str,
                 **kwargs):
        self.name = f"check:{tool}"
        self.provides = (f"{tool}_version",)
        super().__init__(executor, layout, **kwargs)
        self.tool = tool
        self.min_version = Version(min_version)

    def execute(self, context: PipelineContext) -> Dict[str, Any]:
        result = self.executor.run(f"{self.tool} --version")
        if not result.ok:
            raise RemoteToolVersionError(
                f"{self.tool} is not available on {self.executor.description}: "
                f"{result.stderr.strip() or 'exit status ' + str(result.exit_status)}"
            )

        output = result.stdout.strip()
        match = _VERSION_RE.search(output)
        try:
            found = Version(match.group(1)) if match else None
        except InvalidVersion:
            found = None
        if found is None:
            raise RemoteToolVersionError(f"Unable to parse {self.tool} version from {output!r}")

        if found < self.min_version:
            raise RemoteToolVersionError(
                f"{self.tool} version {found} is less than specified minimum version of "
                f"{self.min_version}."
            )

        self.logger.debug(f"{self.tool} {found} satisfies >= {self.min_version}")
        return {f"{self.tool}_version": str(found)}

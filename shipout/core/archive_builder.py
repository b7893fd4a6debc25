"""Release archive selection and packaging"""

import logging
import os
import posixpath
import shutil
import tarfile
from pathlib import Path, PurePosixPath
from typing import Callable, List, Optional, Sequence, Union

from ..api.exceptions import ArchiveError, ArchiveWriteError
from ..constants import (
    ARCHIVE_NAME_PATTERN,
    MANIFEST_FILE,
    PACKAGE_DIR_NAME,
    README_FILE,
    ROOT_SENTINEL,
)
from ..models.manifest import PackageManifest
from ..models.result import ArtifactDescriptor

logger = logging.getLogger(__name__)


class ArchiveBuilder:
    """Decides which project paths belong in a release and packs them"""

    def __init__(self, project_root: Union[str, Path], manifest: PackageManifest):
        """Initialize archive builder

        Args:
            project_root: Project directory to pack
            manifest: Parsed project manifest
        """
        self.project_root = Path(project_root).resolve()
        self.manifest = manifest

    def select_files(self) -> List[str]:
        """Get paths to pack, relative to the project root

        README.md and the manifest are always included when an explicit
        files list is declared. Without one, the whole project root is
        packed and the root sentinel is returned alone.

        Returns:
            Ordered, de-duplicated list of POSIX relative paths
        """
        if not self.manifest.declares_files:
            return [ROOT_SENTINEL]

        selection = []
        for entry in [README_FILE, MANIFEST_FILE] + list(self.manifest.files):
            relative = self._relative_to_root(entry)
            if relative not in selection:
                selection.append(relative)

        return selection

    def archive_name(self) -> str:
        """Get the archive file name, without any namespace"""
        return ARCHIVE_NAME_PATTERN.format(
            name=self.manifest.unscoped_name,
            version=self.manifest.version
        )

    def root_package_directory(self) -> Path:
        """Get the local staging directory removed after a deploy"""
        return self.project_root / PACKAGE_DIR_NAME

    def package_directory(self) -> Path:
        """Get the directory the archive is written to

        Namespaced projects (e.g. "@scope/app") nest the archive under the
        namespace segments.
        """
        directory = self.root_package_directory()
        if self.manifest.namespace:
            directory = directory.joinpath(*self.manifest.namespace.split("/"))
        return directory

    def build(self,
              selection: Optional[Sequence[str]] = None,
              destination_dir: Optional[Union[str, Path]] = None) -> ArtifactDescriptor:
        """Write the gzip tar archive

        Args:
            selection: Paths to pack (defaults to select_files())
            destination_dir: Output directory (defaults to package_directory())

        Returns:
            Descriptor of the written archive

        Raises:
            ArchiveWriteError: If the destination or archive cannot be written
        """
        if selection is None:
            selection = self.select_files()
        destination = Path(destination_dir) if destination_dir else self.package_directory()
        archive_path = destination / self.archive_name()

        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ArchiveWriteError(destination, e.strerror or str(e))

        entry_filter = self._make_filter(selection, exclude=[destination, self.root_package_directory()])

        try:
            with tarfile.open(archive_path, "w:gz") as tar:
                for child in sorted(self.project_root.iterdir()):
                    tar.add(str(child), arcname=child.name, filter=entry_filter)
        except (OSError, tarfile.TarError) as e:
            reason = getattr(e, "strerror", None) or str(e)
            raise ArchiveWriteError(archive_path, reason)

        logger.debug(f"Packed paths: {', '.join(selection)}")
        return ArtifactDescriptor(path=destination.resolve(), file_name=self.archive_name(),
                                  size=archive_path.stat().st_size)

    def clean_up(self) -> None:
        """Remove the local staging directory"""
        package_dir = self.root_package_directory()
        if package_dir.exists():
            shutil.rmtree(package_dir)
            logger.debug(f"Removed {package_dir}")

    def _make_filter(self,
                     selection: Sequence[str],
                     exclude: Sequence[Path]) -> Callable[[tarfile.TarInfo], Optional[tarfile.TarInfo]]:
        """Build the per-entry inclusion filter used while the archive is written

        An entry is kept if the selection is the root sentinel, the entry is
        a selected path, or it sits under a selected directory. Ancestors of
        selected paths are kept so tarfile descends into them.
        """
        pack_everything = ROOT_SENTINEL in selection
        selected = [PurePosixPath(p) for p in selection if p != ROOT_SENTINEL]
        excluded = set()
        for path in exclude:
            try:
                relative = Path(path).resolve().relative_to(self.project_root).as_posix()
            except ValueError:
                # Destination outside the project is never walked
                continue
            if relative != ROOT_SENTINEL:
                excluded.add(PurePosixPath(relative))

        def entry_filter(info: tarfile.TarInfo) -> Optional[tarfile.TarInfo]:
            entry = PurePosixPath(info.name)

            if any(entry == path or path in entry.parents for path in excluded):
                return None
            if pack_everything:
                return info
            for path in selected:
                if entry == path or path in entry.parents:
                    return info
                if info.isdir() and entry in path.parents:
                    return info
            return None

        return entry_filter

    def _relative_to_root(self, entry: str) -> str:
        """Normalize a declared path to a POSIX path relative to the root"""
        resolved = Path(os.path.normpath(self.project_root / entry))
        try:
            relative = resolved.relative_to(self.project_root).as_posix()
        except ValueError:
            raise ArchiveError(f"Path escapes the project directory: {entry}")

        if not resolved.exists():
            logger.warning(
                f"Path does not appear to exist: {relative}. Are you sure files "
                f"were specified correctly in your {MANIFEST_FILE}?"
            )

        return posixpath.normpath(relative)

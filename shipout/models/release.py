"""Release identity and remote layout models"""

import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..constants import CURRENT_LINK_NAME, RELEASE_NAME_FORMAT


@dataclass(frozen=True)
class ReleaseIdentity:
    """Timestamped name of the release directory created by one run"""

    name: str
    created_at: Optional[datetime] = field(default=None, compare=False)

    @classmethod
    def now(cls, clock: Optional[datetime] = None) -> 'ReleaseIdentity':
        """Create the identity for a run starting now"""
        moment = clock or datetime.now()
        return cls(name=moment.strftime(RELEASE_NAME_FORMAT), created_at=moment)

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class RemoteLayout:
    """Paths of one release on the target host"""

    root: str
    release: ReleaseIdentity

    @property
    def release_directory(self) -> str:
        return posixpath.join(self.root, self.release.name)

    @property
    def current_link(self) -> str:
        return posixpath.join(self.root, CURRENT_LINK_NAME)

    def archive_path(self, file_name: str) -> str:
        """Remote location of an uploaded archive"""
        return posixpath.join(self.release_directory, file_name)

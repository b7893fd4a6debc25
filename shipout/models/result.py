"""Operation result models"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Any


class StageStatus(Enum):
    """Lifecycle of a single pipeline stage"""
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class PipelineStatus(Enum):
    """Lifecycle of a whole pipeline run"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass(frozen=True)
class ArtifactDescriptor:
    """A built release archive on the local machine"""

    path: Path
    file_name: str
    size: Optional[int] = None

    @property
    def archive_path(self) -> Path:
        return self.path / self.file_name


@dataclass(frozen=True)
class RetentionPlan:
    """Which release directories to keep and which to delete

    ``to_keep`` may hold one entry more than ``keep_count`` when the active
    release is older than the newest ``keep_count`` releases.
    """

    to_keep: FrozenSet[str]
    to_delete: FrozenSet[str]
    keep_count: int
    current: Optional[str] = None
    skipped: bool = False

    @property
    def has_deletions(self) -> bool:
        return bool(self.to_delete)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "keep_count": self.keep_count,
            "current": self.current,
            "skipped": self.skipped,
            "to_keep": sorted(self.to_keep),
            "to_delete": sorted(self.to_delete),
        }


@dataclass
class DeployResult:
    """Result of a deployment run"""

    status: PipelineStatus
    environment: str
    host: str
    release: str
    release_directory: str
    artifact: Optional[ArtifactDescriptor] = None
    retention: Optional[RetentionPlan] = None
    stages: Dict[str, StageStatus] = field(default_factory=dict)
    context: Dict[str, Any] = field(default_factory=dict)
    start_time: datetime = field(default_factory=datetime.now)
    end_time: Optional[datetime] = None

    @property
    def is_success(self) -> bool:
        """Check if every stage ran successfully"""
        return self.status == PipelineStatus.COMPLETED

    @property
    def duration(self) -> Optional[float]:
        """Get run duration in seconds"""
        if self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None

    def complete(self, status: PipelineStatus) -> None:
        """Mark run as finished"""
        self.end_time = datetime.now()
        self.status = status

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "status": self.status.value,
            "environment": self.environment,
            "host": self.host,
            "release": self.release,
            "release_directory": self.release_directory,
            "archive": str(self.artifact.archive_path) if self.artifact else None,
            "archive_size": self.artifact.size if self.artifact else None,
            "retention": self.retention.to_dict() if self.retention else None,
            "stages": {name: status.value for name, status in self.stages.items()},
            "duration": self.duration,
        }

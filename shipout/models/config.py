"""Deployment configuration model"""

import posixpath
from dataclasses import dataclass, field
from typing import Dict, Any

from packaging.version import InvalidVersion, Version

from ..api.exceptions import ConfigurationError, MissingRequiredFieldError
from ..constants import (
    ConfigMode,
    DEFAULT_PORT,
    DEFAULT_KEEP_RELEASES,
    REQUIRED_FIELDS,
)


@dataclass(frozen=True)
class DeploymentConfiguration:
    """Resolved settings for one deployment environment

    Built once by the configuration resolver and shared read-only by every
    other component.
    """

    environment: str
    host: str
    username: str
    base_directory: str
    port: int = DEFAULT_PORT
    keep_releases: int = DEFAULT_KEEP_RELEASES
    verbose: bool = False
    required_tools: Dict[str, str] = field(default_factory=dict)
    mode: ConfigMode = ConfigMode.MULTI_ENVIRONMENT

    def __post_init__(self):
        """Validate resolved configuration"""
        if not self.environment:
            raise MissingRequiredFieldError("environment")

        for name in REQUIRED_FIELDS:
            if not getattr(self, name):
                raise MissingRequiredFieldError(name, self.environment)

        if not posixpath.isabs(self.base_directory):
            raise ConfigurationError(
                f'base_directory must be an absolute path in environment '
                f'"{self.environment}", got "{self.base_directory}"'
            )

        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ConfigurationError(f"port must be an integer, got {self.port!r}")
        if not 0 < self.port < 65536:
            raise ConfigurationError(f"port out of range: {self.port}")

        if isinstance(self.keep_releases, bool) or not isinstance(self.keep_releases, int):
            raise ConfigurationError(
                f"keep_releases must be an integer, got {self.keep_releases!r}"
            )

        for tool, min_version in self.required_tools.items():
            try:
                Version(str(min_version))
            except InvalidVersion:
                raise ConfigurationError(
                    f'Invalid minimum version for {tool}: {min_version!r} in environment '
                    f'"{self.environment}"'
                )

    @property
    def release_root(self) -> str:
        """Remote directory holding the release directories and the current link

        Each environment of a multi-environment manifest gets its own tree
        under the shared base directory.
        """
        base = self.base_directory.rstrip("/") or "/"
        if self.mode == ConfigMode.MULTI_ENVIRONMENT:
            return posixpath.join(base, self.environment)
        return base

    @property
    def cleanup_enabled(self) -> bool:
        """Check if old releases should be pruned"""
        return self.keep_releases >= 0

    @property
    def destination(self) -> str:
        """Get display string for the target host"""
        return f"{self.username}@{self.host}:{self.port}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return {
            "environment": self.environment,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "base_directory": self.base_directory,
            "keep_releases": self.keep_releases,
            "verbose": self.verbose,
            "required_tools": dict(self.required_tools),
            "mode": self.mode.value,
        }

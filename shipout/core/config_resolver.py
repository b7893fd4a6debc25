"""Configuration resolution from the project manifest and environment"""

import getpass
import json
import logging
import os
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Any, Union

import jsonschema

from ..api.exceptions import (
    ConfigurationError,
    MissingRequiredFieldError,
    UnknownEnvironmentError,
)
from ..constants import (
    ConfigMode,
    ErrorCode,
    MANIFEST_FILE,
    MANIFEST_SCHEMA,
    ENVIRONMENT_SCHEMA,
    SHIPOUT_KEY,
    SETTING_KEYS,
    LEGACY_KEY_ALIASES,
    LEGACY_ENVIRONMENT_KEY,
    ENV_APP_ENVIRONMENT,
    ENV_OVERRIDES,
    DEFAULT_PORT,
    DEFAULT_KEEP_RELEASES,
)
from ..models.config import DeploymentConfiguration
from ..models.manifest import PackageManifest

logger = logging.getLogger(__name__)


def _is_set(value: Any) -> bool:
    return value is not None and value != ""


class ConfigurationResolver:
    """Resolves one deployment environment's settings

    The manifest is read exactly once, when the resolver is created, and the
    parsed copy is used for the rest of the process. This is the only
    component that reads the process environment.
    """

    def __init__(self,
                 project_root: Union[str, Path],
                 environ: Optional[Mapping[str, str]] = None,
                 multi_environment: Optional[bool] = None):
        """Initialize resolver and load the manifest

        Args:
            project_root: Project directory containing the manifest
            environ: Environment variables (defaults to os.environ)
            multi_environment: Force multi-environment mode (True), legacy
                mode (False) or detect it from the manifest (None)

        Raises:
            ConfigurationError: If the manifest is missing or invalid
        """
        self.project_root = Path(project_root).resolve()
        self.manifest_path = self.project_root / MANIFEST_FILE
        self.environ = dict(os.environ if environ is None else environ)

        self._manifest = self._load_manifest()
        self._mode = self._detect_mode(multi_environment)

    @property
    def manifest(self) -> PackageManifest:
        """Get the cached manifest"""
        return self._manifest

    @property
    def mode(self) -> ConfigMode:
        return self._mode

    @property
    def environments(self) -> List[str]:
        """Get environment names declared in the manifest"""
        if self._mode == ConfigMode.LEGACY:
            return []
        return list(self._shipout_section())

    def resolve(self, environment_name: Optional[str] = None) -> DeploymentConfiguration:
        """Resolve settings for one environment

        Args:
            environment_name: Environment to resolve; defaults to
                APP_ENVIRONMENT

        Returns:
            Immutable deployment configuration

        Raises:
            UnknownEnvironmentError: If the environment is not declared
            MissingRequiredFieldError: If a required field is still empty
            ConfigurationError: If a declared value is invalid
        """
        if self._mode == ConfigMode.MULTI_ENVIRONMENT:
            return self._resolve_multi_environment(environment_name)
        return self._resolve_legacy(environment_name)

    def _resolve_multi_environment(self, environment_name: Optional[str]) -> DeploymentConfiguration:
        environment = environment_name or self.environ.get(ENV_APP_ENVIRONMENT)
        if not environment:
            raise MissingRequiredFieldError("environment")

        declared = self._shipout_section()
        if environment not in declared:
            raise UnknownEnvironmentError(environment, declared.keys())

        settings = declared[environment]
        self._validate_settings(settings, environment)

        return self._build(environment, settings, {}, ConfigMode.MULTI_ENVIRONMENT)

    def _resolve_legacy(self, environment_name: Optional[str]) -> DeploymentConfiguration:
        section = self._normalize_legacy_keys(self._shipout_section())
        self._validate_settings(section, environment_name or "default")

        environment = (
            environment_name
            or self.environ.get(ENV_APP_ENVIRONMENT)
            or section.get(LEGACY_ENVIRONMENT_KEY)
        )
        if not environment:
            raise MissingRequiredFieldError("environment")

        overrides = {
            name: self.environ.get(variable)
            for name, variable in ENV_OVERRIDES.items()
        }

        return self._build(environment, section, overrides, ConfigMode.LEGACY)

    def _build(self,
               environment: str,
               settings: Mapping[str, Any],
               overrides: Mapping[str, Optional[str]],
               mode: ConfigMode) -> DeploymentConfiguration:
        """Apply precedence: manifest value, then override, then default"""

        def pick(name: str, default: Any = None) -> Any:
            if _is_set(settings.get(name)):
                return settings[name]
            if _is_set(overrides.get(name)):
                logger.debug(f"{name} taken from environment variable {ENV_OVERRIDES[name]}")
                return overrides[name]
            if default is not None:
                logger.warning(
                    f'{name} not set in {MANIFEST_FILE}. Using default value of "{default}"'
                )
            return default

        port = pick("port", DEFAULT_PORT)
        try:
            port = int(port)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid port {port!r} in environment \"{environment}\"")

        return DeploymentConfiguration(
            environment=environment,
            host=pick("host"),
            username=pick("username", self._current_user()),
            base_directory=pick("base_directory"),
            port=port,
            keep_releases=pick("keep_releases", DEFAULT_KEEP_RELEASES),
            verbose=bool(settings.get("verbose", False)),
            required_tools=dict(settings.get("required_tools") or {}),
            mode=mode
        )

    def _load_manifest(self) -> PackageManifest:
        """Read and validate the manifest file"""
        if not self.manifest_path.is_file():
            raise ConfigurationError(
                f"Manifest not found: {self.manifest_path}",
                ErrorCode.MANIFEST_NOT_FOUND
            )

        try:
            with open(self.manifest_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Invalid JSON in {self.manifest_path}: {e}")
        except OSError as e:
            raise ConfigurationError(f"Unable to read {self.manifest_path}: {e}")

        try:
            jsonschema.validate(data, MANIFEST_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(f"Invalid {MANIFEST_FILE}: {e.message}")

        logger.debug(f"Loaded manifest {self.manifest_path}")
        return PackageManifest.from_dict(data)

    def _detect_mode(self, multi_environment: Optional[bool]) -> ConfigMode:
        section = self._shipout_section()
        flat = any(key in section for key in SETTING_KEYS + tuple(LEGACY_KEY_ALIASES))
        flat = flat or LEGACY_ENVIRONMENT_KEY in section

        if multi_environment:
            if not section:
                raise ConfigurationError(
                    f'No environments declared in the "{SHIPOUT_KEY}" section of {MANIFEST_FILE}'
                )
            if flat:
                raise ConfigurationError(
                    f'The "{SHIPOUT_KEY}" section of {MANIFEST_FILE} holds flat settings, '
                    f"not environments"
                )
            mode = ConfigMode.MULTI_ENVIRONMENT
        elif multi_environment is False or flat or not section:
            mode = ConfigMode.LEGACY
        else:
            mode = ConfigMode.MULTI_ENVIRONMENT

        if mode == ConfigMode.MULTI_ENVIRONMENT:
            for name, settings in section.items():
                if not isinstance(settings, dict):
                    raise ConfigurationError(
                        f'Environment "{name}" in {MANIFEST_FILE} must be an object'
                    )

        logger.debug(f"Configuration mode: {mode.value}")
        return mode

    def _shipout_section(self) -> Dict[str, Any]:
        return self._manifest.shipout or {}

    @staticmethod
    def _normalize_legacy_keys(section: Mapping[str, Any]) -> Dict[str, Any]:
        normalized = dict(section)
        for alias, name in LEGACY_KEY_ALIASES.items():
            if alias in normalized:
                value = normalized.pop(alias)
                normalized.setdefault(name, value)
        return normalized

    @staticmethod
    def _validate_settings(settings: Mapping[str, Any], environment: str) -> None:
        try:
            jsonschema.validate(dict(settings), ENVIRONMENT_SCHEMA)
        except jsonschema.ValidationError as e:
            raise ConfigurationError(
                f'Invalid settings for environment "{environment}": {e.message}'
            )

    @staticmethod
    def _current_user() -> Optional[str]:
        try:
            return getpass.getuser()
        except (KeyError, OSError):
            return None

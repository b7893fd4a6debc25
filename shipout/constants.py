"""Global constants for shipout"""

from enum import Enum

APP_NAME = "shipout"
LOG_FORMAT = "%(message)s"

# Project layout
MANIFEST_FILE = "package.json"
README_FILE = "README.md"
PACKAGE_DIR_NAME = "package"  # Local staging directory for built archives
ROOT_SENTINEL = "."  # Selection meaning "pack the whole project root"
ARCHIVE_NAME_PATTERN = "{name}-v{version}.tgz"

# Remote layout
CURRENT_LINK_NAME = "current"
TEMP_LINK_SUFFIX = ".tmp"
RELEASE_NAME_FORMAT = "%Y-%m-%d_%H:%M:%S"  # Sortable: lexicographic == chronological

# Default configuration values
DEFAULT_PORT = 22
DEFAULT_KEEP_RELEASES = 5
DEFAULT_CONNECT_TIMEOUT = 10  # seconds
DEFAULT_PRIVATE_KEY = ".ssh/id_rsa"  # Relative to the invoking user's home

# Manifest keys
SHIPOUT_KEY = "shipout"
SETTING_KEYS = (
    "host",
    "port",
    "username",
    "base_directory",
    "verbose",
    "keep_releases",
    "required_tools",
)

# Flat keys understood by the legacy single-environment manifest, mapped to
# their current names
LEGACY_KEY_ALIASES = {
    "deploy_server": "host",
    "deploy_user": "username",
    "deploy_base_dir": "base_directory",
    "deploy_port": "port",
}
LEGACY_ENVIRONMENT_KEY = "app_environment"

REQUIRED_FIELDS = ("host", "username", "base_directory")

# Environment variables
ENV_APP_ENVIRONMENT = "APP_ENVIRONMENT"
ENV_DEPLOY_BASE_DIR = "DEPLOY_BASE_DIR"
ENV_DEPLOY_SERVER = "DEPLOY_SERVER"
ENV_DEPLOY_USER = "DEPLOY_USER"
ENV_DEPLOY_PORT = "DEPLOY_PORT"
ENV_SSH_AUTH_SOCK = "SSH_AUTH_SOCK"
ENV_HOME = "HOME"

# Legacy mode: setting name -> overriding environment variable
ENV_OVERRIDES = {
    "host": ENV_DEPLOY_SERVER,
    "username": ENV_DEPLOY_USER,
    "base_directory": ENV_DEPLOY_BASE_DIR,
    "port": ENV_DEPLOY_PORT,
}

# Manifest schemas (jsonschema)
ENVIRONMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "host": {"type": "string"},
        "port": {"type": ["integer", "string"], "pattern": "^[0-9]+$"},
        "username": {"type": "string"},
        "base_directory": {"type": "string"},
        "verbose": {"type": "boolean"},
        "keep_releases": {"type": "integer"},
        "required_tools": {
            "type": "object",
            "additionalProperties": {"type": "string"},
        },
    },
}

MANIFEST_SCHEMA = {
    "type": "object",
    "required": ["name", "version"],
    "properties": {
        "name": {"type": "string", "minLength": 1},
        "version": {"type": "string", "minLength": 1},
        "files": {"type": "array", "items": {"type": "string"}},
        SHIPOUT_KEY: {"type": "object"},
    },
}


class ConfigMode(Enum):
    """How the manifest declares deployment settings"""
    MULTI_ENVIRONMENT = "multi_environment"
    LEGACY = "legacy"


class Transport(Enum):
    """Available remote transports"""
    SSH = "ssh"
    LOCAL = "local"


# Error codes
class ErrorCode:
    CONFIG_FORMAT_ERROR = "SO001"
    MANIFEST_NOT_FOUND = "SO002"
    UNKNOWN_ENVIRONMENT = "SO003"
    MISSING_REQUIRED_FIELD = "SO004"
    CREDENTIAL_UNAVAILABLE = "SO005"
    PACK_FAILED = "SO010"
    ARCHIVE_WRITE_FAILED = "SO011"
    TRANSPORT_FAILED = "SO020"
    REMOTE_COMMAND_FAILED = "SO021"
    PIPELINE_FAILED = "SO030"
    MISSING_CONTEXT_KEY = "SO031"
    CONTEXT_CONFLICT = "SO032"
    RETENTION_PLAN_FAILED = "SO040"
    TOOL_VERSION_MISMATCH = "SO050"


# Display constants
EMOJI_SUCCESS = "✓"
EMOJI_ERROR = "✗"
EMOJI_ARROW = "→"
EMOJI_LINK = "🔗"

# Messages templates
MSG_DEPLOY_SUCCESS = f"{EMOJI_SUCCESS} Shipped {{name}} v{{version}} to {{host}}:{{release_directory}}"
MSG_LINK_UPDATED = f"{EMOJI_LINK} Link updated: {{link}} {EMOJI_ARROW} {{target}}"
MSG_CONTEXT_MISSING = "Stage '{stage}' requires '{key}' in the pipeline context. Did a previous stage fail?"

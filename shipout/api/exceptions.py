"""Exception definitions for shipout"""

from typing import Optional

from ..constants import ErrorCode, MSG_CONTEXT_MISSING


class ShipoutError(Exception):
    """Base exception for shipout"""

    def __init__(self, message: str, error_code: str = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ConfigurationError(ShipoutError):
    """Missing or invalid manifest or environment settings"""

    def __init__(self, message: str, error_code: str = ErrorCode.CONFIG_FORMAT_ERROR):
        super().__init__(message, error_code)


class UnknownEnvironmentError(ConfigurationError):
    """Requested environment is not declared in the manifest"""

    def __init__(self, environment: str, declared=()):
        message = f'Environment "{environment}" is not defined'
        if declared:
            message += f" (declared: {', '.join(sorted(declared))})"
        super().__init__(message, ErrorCode.UNKNOWN_ENVIRONMENT)
        self.environment = environment
        self.declared = tuple(declared)


class MissingRequiredFieldError(ConfigurationError):
    """A required setting is still empty after applying every precedence level"""

    def __init__(self, field_name: str, environment: Optional[str] = None):
        if environment:
            message = (
                f"A package.json configuration was not specified for "
                f'{field_name} in environment "{environment}"'
            )
        else:
            message = f"A configuration value was not specified for {field_name}"
        super().__init__(message, ErrorCode.MISSING_REQUIRED_FIELD)
        self.field_name = field_name
        self.environment = environment


class CredentialError(ConfigurationError):
    """No usable SSH credential could be resolved"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.CREDENTIAL_UNAVAILABLE)


class ArchiveError(ShipoutError):
    """Local packaging error"""

    def __init__(self, message: str, error_code: str = ErrorCode.PACK_FAILED):
        super().__init__(message, error_code)


class ArchiveWriteError(ArchiveError):
    """Destination directory or archive file could not be written"""

    def __init__(self, path, reason: str):
        super().__init__(f"Unable to write archive {path}: {reason}",
                         ErrorCode.ARCHIVE_WRITE_FAILED)
        self.path = path
        self.reason = reason


class TransportError(ShipoutError):
    """Connection, authentication or transfer failure"""

    def __init__(self, message: str, error_code: str = ErrorCode.TRANSPORT_FAILED):
        super().__init__(message, error_code)


class RemoteCommandError(TransportError):
    """A remote command exited with a non-zero status"""

    def __init__(self, command: str, exit_status: int, stderr: str = ""):
        detail = stderr.strip() or "no error output"
        message = f"Remote command failed with exit status {exit_status}: {command} ({detail})"
        super().__init__(message, ErrorCode.REMOTE_COMMAND_FAILED)
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr


class PipelineError(ShipoutError):
    """Pipeline contract violation"""

    def __init__(self, message: str, error_code: str = ErrorCode.PIPELINE_FAILED):
        super().__init__(message, error_code)


class MissingContextKeyError(PipelineError):
    """A stage needs a context key that no previous stage produced"""

    def __init__(self, stage: str, key: str):
        super().__init__(MSG_CONTEXT_MISSING.format(stage=stage, key=key),
                         ErrorCode.MISSING_CONTEXT_KEY)
        self.stage = stage
        self.key = key


class ContextConflictError(PipelineError):
    """A stage tried to rebind a key already present in the context"""

    def __init__(self, stage: str, key: str):
        super().__init__(
            f"Stage '{stage}' attempted to overwrite '{key}' in the pipeline context",
            ErrorCode.CONTEXT_CONFLICT
        )
        self.stage = stage
        self.key = key


class RetentionPlanError(ShipoutError):
    """Release listing or current link resolution failed; nothing was deleted"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.RETENTION_PLAN_FAILED)


class RemoteToolVersionError(ShipoutError):
    """A tool on the remote host is missing or older than required"""

    def __init__(self, message: str):
        super().__init__(message, ErrorCode.TOOL_VERSION_MISMATCH)

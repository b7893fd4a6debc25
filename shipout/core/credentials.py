"""SSH credential resolution"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional, Union

from ..api.exceptions import CredentialError
from ..constants import DEFAULT_PRIVATE_KEY, ENV_HOME, ENV_SSH_AUTH_SOCK

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """How to authenticate to the target host

    Exactly one of ``private_key`` (key material) or ``agent_socket`` is set.
    """

    source: str
    private_key: Optional[str] = field(default=None, repr=False)
    key_path: Optional[Path] = None
    agent_socket: Optional[str] = None

    @property
    def uses_agent(self) -> bool:
        return self.agent_socket is not None


def _read_key(path: Path) -> str:
    try:
        data = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise CredentialError(f"Unable to read private key from {path}: {e}")
    if not data.strip():
        raise CredentialError(f"Private key file is empty: {path}")
    return data


def resolve_credential(private_key_path: Optional[Union[str, Path]] = None,
                       environ: Optional[Mapping[str, str]] = None) -> Credential:
    """Resolve the credential once, before the pipeline is built

    Order: explicit key file, SSH agent (SSH_AUTH_SOCK), then the default
    key in the user's home directory.

    Args:
        private_key_path: Explicit private key file
        environ: Environment variables (defaults to os.environ)

    Returns:
        Resolved credential

    Raises:
        CredentialError: If no credential is available
    """
    environ = os.environ if environ is None else environ

    if private_key_path:
        path = Path(private_key_path).expanduser()
        logger.debug(f"Using private key {path}")
        return Credential(source="key", private_key=_read_key(path), key_path=path)

    agent_socket = environ.get(ENV_SSH_AUTH_SOCK)
    if agent_socket:
        logger.debug(f"Using SSH agent at {agent_socket}")
        return Credential(source="agent", agent_socket=agent_socket)

    home = environ.get(ENV_HOME)
    default_key = Path(home) / DEFAULT_PRIVATE_KEY if home else Path.home() / DEFAULT_PRIVATE_KEY
    if default_key.is_file():
        logger.debug(f"Using default private key {default_key}")
        return Credential(source="default-key", private_key=_read_key(default_key), key_path=default_key)

    raise CredentialError(
        f"No SSH credential available: pass --private-key, start an SSH agent "
        f"({ENV_SSH_AUTH_SOCK}), or create {default_key}"
    )

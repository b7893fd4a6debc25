# shipout/remote/factory.py
"""Remote executor factory"""

from typing import Optional, Union

from .base import RemoteExecutor
from .local import LocalExecutor
from .ssh import SSHExecutor
from ..api.exceptions import ConfigurationError
from ..constants import Transport
from ..core.credentials import Credential
from ..models.config import DeploymentConfiguration


def create_executor(config: DeploymentConfiguration,
                    credential: Optional[Credential] = None,
                    transport: Union[str, Transport] = Transport.SSH) -> RemoteExecutor:
    """
    Create the executor for a deployment target

    Args:
        config: Resolved deployment configuration
        credential: Resolved SSH credential (SSH transport only)
        transport: Transport name or enum

    Returns:
        RemoteExecutor instance

    Raises:
        ConfigurationError: If the transport is unknown
    """
    try:
        transport = Transport(transport)
    except ValueError:
        raise ConfigurationError(f"Unsupported transport: {transport}")

    if transport == Transport.LOCAL:
        return LocalExecutor()

    return SSHExecutor(
        host=config.host,
        username=config.username,
        port=config.port,
        credential=credential
    )

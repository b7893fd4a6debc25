"""CLI utility functions"""

from .output import (
    console,
    format_deploy_result,
    format_deploy_error,
    print_error,
)

__all__ = [
    'console',
    'format_deploy_result',
    'format_deploy_error',
    'print_error',
]

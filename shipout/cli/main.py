# shipout/cli/main.py
"""Main CLI entry point for shipout"""

import logging
import sys
from pathlib import Path

import click
from rich.logging import RichHandler

from ..__version__ import __version__
from ..api.deployer import Deployer
from ..api.exceptions import ShipoutError
from ..constants import APP_NAME, LOG_FORMAT, Transport
from .utils.output import console, format_deploy_error, format_deploy_result, print_error


def setup_logging(verbose: bool = False, debug: bool = False) -> None:
    """Setup logging configuration

    Args:
        verbose: Enable verbose output (INFO level)
        debug: Enable debug output (DEBUG level)
    """
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING

    # Configure rich handler
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            RichHandler(
                console=console,
                show_time=debug,
                show_path=debug,
                rich_tracebacks=True,
                tracebacks_suppress=[click]
            )
        ]
    )
    logging.getLogger().setLevel(level)

    # Adjust third-party loggers
    logging.getLogger("paramiko").setLevel(logging.DEBUG if debug else logging.WARNING)


@click.command(name=APP_NAME)
@click.argument('project_root', required=False, default='.',
                type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.option('-e', '--environment', help='Environment to deploy (defaults to $APP_ENVIRONMENT)')
@click.option('--private-key', type=click.Path(dir_okay=False, path_type=Path),
              help='SSH private key file (defaults to the agent, then ~/.ssh/id_rsa)')
@click.option('--transport', type=click.Choice([t.value for t in Transport]),
              default=Transport.SSH.value, show_default=True,
              help='How to reach the target host')
@click.option('--no-prune', is_flag=True, help='Keep every old release on the target host')
@click.option('-v', '--verbose', is_flag=True, help='Enable verbose output')
@click.option('-d', '--debug', is_flag=True, help='Enable debug output')
@click.option('-q', '--quiet', is_flag=True, help='Suppress all output except errors')
@click.version_option(__version__, prog_name=APP_NAME)
def cli(project_root, environment, private_key, transport, no_prune, verbose, debug, quiet):
    """Package a project and ship it to its deployment host

    Reads deployment settings from the "shipout" section of package.json,
    uploads the packed project into a new timestamped release directory,
    points the "current" link at it and removes old releases.

    Examples:

        # Deploy the staging environment of the project in this directory
        shipout -e staging

        # Deploy another project using a specific key
        shipout ../api -e production --private-key ~/.ssh/deploy_key
    """
    # Setup logging
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        setup_logging(verbose=verbose, debug=debug)

    try:
        deployer = Deployer(
            project_root,
            environment=environment,
            private_key=private_key,
            transport=transport,
            prune=not no_prune
        )

        if deployer.config.verbose and not quiet and not debug:
            logging.getLogger().setLevel(logging.INFO)

        result = deployer.deploy()

    except ShipoutError as e:
        format_deploy_error(e, e.error_code)
        if debug:
            console.print_exception()
        sys.exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Deployment cancelled by user[/yellow]")
        sys.exit(130)

    if not quiet:
        format_deploy_result(result)


def main():
    """Main entry point for the CLI application

    This function handles:
    - Keyboard interrupts
    - Unexpected exceptions with proper error display
    """
    try:
        cli(prog_name=APP_NAME)

    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)

    except Exception as e:
        print_error("Unexpected error", e)
        if '--debug' in sys.argv or '-d' in sys.argv:
            console.print_exception()
        sys.exit(1)


if __name__ == "__main__":
    main()

# shipout/cli/utils/output.py
"""Output formatting utilities"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel

from ...constants import EMOJI_ERROR, EMOJI_SUCCESS
from ...models import DeployResult

console = Console()


def format_deploy_result(result: DeployResult) -> None:
    """Format and display deploy operation result"""
    lines = [
        f"[green]{EMOJI_SUCCESS}[/green] Deployment completed successfully!",
        "",
        f"[bold]Environment:[/bold] {result.environment}",
        f"[bold]Host:[/bold] {result.host}",
        f"[bold]Release:[/bold] {result.release_directory}",
    ]

    if result.artifact:
        lines.append(f"[bold]Archive:[/bold] {result.artifact.file_name}")
        if result.artifact.size is not None:
            lines.append(f"[bold]Size:[/bold] {_format_size(result.artifact.size)}")

    retention = result.retention
    if retention is None:
        lines.append("[bold]Cleanup:[/bold] [dim]disabled[/dim]")
    elif retention.skipped:
        lines.append("[bold]Cleanup:[/bold] [dim]skipped[/dim]")
    elif retention.has_deletions:
        lines.append(f"[bold]Removed:[/bold] {len(retention.to_delete)} old release(s)")
        for name in sorted(retention.to_delete):
            lines.append(f"  • {name}")

    if result.duration is not None:
        lines.append(f"[bold]Duration:[/bold] {result.duration:.1f}s")

    panel = Panel(
        "\n".join(lines),
        title="Deploy Result",
        border_style="green"
    )
    console.print(panel)


def format_deploy_error(error: Exception, code: Optional[str] = None) -> None:
    """Display a failed deployment"""
    message = getattr(error, "message", None) or str(error)
    title = f"Deploy Error ({code})" if code else "Deploy Error"
    panel = Panel(
        f"[red]{EMOJI_ERROR} Deploy failed:[/red] {message}",
        title=title,
        border_style="red"
    )
    console.print(panel)


def _format_size(size_bytes: int) -> str:
    """Format file size in human-readable format"""
    if size_bytes == 0:
        return "0B"

    units = ['B', 'KB', 'MB', 'GB', 'TB']
    unit_index = 0

    while size_bytes >= 1024 and unit_index < len(units) - 1:
        size_bytes /= 1024.0
        unit_index += 1

    return f"{size_bytes:.1f}{units[unit_index]}"


def print_error(message: str, error: Optional[Exception] = None) -> None:
    """Print error message"""
    if error:
        console.print(f"[red]Error:[/red] {message}: {str(error)}")
    else:
        console.print(f"[red]Error:[/red] {message}")

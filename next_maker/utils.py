"""Shared utility functions for next-maker.

Provides async command execution, identifier case conversion, generator name
validation and the Rich-based console helpers every command reports through.
"""

from __future__ import annotations

import asyncio
import os
import re
from pathlib import Path

from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.rule import Rule
from rich.table import Table

from next_maker.errors import InputError

console = Console()

GENERATOR_NAME_PATTERN = re.compile(r"^[a-z0-9-]+$")

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
    verbose: bool = False,
) -> tuple[int, str, str]:
    """Run an external command asynchronously.

    Args:
        cmd: Executable followed by its arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.
        verbose: Echo the command to the console before running it.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple.  A timeout yields
        returncode ``-1`` with an explanatory stderr.  A missing executable
        yields returncode ``127``.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    cmd_str = " ".join(cmd)
    if verbose:
        console.print(f"[dim]$ {cmd_str}[/dim]")

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    except FileNotFoundError:
        return (127, "", f"Executable not found: {cmd[0]}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {cmd_str}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# Identifier helpers
# ---------------------------------------------------------------------------


def kebab_to_camel(name: str) -> str:
    """``user-profile`` -> ``userProfile``."""
    return re.sub(r"-([a-z0-9])", lambda m: m.group(1).upper(), name)


def kebab_to_pascal(name: str) -> str:
    """``user-profile`` -> ``UserProfile``."""
    camel = kebab_to_camel(name)
    return camel[:1].upper() + camel[1:]


def validate_generator_name(name: str, kind: str = "name") -> str:
    """Return *name* if it is valid kebab-case, else raise ``InputError``.

    Feature, slice and service names become directory names, file names and
    (after case conversion) TypeScript identifiers, so only lowercase
    letters, digits and hyphens are accepted.
    """
    if not name or not GENERATOR_NAME_PATTERN.match(name):
        raise InputError(
            f"Invalid {kind} '{name}': use lowercase letters, numbers and hyphens only"
        )
    return name


def to_import_alias(relative_path: str) -> str:
    """Convert ``src/features`` style paths to the ``@/features`` alias."""
    posix = relative_path.replace("\\", "/").strip("/")
    return re.sub(r"^src/", "@/", posix)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step_header(title: str, color: str = "bright_cyan") -> None:
    """Print a full-width rule announcing a command."""
    console.print()
    console.print(Rule(f"[bold {color}] {title} [/bold {color}]", style=color))
    console.print()


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{message}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")


def print_info(message: str) -> None:
    """Print a dimmed informational message."""
    console.print(f"[dim]{message}[/dim]")


def create_progress() -> Progress:
    """Create a Rich spinner configured for sequential pipeline steps.

    Returns:
        A ``Progress`` instance suitable for use as a context manager.
    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    )

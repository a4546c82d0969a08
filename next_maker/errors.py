"""Exception types raised by next-maker.

Every failure the CLI reports to the user derives from ``NextMakerError`` so
the entry point can print one clear line and exit non-zero.  Anything else
escaping the orchestrators is a bug.
"""

from __future__ import annotations

from pathlib import Path


class NextMakerError(Exception):
    """Base class for all user-facing next-maker failures."""


class InputError(NextMakerError):
    """Invalid flag combination or name format, detected before any mutation."""


class TargetExistsError(NextMakerError):
    """The destination (project directory, feature, slice, service) already exists."""

    def __init__(self, target: str | Path, message: str | None = None) -> None:
        self.target = Path(target)
        super().__init__(message or f"Target already exists: {target}")


class AnchorMissingError(NextMakerError):
    """A file a patch must locate is absent and cannot be synthesised."""

    def __init__(self, anchor: str | Path, detail: str = "") -> None:
        self.anchor = Path(anchor)
        message = f"Required file is missing: {anchor}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class JsonParseError(NextMakerError):
    """A JSON document (usually package.json) could not be parsed."""

    def __init__(self, path: str | Path, reason: str = "") -> None:
        self.path = Path(path)
        super().__init__(f"Invalid JSON in {path}: {reason}" if reason else f"Invalid JSON in {path}")


class CommandError(NextMakerError):
    """A fatal external command (clone, install, git) failed or timed out."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command failed (exit {returncode}): {command}"
        if stderr:
            message = f"{message}\n{stderr}"
        super().__init__(message)


class TemplateFetchError(NextMakerError):
    """The starter template could not be downloaded or extracted."""

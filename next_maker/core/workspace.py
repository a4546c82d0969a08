"""Binding of the path registry to a concrete project root."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from next_maker.config import ProjectPaths


@dataclass(frozen=True)
class Workspace:
    """A project tree on disk addressed through registry names.

    The same type describes both the project being edited and a fetched
    template tree that feature installs copy from.
    """

    root: Path
    paths: ProjectPaths = field(default_factory=ProjectPaths)

    def path(self, name: str) -> Path:
        """Absolute location of the registry entry *name* under this root."""
        return self.root / self.paths.resolve(name)

    def relative(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()

"""Version-control steps for freshly generated projects.

Initial commit creation is fatal on failure; everything touching the remote
(adding ``origin``, pushing) only warns, since the project is complete and
usable without it.
"""

from __future__ import annotations

from pathlib import Path

from next_maker.config import INITIAL_COMMIT_MESSAGE
from next_maker.errors import CommandError
from next_maker.utils import print_warning, run_command


class GitRepository:
    """Thin async wrapper around the ``git`` executable for one directory."""

    def __init__(self, cwd: str | Path, timeout: int = 120, verbose: bool = False) -> None:
        self.cwd = Path(cwd)
        self.timeout = timeout
        self.verbose = verbose

    async def _run(self, *args: str) -> str:
        """Run a git command and return stdout.

        Raises:
            CommandError: If git exits non-zero or times out.
        """
        cmd = ["git", *args]
        returncode, stdout, stderr = await run_command(
            cmd, cwd=self.cwd, timeout=self.timeout, verbose=self.verbose
        )
        if returncode != 0:
            raise CommandError(" ".join(cmd), returncode, stderr)
        return stdout

    async def is_available(self) -> bool:
        returncode, _, _ = await run_command(["git", "--version"], timeout=self.timeout)
        return returncode == 0

    async def init_and_commit(self, message: str = INITIAL_COMMIT_MESSAGE) -> None:
        await self._run("init")
        await self._run("add", ".")
        await self._run("commit", "-m", message)

    async def add_remote(self, url: str, name: str = "origin") -> bool:
        """Register a remote; returns ``False`` (with a warning) on failure."""
        try:
            await self._run("remote", "add", name, url)
        except CommandError as exc:
            print_warning(f"Could not add git remote '{name}': {exc.stderr or exc}")
            return False
        return True

    async def detect_remote_branch(self, remote: str = "origin") -> str:
        """Return ``main`` or ``master``, whichever exists on *remote* (``main`` by default)."""
        for branch in ("main", "master"):
            try:
                await self._run("show-branch", f"{remote}/{branch}")
            except CommandError:
                continue
            return branch
        return "main"

    async def push(self, remote: str = "origin") -> bool:
        """Merge the remote's default branch (keeping local files) and push.

        Returns ``False`` with a warning if any step fails.
        """
        try:
            await self._run("fetch", remote)
            branch = await self.detect_remote_branch(remote)
            try:
                await self._run(
                    "merge", f"{remote}/{branch}", "--allow-unrelated-histories", "-X", "ours"
                )
            except CommandError as exc:
                # Empty remotes have nothing to merge.
                if "not something we can merge" not in exc.stderr:
                    raise
            await self._run("push", remote, f"HEAD:{branch}")
        except CommandError as exc:
            print_warning(f"Could not push to {remote}: {exc.stderr or exc}")
            return False
        return True

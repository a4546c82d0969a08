"""Package-manager shell-out layer (npm, yarn, pnpm, bun).

Install failures are fatal (``CommandError``); script runs such as
``format`` or ``lint:fix`` only warn.
"""

from __future__ import annotations

import os
from pathlib import Path

from next_maker.config import PackageManager
from next_maker.errors import CommandError
from next_maker.utils import print_warning, run_command

LOCKFILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", PackageManager.PNPM),
    ("yarn.lock", PackageManager.YARN),
    ("bun.lockb", PackageManager.BUN),
    ("bun.lock", PackageManager.BUN),
    ("package-lock.json", PackageManager.NPM),
)


def manager_from_user_agent(user_agent: str | None = None) -> PackageManager:
    """Infer the invoking package manager from ``npm_config_user_agent``."""
    agent = user_agent if user_agent is not None else os.environ.get("npm_config_user_agent", "")
    for manager in (PackageManager.YARN, PackageManager.PNPM, PackageManager.BUN):
        if agent.startswith(manager.value):
            return manager
    return PackageManager.NPM


def detect_package_manager(cwd: str | Path) -> PackageManager:
    """Lockfile presence wins; otherwise fall back to the user agent."""
    root = Path(cwd)
    for lockfile, manager in LOCKFILES:
        if (root / lockfile).exists():
            return manager
    return manager_from_user_agent()


def script_command(manager: PackageManager, script: str) -> list[str]:
    """npm needs ``run``; the other managers accept the script name directly."""
    if manager == PackageManager.NPM:
        return ["npm", "run", script]
    return [manager.value, script]


class PackageManagerRunner:
    """Runs package-manager commands inside one project directory."""

    def __init__(
        self,
        cwd: str | Path,
        manager: PackageManager,
        install_timeout: int = 900,
        script_timeout: int = 300,
        verbose: bool = False,
    ) -> None:
        self.cwd = Path(cwd)
        self.manager = manager
        self.install_timeout = install_timeout
        self.script_timeout = script_timeout
        self.verbose = verbose

    async def _run_fatal(self, cmd: list[str]) -> None:
        returncode, _, stderr = await run_command(
            cmd, cwd=self.cwd, timeout=self.install_timeout, verbose=self.verbose
        )
        if returncode != 0:
            raise CommandError(" ".join(cmd), returncode, stderr)

    async def install(self) -> None:
        """Install everything declared in package.json."""
        await self._run_fatal([self.manager.value, "install"])

    async def run_script(self, script: str) -> bool:
        """Run a package.json script; failures and timeouts only warn.

        Returns:
            ``True`` if the script exited successfully.
        """
        cmd = script_command(self.manager, script)
        returncode, _, stderr = await run_command(
            cmd, cwd=self.cwd, timeout=self.script_timeout, verbose=self.verbose
        )
        if returncode != 0:
            detail = stderr.splitlines()[-1] if stderr else f"exit {returncode}"
            print_warning(f"Warning: script '{script}' failed: {detail}")
            return False
        return True

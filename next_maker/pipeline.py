"""Project initialisation pipeline.

Runs the fixed sequence of steps behind ``next-maker init``:

1. VALIDATE  -- the target directory must not exist (or be empty).
2. FETCH     -- download the starter template and copy it into place.
3. MANIFEST  -- write name, version, description, author and links.
4. CLEANUP   -- remove every feature module the user did not select.
5. ADD-ONS   -- install selected features the template does not carry.
6. COMPOSE   -- regenerate the root provider and root layout.
7. DEVTOOLS  -- prune or personalise hooks, CI, templates, Docker, README.
8. GIT       -- initial commit, optional remote and push.
9. INSTALL   -- install dependencies with the chosen package manager.
10. FORMAT   -- run ``format`` and ``lint:fix`` (failures only warn).

Any failure or interrupt after the project directory was created removes
it again, so a run either produces a complete project or nothing.
"""

from __future__ import annotations

import asyncio
import tempfile
import time
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from next_maker.config import HttpClientKind, ProjectAnswers, ToolConfig
from next_maker.core.files import copy_tree, delete_tree, file_exists, patch_file, update_json, write_file
from next_maker.core.git import GitRepository
from next_maker.core.package_manager import PackageManagerRunner
from next_maker.core.template import TemplateFetcher
from next_maker.core.workspace import Workspace
from next_maker.devtools import DevToolsPruner
from next_maker.errors import CommandError, NextMakerError, TargetExistsError
from next_maker.features import FeatureSet, SetupStatus
from next_maker.features.composition import render_root_layout, render_root_provider
from next_maker.features.state_store import strip_counter_translations
from next_maker.generators.templates import TemplateRenderer
from next_maker.utils import (
    console,
    create_progress,
    print_info,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
)

STEP_NAMES: dict[int, str] = {
    1: "VALIDATE",
    2: "FETCH",
    3: "MANIFEST",
    4: "CLEANUP",
    5: "ADD-ONS",
    6: "COMPOSE",
    7: "DEVTOOLS",
    8: "GIT",
    9: "INSTALL",
    10: "FORMAT",
}


# ---------------------------------------------------------------------------
# Exceptions and results
# ---------------------------------------------------------------------------


class PipelineError(NextMakerError):
    """Raised when a pipeline step fails irrecoverably."""

    def __init__(self, step: int, message: str) -> None:
        self.step = step
        super().__init__(f"Step {step} ({STEP_NAMES.get(step, '?')}): {message}")


class InitResult(BaseModel):
    """Outcome of one ``init`` run."""

    project_path: str
    steps_completed: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    duration: float = 0.0


def manifest_fields(answers: ProjectAnswers) -> dict[str, Any]:
    """package.json fields written from the answers (empty answers are skipped)."""
    fields: dict[str, Any] = {
        "name": answers.project_name,
        "version": answers.version,
        "description": answers.description,
    }
    if answers.author:
        fields["author"] = (
            f"{answers.author} <{answers.email}>" if answers.email else answers.author
        )
    if answers.git_homepage:
        fields["homepage"] = answers.git_homepage
    if answers.git_issues:
        fields["bugs"] = {"url": answers.git_issues}
    if answers.git_remote:
        fields["repository"] = {"type": "git", "url": answers.git_remote}
    return fields


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class InitPipeline:
    """Creates a new project from the starter template.

    Attributes:
        answers: The validated choices for this run.
        config: Tool settings (template source, timeouts, verbosity).
        target: Directory the project is created in.
    """

    def __init__(
        self,
        answers: ProjectAnswers,
        config: ToolConfig,
        parent_dir: str | Path | None = None,
        skip_install: bool = False,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.answers = answers
        self.config = config
        self.target = Path(parent_dir or Path.cwd()).resolve() / answers.project_name
        self.skip_install = skip_install
        self.renderer = renderer or TemplateRenderer()
        self.workspace = Workspace(self.target)
        self.result = InitResult(project_path=str(self.target))
        self._created = False
        self._preexisting = False

    async def run(self) -> InitResult:
        """Execute every step in order.

        Raises:
            NextMakerError: The first fatal step failure; the partially created
                project directory has been removed by then.
        """
        started = time.monotonic()
        print_step_header(f"Creating {self.answers.project_name}")
        try:
            self.validate_target()
            self._done(1)
            with tempfile.TemporaryDirectory(prefix="next-maker-") as scratch:
                template = Workspace(Path(scratch) / "template")
                await self.fetch(template)
                self._done(2)
                self.configure_manifest()
                self._done(3)
                self.cleanup_features()
                self._done(4)
                self.install_add_ons(template)
                self._done(5)
            self.compose()
            self._done(6)
            DevToolsPruner(self.workspace, self.renderer).apply(self.answers)
            self._done(7)
            await self.init_git()
            self._done(8)
            if self.skip_install:
                print_info("Skipping dependency installation")
            else:
                await self.install_dependencies()
                self._done(9)
                await self.format_sources()
                self._done(10)
        except BaseException:
            self.rollback()
            raise

        self.result.duration = time.monotonic() - started
        self._print_summary()
        return self.result

    def _done(self, step: int) -> None:
        name = STEP_NAMES[step]
        self.result.steps_completed.append(name)
        if self.config.verbose:
            print_info(f"  {name} done")

    def _warn(self, message: str) -> None:
        self.result.warnings.append(message)
        print_warning(message)

    def rollback(self) -> None:
        """Undo what this run wrote to the target.

        A target directory that already existed (empty) is emptied, not deleted.
        """
        if not self._created:
            return
        console.print(f"[yellow]Cleaning up {self.target}...[/yellow]")
        try:
            if self._preexisting:
                for child in list(self.target.iterdir()):
                    delete_tree(child)
            else:
                delete_tree(self.target)
        except OSError as exc:
            print_warning(f"Could not remove {self.target}: {exc}")

    # -- Steps 1-3 ---------------------------------------------------------

    def validate_target(self) -> None:
        if not self.target.exists():
            return
        if not self.target.is_dir() or any(self.target.iterdir()):
            raise TargetExistsError(self.target)
        self._preexisting = True

    async def fetch(self, template: Workspace) -> None:
        source = self.config.template_dir or self.config.template_url
        with create_progress() as progress:
            progress.add_task(f"Fetching template from {source}...", total=None)
            await TemplateFetcher(self.config).fetch(template.root)
            self._created = True
            await asyncio.to_thread(copy_tree, template.root, self.target)
        print_success("Template fetched")

    def configure_manifest(self) -> None:
        fields = manifest_fields(self.answers)

        def _configure(data: dict[str, Any]) -> dict[str, Any]:
            data.update(fields)
            data.pop("packageManager", None)
            return data

        update_json(self.workspace.path("package_json"), _configure)

    # -- Steps 4-6 ---------------------------------------------------------

    def cleanup_features(self) -> None:
        """Remove every unselected feature.

        The state store goes first: removing i18n regenerates the home page
        and would otherwise put the counter demo back.
        """
        answers = self.answers
        features = FeatureSet(self.workspace, self.renderer)
        if not answers.redux:
            features.redux.remove()

        if answers.http_client == HttpClientKind.NONE:
            features.http_client.remove(
                HttpClientKind.BOTH, keep_secure_storage=answers.keep_secure_storage
            )
        else:
            unwanted = HttpClientKind.BOTH.without(answers.http_client)
            if unwanted != HttpClientKind.NONE:
                features.http_client.remove(unwanted, keep_secure_storage=True)

        if not answers.dark_mode:
            features.dark_theme.remove()
        if not answers.i18n:
            features.i18n.remove()
            if answers.redux:
                for path in sorted(self.workspace.path("counter_feature").rglob("*.tsx")):
                    patch_file(path, strip_counter_translations)

    def install_add_ons(self, template: Workspace) -> None:
        answers = self.answers
        features = FeatureSet(self.workspace, self.renderer)
        wanted = {
            features.redux: answers.redux,
            features.dark_theme: answers.dark_mode,
            features.i18n: answers.i18n,
        }
        for feature, selected in wanted.items():
            if selected and feature.detect() != SetupStatus.INSTALLED:
                print_info(f"Adding {feature.title}")
                feature.install(template)
        if answers.http_client != HttpClientKind.NONE:
            features.http_client.install(template, answers.http_client)

    def compose(self) -> None:
        """Rewrite the root provider and layout for the final feature set."""
        answers = self.answers
        write_file(
            self.workspace.path("root_provider"),
            render_root_provider(self.renderer, answers.redux, answers.dark_mode, answers.i18n),
        )
        layout = "locale_layout" if answers.i18n else "root_layout"
        if file_exists(self.workspace.path(layout)):
            write_file(
                self.workspace.path(layout),
                render_root_layout(
                    self.renderer,
                    answers.project_name,
                    answers.description,
                    answers.dark_mode,
                    answers.i18n,
                ),
            )

    # -- Steps 8-10 --------------------------------------------------------

    async def init_git(self) -> None:
        git = GitRepository(self.target, timeout=self.config.git_timeout, verbose=self.config.verbose)
        if not await git.is_available():
            self._warn("git is not installed; skipping repository initialisation")
            return
        try:
            await git.init_and_commit()
        except CommandError as exc:
            raise PipelineError(8, f"git commit failed: {exc.stderr or exc}") from exc
        print_success("Initial commit created")

        if not self.answers.git_remote:
            return
        if not await git.add_remote(self.answers.git_remote):
            self.result.warnings.append("git remote not added")
            return
        if self.answers.push_to_remote and not await git.push():
            self.result.warnings.append("push to remote failed")

    async def install_dependencies(self) -> None:
        runner = self._runner()
        with create_progress() as progress:
            progress.add_task(
                f"Installing dependencies with {self.answers.package_manager.value}...", total=None
            )
            await runner.install()
        print_success("Dependencies installed")

    async def format_sources(self) -> None:
        runner = self._runner()
        for script in ("format", "lint:fix"):
            if not await runner.run_script(script):
                self.result.warnings.append(f"{script} failed")

    def _runner(self) -> PackageManagerRunner:
        return PackageManagerRunner(
            self.target,
            self.answers.package_manager,
            install_timeout=self.config.install_timeout,
            script_timeout=self.config.script_timeout,
            verbose=self.config.verbose,
        )

    # -- Display -----------------------------------------------------------

    def _print_summary(self) -> None:
        answers = self.answers
        print_summary_table(
            {
                "Project": str(self.target),
                "Package manager": answers.package_manager.value,
                "HTTP client": answers.http_client.value,
                "Redux": "yes" if answers.redux else "no",
                "Dark mode": "yes" if answers.dark_mode else "no",
                "i18n": "yes" if answers.i18n else "no",
                "Duration": f"{self.result.duration:.1f}s",
                "Warnings": str(len(self.result.warnings)),
            },
            title="Project created",
        )
        print_success(f"Done! cd {answers.project_name} to get started.")

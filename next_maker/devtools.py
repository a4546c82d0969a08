"""Developer tooling pruning for freshly initialised projects.

Each step either removes a tool the user opted out of (pre-commit hooks,
commitizen, CI workflows, GitHub templates, community files, Docker) or
personalises the files that stay (placeholders in GitHub templates, Docker
variables in ``.env.example``, the root README).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from next_maker.config import COMMUNITY_FILES, Packages, PackageManager, ProjectAnswers
from next_maker.core import patchers
from next_maker.core.files import delete_file, delete_tree, file_exists, patch_file, read_json, update_json
from next_maker.core.package_manager import script_command
from next_maker.core.workspace import Workspace
from next_maker.generators.templates import TemplateRenderer

DOCKER_ENV_HEADER = "# Docker Compose Configuration"
DOCKER_ENV_KEYS = ("CONTAINER_NAME", "IMAGE_NAME", "IMAGE_TAG")

SCRIPT_DESCRIPTIONS: dict[str, str] = {
    "dev": "Start the development server",
    "build": "Create a production build",
    "start": "Serve the production build",
    "lint": "Run ESLint",
    "lint:fix": "Run ESLint and fix problems",
    "format": "Format sources with Prettier",
    "test": "Run the test suite",
    "commit": "Write a conventional commit with commitizen",
}


def github_placeholders(answers: ProjectAnswers) -> dict[str, str]:
    """Template tokens and the project identity values replacing them."""
    return {
        "Teispace": answers.company,
        "support@teispace.com": answers.email,
        "Next.js Starter": answers.project_name,
        "[AUTHOR]": answers.author,
        "[COMPANY]": answers.company,
        "[EMAIL]": answers.email,
    }


class DevToolsPruner:
    """Applies the dev-tooling answers of a run to a project tree."""

    def __init__(self, workspace: Workspace, renderer: TemplateRenderer | None = None) -> None:
        self.workspace = workspace
        self.renderer = renderer or TemplateRenderer()

    def apply(self, answers: ProjectAnswers) -> None:
        self.prune_pre_commit_hooks(answers.pre_commit_hooks)
        self.prune_commitizen(answers.commitizen)
        self.prune_ci(answers.ci)
        self.configure_github_templates(answers)
        self.prune_community_files(answers.community_files)
        self.configure_docker(answers)
        self.configure_readme(answers)

    # -- package.json backed tools -----------------------------------------

    def _update_manifest(self, keys: list[str | tuple[str, ...]], packages: tuple[str, ...]) -> None:
        path = self.workspace.path("package_json")
        if not file_exists(path):
            return

        def _prune(data: dict[str, Any]) -> dict[str, Any]:
            for name in packages:
                data = patchers.remove_dependency(data, name)
            for key in keys:
                data = patchers.delete_json_field(data, key)
            return data

        update_json(path, _prune)

    def prune_pre_commit_hooks(self, keep: bool) -> None:
        if keep:
            return
        delete_tree(self.workspace.path("husky_dir"))
        delete_file(self.workspace.path("commitlint_config"))
        delete_file(self.workspace.path("lint_staged_config"))
        self._update_manifest(
            [("scripts", "prepare"), ("scripts", "postinstall"), "commitlint", "lint-staged"],
            Packages.PRE_COMMIT_HOOKS,
        )

    def prune_commitizen(self, keep: bool) -> None:
        if keep:
            return
        delete_file(self.workspace.path("czrc"))
        self._update_manifest(
            [("config", "commitizen"), ("scripts", "commit")], Packages.COMMIT_TOOLING
        )

    # -- repository files --------------------------------------------------

    def prune_ci(self, keep: bool) -> None:
        if not keep:
            delete_tree(self.workspace.path("workflows_dir"))

    def configure_github_templates(self, answers: ProjectAnswers) -> None:
        issue_dir = self.workspace.path("issue_templates_dir")
        pr_template = self.workspace.path("pr_template")
        if not answers.keep_github_templates:
            delete_tree(issue_dir)
            delete_file(pr_template)
            return

        mapping = github_placeholders(answers)
        files = [pr_template]
        if issue_dir.is_dir():
            files += sorted(p for p in issue_dir.iterdir() if p.is_file())
        for path in files:
            patch_file(path, lambda text: patchers.replace_placeholders(text, mapping))

    def prune_community_files(self, keep: tuple[str, ...] | list[str]) -> None:
        for name in COMMUNITY_FILES:
            if name not in keep:
                delete_file(self.workspace.root / name)
        delete_file(self.workspace.path("license"))
        delete_file(self.workspace.path("changelog"))

    def configure_docker(self, answers: ProjectAnswers) -> None:
        env_example = self.workspace.path("env_example")
        if not answers.docker:
            for entry in ("dockerfile", "docker_compose", "dockerignore"):
                delete_file(self.workspace.path(entry))

            def _strip(text: str) -> str:
                text = patchers.remove_line(text, DOCKER_ENV_HEADER)
                for key in DOCKER_ENV_KEYS:
                    text = patchers.remove_env_var(text, key)
                return text

            patch_file(env_example, _strip)
            return

        values = dict(
            zip(DOCKER_ENV_KEYS, (answers.container_name, answers.image_name, answers.image_tag))
        )

        def _upsert(text: str) -> str:
            for key, value in values.items():
                text = patchers.upsert_env_var(text, key, value)
            return text

        patch_file(env_example, _upsert)

    # -- README ------------------------------------------------------------

    def nested_readmes(self) -> list[Path]:
        """README files below the project root, outside dependency and VCS dirs."""
        found: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.workspace.root):
            dirnames[:] = [d for d in dirnames if d not in ("node_modules", ".git")]
            if Path(dirpath) == self.workspace.root:
                continue
            found += [Path(dirpath) / f for f in filenames if f.lower() == "readme.md"]
        return sorted(found)

    def configure_readme(self, answers: ProjectAnswers) -> None:
        for path in self.nested_readmes():
            delete_file(path)
        readme = self.workspace.path("readme")
        if not answers.readme:
            delete_file(readme)
            return
        self.renderer.render_to_file("readme.md.j2", readme, self.readme_context(answers))

    def readme_context(self, answers: ProjectAnswers) -> dict[str, Any]:
        manager = answers.package_manager
        scripts = [name for name in SCRIPT_DESCRIPTIONS if name in self._scripts()]
        run_prefix = "npm run " if manager == PackageManager.NPM else f"{manager.value} "
        return {
            "title": answers.project_name,
            "description": answers.description,
            "install_command": f"{manager.value} install",
            "dev_command": " ".join(script_command(manager, "dev")),
            "scripts": scripts,
            "run_prefix": run_prefix,
            "script_descriptions": SCRIPT_DESCRIPTIONS,
            "author": answers.author,
            "email": answers.email,
        }

    def _scripts(self) -> dict[str, Any]:
        path = self.workspace.path("package_json")
        if not file_exists(path):
            return {}
        return dict(read_json(path).get("scripts") or {})

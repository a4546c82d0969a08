"""Unit tests for dev-tooling pruning (next_maker.devtools)."""

from __future__ import annotations

import pytest

from next_maker.config import PackageManager
from next_maker.core.files import read_file, read_json
from next_maker.core.workspace import Workspace
from next_maker.devtools import DevToolsPruner, github_placeholders

ALL_OFF = {
    "pre_commit_hooks": False,
    "commitizen": False,
    "ci": False,
    "keep_github_templates": False,
    "community_files": (),
    "docker": False,
    "readme": False,
}


class TestPlaceholders:
    @pytest.mark.unit
    def test_mapping(self, make_answers):
        mapping = github_placeholders(make_answers())
        assert mapping["Teispace"] == "Acme"
        assert mapping["support@teispace.com"] == "dev@acme.io"
        assert mapping["[AUTHOR]"] == "Jane Doe"


class TestAllToolsOff:
    @pytest.mark.unit
    def test_files_removed(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers(**ALL_OFF))

        for entry in (
            "husky_dir", "commitlint_config", "lint_staged_config", "czrc", "workflows_dir",
            "issue_templates_dir", "pr_template", "dockerfile", "docker_compose",
            "dockerignore", "license", "changelog", "readme",
        ):
            assert not project.path(entry).exists(), entry
        for name in ("CODE_OF_CONDUCT.md", "CONTRIBUTING.md", "SECURITY.md"):
            assert not (project.root / name).exists(), name
        assert not (project.root / "docs" / "README.md").exists()

    @pytest.mark.unit
    def test_manifest_pruned(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers(**ALL_OFF))
        data = read_json(project.path("package_json"))
        for key in ("lint-staged", "commitlint", "config"):
            assert key not in data, key
        assert "prepare" not in data["scripts"]
        assert "commit" not in data["scripts"]
        assert data["scripts"]["dev"] == "next dev"
        dev = data["devDependencies"]
        for name in ("husky", "@commitlint/cli", "lint-staged", "commitizen", "cz-conventional-changelog"):
            assert name not in dev, name
        assert dev["prettier"] == "^3.4.2"

    @pytest.mark.unit
    def test_env_example_loses_docker_vars(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers(**ALL_OFF))
        env = read_file(project.path("env_example"))
        assert "NEXT_PUBLIC_APP_URL=http://localhost:3000" in env
        assert "Docker" not in env
        for key in ("CONTAINER_NAME", "IMAGE_NAME", "IMAGE_TAG"):
            assert key not in env


class TestToolsKept:
    @pytest.mark.unit
    def test_github_placeholders_replaced(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers())
        bug_report = read_file(project.path("issue_templates_dir") / "bug_report.md")
        assert "Teispace" not in bug_report
        assert "Report a bug in demo-app to Acme" in bug_report
        assert "dev@acme.io" in bug_report
        assert "maintained by Acme." in read_file(project.path("pr_template"))
        assert project.path("workflows_dir").exists()
        assert project.path("husky_dir").exists()

    @pytest.mark.unit
    def test_docker_vars_written(self, project: Workspace, make_answers):
        answers = make_answers(container_name="demo", image_name="acme/demo", image_tag="1.0")
        DevToolsPruner(project).apply(answers)
        env = read_file(project.path("env_example"))
        assert "CONTAINER_NAME=demo\n" in env
        assert "IMAGE_NAME=acme/demo\n" in env
        assert "IMAGE_TAG=1.0\n" in env
        assert project.path("dockerfile").exists()

    @pytest.mark.unit
    def test_selected_community_files(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers(community_files=("SECURITY.md",)))
        assert (project.root / "SECURITY.md").exists()
        assert not (project.root / "CONTRIBUTING.md").exists()
        assert not project.path("license").exists()

    @pytest.mark.unit
    def test_readme_rendered(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers(package_manager=PackageManager.PNPM))
        readme = read_file(project.path("readme"))
        assert readme.startswith("# demo-app\n\nDemo application\n")
        assert "pnpm install\npnpm dev\n" in readme
        assert "| `pnpm lint:fix` | Run ESLint and fix problems |" in readme
        assert "| `pnpm prepare` |" not in readme
        assert "Jane Doe <dev@acme.io>" in readme
        assert not (project.root / "docs" / "README.md").exists()

    @pytest.mark.unit
    def test_npm_readme_uses_run(self, project: Workspace, make_answers):
        DevToolsPruner(project).apply(make_answers(author=""))
        readme = read_file(project.path("readme"))
        assert "npm run dev" in readme
        assert "| `npm run format` |" in readme
        assert "## Author" not in readme

"""Unit tests for the init pipeline (next_maker.pipeline).

Tests cover:
- PipelineError message formatting
- manifest_fields from answers
- A full run against the local template with git mocked
- Rollback when a fatal step fails
- Refusal to overwrite a non-empty target directory
- Cleanup after an interrupted run
- Every combination of the optional features
"""

from __future__ import annotations

import asyncio
import itertools
import re
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from next_maker.config import HttpClientKind
from next_maker.core.files import read_file, read_json
from next_maker.core.workspace import Workspace
from next_maker.errors import TargetExistsError
from next_maker.pipeline import STEP_NAMES, InitPipeline, PipelineError, manifest_fields


# ---------------------------------------------------------------------------
# PipelineError / manifest
# ---------------------------------------------------------------------------


class TestPipelineError:
    @pytest.mark.unit
    def test_includes_step_name(self):
        err = PipelineError(8, "git commit failed")
        assert err.step == 8
        assert str(err) == "Step 8 (GIT): git commit failed"

    @pytest.mark.unit
    def test_step_table_is_complete(self):
        assert list(STEP_NAMES) == list(range(1, 11))


class TestManifestFields:
    @pytest.mark.unit
    def test_identity_and_links(self, make_answers):
        answers = make_answers(
            git_remote="git@github.com:acme/demo-app.git",
            git_homepage="https://acme.io",
            git_issues="https://github.com/acme/demo-app/issues",
        )
        fields = manifest_fields(answers)
        assert fields["name"] == "demo-app"
        assert fields["version"] == "0.1.0"
        assert fields["author"] == "Jane Doe <dev@acme.io>"
        assert fields["homepage"] == "https://acme.io"
        assert fields["bugs"] == {"url": "https://github.com/acme/demo-app/issues"}
        assert fields["repository"] == {"type": "git", "url": "git@github.com:acme/demo-app.git"}

    @pytest.mark.unit
    def test_empty_answers_skipped(self, make_answers):
        fields = manifest_fields(make_answers(author="", email=""))
        assert "author" not in fields
        assert "homepage" not in fields
        assert "repository" not in fields


# ---------------------------------------------------------------------------
# Full runs
# ---------------------------------------------------------------------------


class TestInitRun:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_minimal_project(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        answers = make_answers(
            http_client=HttpClientKind.AXIOS, redux=False, dark_mode=False, i18n=False
        )
        pipeline = InitPipeline(answers, tool_config, parent_dir=tmp_path / "out", skip_install=True)
        result = await pipeline.run()

        project = Workspace(tmp_path / "out" / "demo-app")
        assert result.project_path == str(project.root)
        assert result.steps_completed == [STEP_NAMES[i] for i in range(1, 9)]
        assert result.warnings == []

        layout = read_file(project.path("root_layout"))
        assert "title: 'demo-app'" in layout
        assert "description: 'Demo application'" in layout
        assert not project.path("locale_dir").exists()
        assert "return <>{children}</>;" in read_file(project.path("root_provider"))

        data = read_json(project.path("package_json"))
        assert data["name"] == "demo-app"
        assert "packageManager" not in data
        deps = data["dependencies"]
        assert "axios" in deps
        for name in ("next-intl", "next-themes", "@reduxjs/toolkit", "react-redux", "redux-persist"):
            assert name not in deps, name

        assert not project.path("fetch_client").exists()
        assert project.path("axios_client").exists()
        assert not project.path("store").exists()
        assert not project.path("license").exists()
        assert not project.path("changelog").exists()
        assert not (project.root / "docs" / "README.md").exists()
        assert read_file(project.path("readme")).startswith("# demo-app\n")

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_git_commands_issued(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        await InitPipeline(make_answers(), tool_config, parent_dir=tmp_path, skip_install=True).run()
        commands = [call.args[0] for call in mock_commands.await_args_list]
        assert ["git", "init"] in commands
        assert ["git", "add", "."] in commands
        assert ["git", "commit", "-m", "Initial commit from @teispace/next-maker"] in commands

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_all_features_kept(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        await InitPipeline(make_answers(), tool_config, parent_dir=tmp_path, skip_install=True).run()
        project = Workspace(tmp_path / "demo-app")

        provider = read_file(project.path("root_provider"))
        assert provider.index("<StoreProvider>") < provider.index("<CustomThemeProvider>")
        assert provider.index("<CustomThemeProvider>") < provider.index("<NextIntlClientProvider")
        assert "title: 'demo-app'" in read_file(project.path("locale_layout"))
        assert project.path("store").exists()
        assert project.path("i18n_dir").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_install_and_format(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        answers = make_answers(redux=False)
        result = await InitPipeline(answers, tool_config, parent_dir=tmp_path).run()

        commands = [call.args[0] for call in mock_commands.await_args_list]
        assert ["npm", "install"] in commands
        assert ["npm", "run", "format"] in commands
        assert ["npm", "run", "lint:fix"] in commands
        assert result.steps_completed[-2:] == ["INSTALL", "FORMAT"]

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_missing_git_only_warns(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        mock_commands.return_value = (127, "", "not found")
        result = await InitPipeline(
            make_answers(), tool_config, parent_dir=tmp_path, skip_install=True
        ).run()
        assert result.steps_completed[-1] == "GIT"
        assert any("git is not installed" in w for w in result.warnings)
        assert (tmp_path / "demo-app" / "package.json").exists()


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------


class TestFailures:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_commit_failure_rolls_back(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        def _git(cmd, **kwargs):
            if cmd == ["git", "--version"]:
                return (0, "git version 2.45.0", "")
            return (1, "", "fatal: boom")

        mock_commands.side_effect = _git
        pipeline = InitPipeline(make_answers(), tool_config, parent_dir=tmp_path, skip_install=True)

        with pytest.raises(PipelineError) as exc_info:
            await pipeline.run()
        assert exc_info.value.step == 8
        assert not (tmp_path / "demo-app").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_existing_target_is_untouched(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        target = tmp_path / "demo-app"
        target.mkdir()
        (target / "keep.txt").write_text("mine", encoding="utf-8")

        with pytest.raises(TargetExistsError):
            await InitPipeline(make_answers(), tool_config, parent_dir=tmp_path).run()
        assert (target / "keep.txt").read_text(encoding="utf-8") == "mine"
        mock_commands.assert_not_awaited()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_empty_target_is_accepted(self, tmp_path: Path, tool_config, make_answers, mock_commands):
        (tmp_path / "demo-app").mkdir()
        result = await InitPipeline(
            make_answers(), tool_config, parent_dir=tmp_path, skip_install=True
        ).run()
        assert "VALIDATE" in result.steps_completed

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failure_keeps_preexisting_empty_target(
        self, tmp_path: Path, tool_config, make_answers, mock_commands
    ):
        target = tmp_path / "demo-app"
        target.mkdir()
        mock_commands.side_effect = lambda cmd, **kwargs: (
            (0, "git version 2.45.0", "") if cmd == ["git", "--version"] else (1, "", "fatal: boom")
        )

        with pytest.raises(PipelineError):
            await InitPipeline(make_answers(), tool_config, parent_dir=tmp_path, skip_install=True).run()
        assert target.is_dir()
        assert list(target.iterdir()) == []

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_keyboard_interrupt_removes_partial_project(
        self, tmp_path: Path, tool_config, make_answers, mock_commands
    ):
        pipeline = InitPipeline(make_answers(), tool_config, parent_dir=tmp_path, skip_install=True)
        with patch("next_maker.pipeline.DevToolsPruner.apply", side_effect=KeyboardInterrupt):
            with pytest.raises(KeyboardInterrupt):
                await pipeline.run()
        assert pipeline.result.steps_completed[-1] == STEP_NAMES[6]
        assert not (tmp_path / "demo-app").exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_cancellation_removes_partial_project(
        self, tmp_path: Path, tool_config, make_answers, mock_commands
    ):
        pipeline = InitPipeline(make_answers(), tool_config, parent_dir=tmp_path, skip_install=True)
        with patch.object(
            InitPipeline, "init_git", AsyncMock(side_effect=asyncio.CancelledError)
        ):
            with pytest.raises(asyncio.CancelledError):
                await pipeline.run()
        assert "DEVTOOLS" in pipeline.result.steps_completed
        assert not (tmp_path / "demo-app").exists()


# ---------------------------------------------------------------------------
# Feature combinations
# ---------------------------------------------------------------------------

FEATURE_NAMES = ("redux", "dark", "i18n", "http")
FEATURE_SUBSETS = list(itertools.product([False, True], repeat=len(FEATURE_NAMES)))
SUBSET_IDS = [
    "+".join(name for name, on in zip(FEATURE_NAMES, combo) if on) or "bare"
    for combo in FEATURE_SUBSETS
]


class TestFeatureSubsets:
    @pytest.mark.unit
    @pytest.mark.asyncio
    @pytest.mark.parametrize(("redux", "dark", "i18n", "http"), FEATURE_SUBSETS, ids=SUBSET_IDS)
    async def test_only_selected_features_remain(
        self, redux, dark, i18n, http, tmp_path: Path, tool_config, make_answers, mock_commands
    ):
        answers = make_answers(
            redux=redux,
            dark_mode=dark,
            i18n=i18n,
            http_client=HttpClientKind.AXIOS if http else HttpClientKind.NONE,
        )
        await InitPipeline(answers, tool_config, parent_dir=tmp_path, skip_install=True).run()
        project = Workspace(tmp_path / "demo-app")

        owned = {
            "store": redux,
            "store_provider": redux,
            "counter_feature": redux,
            "theme_provider": dark,
            "i18n_dir": i18n,
            "locale_dir": i18n,
            "root_layout": not i18n,
            "http_utils": http,
        }
        for entry, selected in owned.items():
            assert project.path(entry).exists() is selected, entry

        deps = read_json(project.path("package_json"))["dependencies"]
        for name, selected in (
            ("@reduxjs/toolkit", redux),
            ("next-themes", dark),
            ("next-intl", i18n),
            ("axios", http),
        ):
            assert (name in deps) is selected, name

        root_provider = read_file(project.path("root_provider"))
        barrel = read_file(project.path("providers_index"))
        for component, selected in (("StoreProvider", redux), ("CustomThemeProvider", dark)):
            assert (f"<{component}>" in root_provider) is selected, component
            assert (f"./{component}'" in barrel) is selected, component
        assert ("<NextIntlClientProvider" in root_provider) is i18n
        imported = re.search(r"import \{ (?P<names>[^}]+) \} from '@/providers';", root_provider)
        if imported is not None:
            for component in imported.group("names").split(","):
                assert f"./{component.strip()}'" in barrel, component

        page = read_file(project.path("locale_page" if i18n else "root_page"))
        assert ("<Counter />" in page) is redux
        assert ("withNextIntl(" in read_file(project.path("next_config"))) is i18n

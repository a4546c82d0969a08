"""Unit tests for feature detection and shared feature helpers."""

from __future__ import annotations

from pathlib import Path

import pytest

from next_maker.config import HttpClientKind
from next_maker.core.files import read_file, read_json
from next_maker.core.workspace import Workspace
from next_maker.features import (
    DarkThemeFeature,
    FeatureSet,
    ProjectDetection,
    SetupStatus,
    detect_project,
)


class TestSetupStatus:
    @pytest.mark.unit
    def test_from_checks(self):
        assert SetupStatus.from_checks([True, True]) == SetupStatus.INSTALLED
        assert SetupStatus.from_checks([True, False]) == SetupStatus.PARTIAL
        assert SetupStatus.from_checks([False, False]) == SetupStatus.ABSENT
        assert SetupStatus.from_checks([]) == SetupStatus.ABSENT


class TestDetectProject:
    @pytest.mark.unit
    def test_full_template(self, project: Workspace):
        detection = detect_project(project)
        assert detection == ProjectDetection(
            has_redux=True,
            http_client=HttpClientKind.BOTH,
            has_i18n=True,
            has_dark_theme=True,
        )
        assert detection.has_http_client

    @pytest.mark.unit
    def test_empty_directory(self, tmp_path: Path):
        detection = detect_project(Workspace(tmp_path))
        assert detection == ProjectDetection()
        assert not detection.has_http_client

    @pytest.mark.unit
    def test_partial_feature_counts_as_absent(self, project: Workspace):
        project.path("store_provider").unlink()
        assert detect_project(project).has_redux is False

    @pytest.mark.unit
    def test_summary(self, project: Workspace):
        assert detect_project(project).summary() == {
            "Redux": "yes",
            "HTTP client": "both",
            "i18n": "yes",
            "Dark mode": "yes",
        }


class TestFeatureSet:
    @pytest.mark.unit
    def test_by_name(self, project: Workspace):
        features = FeatureSet(project)
        assert features.by_name("dark") is features.dark_theme
        assert features.by_name("http") is features.http_client
        with pytest.raises(KeyError, match="Unknown feature"):
            features.by_name("graphql")


class TestFeatureHelpers:
    @pytest.mark.unit
    def test_unknown_package_version_is_latest(self, project: Workspace, tmp_path: Path):
        feature = DarkThemeFeature(project)
        feature.add_packages(Workspace(tmp_path / "no-template"), ["next-themes", "clsx"])
        deps = read_json(project.path("package_json"))["dependencies"]
        assert deps["clsx"] == "latest"
        assert deps["next-themes"] == "^0.4.4"

    @pytest.mark.unit
    def test_dev_packages_keep_their_section(self, project: Workspace, template: Workspace):
        feature = DarkThemeFeature(project)
        feature.remove_packages(["prettier"])
        feature.add_packages(template, ["prettier"])
        data = read_json(project.path("package_json"))
        assert data["devDependencies"]["prettier"] == "^3.4.2"
        assert "prettier" not in data["dependencies"]

    @pytest.mark.unit
    def test_layout_and_page_paths(self, project: Workspace):
        feature = DarkThemeFeature(project)
        assert feature.layout_path() == project.path("locale_layout")
        assert feature.page_path() == project.path("locale_page")
        project.path("locale_layout").unlink()
        assert feature.layout_path() == project.path("root_layout")

    @pytest.mark.unit
    def test_missing_barrel_created_on_export(self, tmp_path: Path):
        feature = DarkThemeFeature(Workspace(tmp_path))
        feature.add_barrel_export("providers_index", "RootProvider")
        assert read_file(Workspace(tmp_path).path("providers_index")) == (
            "export * from './RootProvider';\n"
        )

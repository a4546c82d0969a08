"""Detect which optional features an existing project carries."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from next_maker.config import HttpClientKind
from next_maker.core.workspace import Workspace
from next_maker.features.base import FeatureModule, SetupStatus
from next_maker.features.dark_theme import DarkThemeFeature
from next_maker.features.http_client import HttpClientFeature
from next_maker.features.i18n import I18nFeature
from next_maker.features.state_store import StateStoreFeature
from next_maker.generators.templates import TemplateRenderer


class ProjectDetection(BaseModel):
    """Snapshot of the feature set found on disk."""

    model_config = ConfigDict(frozen=True)

    has_redux: bool = False
    http_client: HttpClientKind = HttpClientKind.NONE
    has_i18n: bool = False
    has_dark_theme: bool = False

    @property
    def has_http_client(self) -> bool:
        return self.http_client != HttpClientKind.NONE

    def summary(self) -> dict[str, str]:
        def _yes(flag: bool) -> str:
            return "yes" if flag else "no"

        return {
            "Redux": _yes(self.has_redux),
            "HTTP client": self.http_client.value,
            "i18n": _yes(self.has_i18n),
            "Dark mode": _yes(self.has_dark_theme),
        }


class FeatureSet:
    """The four feature modules bound to one workspace."""

    def __init__(self, workspace: Workspace, renderer: TemplateRenderer | None = None) -> None:
        renderer = renderer or TemplateRenderer()
        self.redux = StateStoreFeature(workspace, renderer)
        self.http_client = HttpClientFeature(workspace, renderer)
        self.dark_theme = DarkThemeFeature(workspace, renderer)
        self.i18n = I18nFeature(workspace, renderer)

    def by_name(self, name: str) -> FeatureModule:
        modules: dict[str, FeatureModule] = {
            "redux": self.redux,
            "http": self.http_client,
            "dark": self.dark_theme,
            "i18n": self.i18n,
        }
        try:
            return modules[name]
        except KeyError:
            raise KeyError(f"Unknown feature: {name!r}") from None


def detect_project(workspace: Workspace) -> ProjectDetection:
    """Inspect *workspace*; a partially present feature counts as absent."""
    features = FeatureSet(workspace)
    return ProjectDetection(
        has_redux=features.redux.detect() == SetupStatus.INSTALLED,
        http_client=features.http_client.current_clients(),
        has_i18n=features.i18n.detect() == SetupStatus.INSTALLED,
        has_dark_theme=features.dark_theme.detect() == SetupStatus.INSTALLED,
    )

"""Optional add-on modules of the starter template.

Usage::

    from next_maker.features import FeatureSet, detect_project

    features = FeatureSet(workspace)
    features.dark_theme.install(template)
    print(detect_project(workspace).summary())
"""

from next_maker.features.base import FeatureModule, SetupStatus
from next_maker.features.dark_theme import DarkThemeFeature
from next_maker.features.detection import FeatureSet, ProjectDetection, detect_project
from next_maker.features.http_client import HttpClientFeature
from next_maker.features.i18n import I18nFeature
from next_maker.features.state_store import StateStoreFeature

__all__ = [
    "FeatureModule",
    "SetupStatus",
    "FeatureSet",
    "ProjectDetection",
    "detect_project",
    "HttpClientFeature",
    "StateStoreFeature",
    "DarkThemeFeature",
    "I18nFeature",
]

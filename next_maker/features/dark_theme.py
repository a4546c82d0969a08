"""Dark theme feature: next-themes provider, Tailwind dark variant and body class."""

from __future__ import annotations

import re

from next_maker.config import Packages
from next_maker.core import patchers
from next_maker.core.files import copy_file, file_exists, patch_file
from next_maker.core.workspace import Workspace
from next_maker.features.base import FeatureModule, SetupStatus, read_if_exists
from next_maker.features.composition import DARK_BODY_CLASS, THEME_PROVIDER, add_provider, remove_provider

DARK_VARIANT = "@custom-variant dark (&:where(.dark, .dark *));"
DARK_COLOR = "--color-dark: #202938;"

_VARIANT_RE = re.compile(r"^@custom-variant dark\b[^\n]*$", re.MULTILINE)
_CSS_IMPORT_RE = re.compile(r"^@import\b[^\n]*\n", re.MULTILINE)
_THEME_BLOCK_RE = re.compile(r"^@theme\b[^{\n]*\{[ \t]*\n", re.MULTILINE)


def add_dark_css(text: str, variant: str = DARK_VARIANT) -> str:
    """Declare the class based dark variant and the dark background color."""
    if not _VARIANT_RE.search(text):
        imports = list(_CSS_IMPORT_RE.finditer(text))
        at = imports[-1].end() if imports else 0
        text = f"{text[:at]}\n{variant}\n{text[at:]}" if imports else f"{variant}\n\n{text}"
    if "--color-dark:" not in text:
        theme = _THEME_BLOCK_RE.search(text)
        if theme:
            text = f"{text[: theme.end()]}  {DARK_COLOR}\n{text[theme.end():]}"
        else:
            text = text.rstrip("\n") + f"\n\n@theme {{\n  {DARK_COLOR}\n}}\n"
    return text


def remove_dark_css(text: str) -> str:
    return re.sub(r"\n{3,}", "\n\n", _VARIANT_RE.sub("", text))


class DarkThemeFeature(FeatureModule):
    title = "Dark mode"
    owned_paths = ("theme_provider",)
    packages = (Packages.NEXT_THEMES,)
    template_paths = ("theme_provider",)

    def detect(self) -> SetupStatus:
        return SetupStatus.from_checks(
            [
                file_exists(self.workspace.path("theme_provider")),
                self.has_packages(Packages.NEXT_THEMES),
            ]
        )

    def install(self, template: Workspace) -> bool:
        if self.detect() == SetupStatus.INSTALLED:
            return False
        self.require_template(template)
        copy_file(template.path("theme_provider"), self.workspace.path("theme_provider"))
        self.ensure_providers_barrel()
        self.add_barrel_export("providers_index", "CustomThemeProvider")

        self.ensure_root_provider()
        patch_file(self.workspace.path("root_provider"), lambda text: add_provider(text, THEME_PROVIDER))

        match = _VARIANT_RE.search(read_if_exists(template.path("globals_css")))
        variant = match.group(0) if match else DARK_VARIANT
        patch_file(self.workspace.path("globals_css"), lambda text: add_dark_css(text, variant))
        patch_file(
            self.layout_path(), lambda text: patchers.add_body_classes(text, DARK_BODY_CLASS)
        )

        self.add_packages(template, self.packages)
        return True

    def remove(self) -> bool:
        if self.detect() == SetupStatus.ABSENT:
            return False
        self.delete_owned_paths()
        self.remove_barrel_export("providers_index", "CustomThemeProvider")
        patch_file(
            self.workspace.path("root_provider"), lambda text: remove_provider(text, THEME_PROVIDER)
        )
        patch_file(self.workspace.path("globals_css"), remove_dark_css)
        for layout in (self.workspace.path("root_layout"), self.workspace.path("locale_layout")):
            patch_file(layout, lambda text: patchers.remove_body_classes(text, DARK_BODY_CLASS))
        self.remove_packages(self.packages)
        return True


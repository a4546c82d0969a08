"""Redux state store feature.

Owns the store directory, the ``StoreProvider`` component and the counter
example feature that demonstrates the store on the home page.
"""

from __future__ import annotations

import re

from next_maker.config import Packages
from next_maker.core import patchers
from next_maker.core.files import copy_file, copy_tree, file_exists, patch_file
from next_maker.core.workspace import Workspace
from next_maker.features.base import FeatureModule, SetupStatus
from next_maker.features.composition import STORE_PROVIDER, add_provider, remove_provider

COUNTER_IMPORT_MODULE = "@/features/counter/components/Counter"
COUNTER_BLOCK = (
    '<div className="mt-8">\n'
    '  <h2 className="mb-4 text-xl font-semibold">Redux Counter</h2>\n'
    "  <Counter />\n"
    "</div>\n"
)

_COUNTER_BLOCK_RE = re.compile(
    r"[ \t]*<div className=\"mt-8\">\s*<h2[^>]*>Redux Counter</h2>\s*<Counter />\s*</div>\n?"
)
_CLOSING_TAG_RE = re.compile(r"^(?P<indent>[ \t]*)</(?:main|div)>", re.MULTILINE)

_TRANSLATED_LABELS = {
    "{t('currentCount', { count: value })}": "Current Count: {value}",
    "{t('increment')}": "Increment",
    "{t('decrement')}": "Decrement",
    "{t('reset')}": "Reset",
}


# ---------------------------------------------------------------------------
# Page and counter text edits
# ---------------------------------------------------------------------------


def strip_counter_translations(text: str) -> str:
    """Replace ``useTranslations`` lookups in the counter with English labels."""
    text = patchers.remove_named_import(text, "useTranslations", "next-intl")
    text = patchers.remove_lines_containing(text, "const t = useTranslations(")
    for lookup, label in _TRANSLATED_LABELS.items():
        text = text.replace(lookup, label)
    return text


def inject_counter(text: str) -> str:
    """Show the counter demo on a page, before its last closing container tag."""
    if "<Counter />" in text:
        return text
    closings = list(_CLOSING_TAG_RE.finditer(text))
    if not closings:
        return text
    last = closings[-1]
    indent = last.group("indent") + "  "
    block = "".join(f"{indent}{line}\n" for line in COUNTER_BLOCK.splitlines())
    text = text[: last.start()] + block + text[last.start():]
    return patchers.add_named_import(text, "Counter", COUNTER_IMPORT_MODULE)


def eject_counter(text: str) -> str:
    text = _COUNTER_BLOCK_RE.sub("", text)
    text = patchers.remove_lines_containing(text, "<Counter />")
    return patchers.remove_import_of(text, COUNTER_IMPORT_MODULE)


# ---------------------------------------------------------------------------
# Feature module
# ---------------------------------------------------------------------------


class StateStoreFeature(FeatureModule):
    title = "Redux"
    owned_paths = ("store", "store_provider", "counter_feature", "count_component")
    packages = Packages.STATE_STORE
    template_paths = ("store_provider", "store", "counter_feature")

    def detect(self) -> SetupStatus:
        return SetupStatus.from_checks(
            [
                file_exists(self.workspace.path("store")),
                file_exists(self.workspace.path("store_provider")),
                self.has_packages(Packages.REDUX_TOOLKIT, Packages.REACT_REDUX),
            ]
        )

    def install(self, template: Workspace, i18n: bool | None = None) -> bool:
        """Copy the store, provider and counter demo, then wire them in.

        Args:
            i18n: Whether the counter keeps its translated labels. Defaults to
                whether the project currently has an i18n setup.
        """
        if self.detect() == SetupStatus.INSTALLED:
            return False
        if i18n is None:
            i18n = file_exists(self.workspace.path("i18n_dir"))
        self.require_template(template)

        copy_file(template.path("store_provider"), self.workspace.path("store_provider"))
        copy_tree(template.path("store"), self.workspace.path("store"))
        copy_tree(template.path("counter_feature"), self.workspace.path("counter_feature"))
        if file_exists(template.path("count_component")):
            copy_file(template.path("count_component"), self.workspace.path("count_component"))
            self.add_barrel_export("components_index", "Count")
        if not i18n:
            for path in self.workspace.path("counter_feature").rglob("*.tsx"):
                patch_file(path, strip_counter_translations)

        self.ensure_providers_barrel()
        self.add_barrel_export("providers_index", "StoreProvider")
        self.ensure_root_provider()
        patch_file(self.workspace.path("root_provider"), lambda text: add_provider(text, STORE_PROVIDER))
        patch_file(self.page_path(), inject_counter)

        self.add_packages(template, self.packages)
        return True

    def remove(self) -> bool:
        if self.detect() == SetupStatus.ABSENT:
            return False
        self.delete_owned_paths()

        self.remove_barrel_export("providers_index", "StoreProvider")
        self.remove_barrel_export("components_index", "Count")
        patch_file(
            self.workspace.path("root_provider"), lambda text: remove_provider(text, STORE_PROVIDER)
        )
        for page in (self.workspace.path("root_page"), self.workspace.path("locale_page")):
            patch_file(page, eject_counter)

        self.remove_packages(self.packages)
        return True

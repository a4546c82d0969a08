"""Internationalisation feature built on next-intl.

Installing moves the app's root layout and home page under the
``src/app/[locale]`` segment, wires the next-intl plugin into
``next.config.ts`` and adds the intl provider innermost in the root
provider.  Removing reverses all of it and restores plain root files.
"""

from __future__ import annotations

import re

from next_maker.config import Packages
from next_maker.core import patchers
from next_maker.core.files import (
    copy_file,
    copy_tree,
    delete_file,
    file_exists,
    patch_file,
    read_file,
    write_file,
)
from next_maker.core.workspace import Workspace
from next_maker.features.base import FeatureModule, SetupStatus, read_if_exists
from next_maker.features.composition import (
    INTL_PROVIDER,
    add_provider,
    remove_provider,
    render_home_page,
    render_root_layout,
)
from next_maker.features.state_store import inject_counter

PLUGIN_MODULE = "next-intl/plugin"
PLUGIN_IMPORT = f"import createNextIntlPlugin from '{PLUGIN_MODULE}';"
PLUGIN_CONST = "const withNextIntl = createNextIntlPlugin();"

_EXPORT_DEFAULT_RE = re.compile(
    r"^export default (?!withNextIntl\()(?P<expr>[^\n;]*[^\n;{(\[ \t]);?[ \t]*$", re.MULTILINE
)
_WRAPPED_EXPORT_RE = re.compile(
    r"^export default withNextIntl\((?P<expr>.*)\)(?P<semi>;?)[ \t]*$", re.MULTILINE
)
_WRAPPED_CALL_RE = re.compile(r"withNextIntl\((?P<name>[A-Za-z_$][\w$]*)\)")
_METADATA_FIELD_RE = r"{field}:\s*(['\"`])(?P<value>.*?)\1"


# ---------------------------------------------------------------------------
# next.config edits
# ---------------------------------------------------------------------------


def add_intl_plugin(text: str) -> str:
    """Wrap the exported Next.js config with the next-intl plugin."""
    text = patchers.insert_after_last_import(text, PLUGIN_IMPORT)
    if PLUGIN_CONST not in text:
        match = re.search(r"^export default ", text, re.MULTILINE)
        if match is None:
            text = text.rstrip("\n") + f"\n\n{PLUGIN_CONST}\n"
        else:
            text = f"{text[: match.start()]}{PLUGIN_CONST}\n\n{text[match.start():]}"
    if "withNextIntl(" in text:
        return text
    return _EXPORT_DEFAULT_RE.sub(r"export default withNextIntl(\g<expr>);", text, count=1)


def remove_intl_plugin(text: str) -> str:
    text = patchers.remove_import_of(text, PLUGIN_MODULE)
    text = patchers.remove_line(text, PLUGIN_CONST)
    text = _WRAPPED_EXPORT_RE.sub(r"export default \g<expr>\g<semi>", text)
    text = _WRAPPED_CALL_RE.sub(r"\g<name>", text)
    return re.sub(r"\n{3,}", "\n\n", text)


def read_metadata(text: str, field: str) -> str:
    """Pull a string field (``title``, ``description``) out of a layout's metadata."""
    match = re.search(_METADATA_FIELD_RE.format(field=field), text)
    return match.group("value") if match else ""


# ---------------------------------------------------------------------------
# Feature module
# ---------------------------------------------------------------------------


class I18nFeature(FeatureModule):
    title = "Internationalization"
    owned_paths = ("i18n_dir", "locale_dir", "proxy", "middleware", "i18n_types", "app_locales")
    packages = (Packages.NEXT_INTL,)
    template_paths = ("i18n_dir",)

    def detect(self) -> SetupStatus:
        return SetupStatus.from_checks(
            [
                file_exists(self.workspace.path("i18n_dir")),
                file_exists(self.workspace.path("locale_layout")),
                self.has_packages(Packages.NEXT_INTL),
            ]
        )

    def _title_and_description(self, layout: str) -> tuple[str, str]:
        title = read_metadata(layout, "title") or str(self.manifest().get("name", "")) or "Next.js App"
        description = read_metadata(layout, "description") or str(
            self.manifest().get("description", "")
        )
        return title, description

    def install(self, template: Workspace) -> bool:
        if self.detect() == SetupStatus.INSTALLED:
            return False
        self.require_template(template)
        copy_tree(template.path("i18n_dir"), self.workspace.path("i18n_dir"))
        for entry in ("proxy", "i18n_types", "app_locales"):
            if file_exists(template.path(entry)):
                copy_file(template.path(entry), self.workspace.path(entry))
        self.add_barrel_export("types_index", "i18n")
        self.add_barrel_export("config_index", "app-locales")
        patch_file(self.workspace.path("next_config"), add_intl_plugin)

        self.ensure_providers_barrel()
        self.ensure_root_provider()
        patch_file(self.workspace.path("root_provider"), lambda text: add_provider(text, INTL_PROVIDER))

        self._migrate_into_locale_segment()
        self.add_packages(template, self.packages)
        return True

    def _migrate_into_locale_segment(self) -> None:
        root_layout = self.workspace.path("root_layout")
        root_page = self.workspace.path("root_page")
        locale_layout = self.workspace.path("locale_layout")
        locale_page = self.workspace.path("locale_page")

        if not file_exists(locale_layout):
            title, description = self._title_and_description(read_if_exists(root_layout))
            dark_mode = file_exists(self.workspace.path("theme_provider"))
            write_file(
                locale_layout,
                render_root_layout(self.renderer, title, description, dark_mode, i18n=True),
            )
        if not file_exists(locale_page):
            if file_exists(root_page):
                copy_file(root_page, locale_page)
            else:
                title, _ = self._title_and_description(read_file(locale_layout))
                write_file(locale_page, render_home_page(self.renderer, title, i18n=True))
        delete_file(root_layout)
        delete_file(root_page)

    def remove(self) -> bool:
        if self.detect() == SetupStatus.ABSENT:
            return False
        self._restore_root_segment()

        self.delete_owned_paths()
        self.remove_barrel_export("types_index", "i18n")
        self.remove_barrel_export("config_index", "app-locales")
        patch_file(self.workspace.path("next_config"), remove_intl_plugin)
        patch_file(
            self.workspace.path("root_provider"), lambda text: remove_provider(text, INTL_PROVIDER)
        )
        self.remove_packages(self.packages)
        return True

    def _restore_root_segment(self) -> None:
        """Write plain ``src/app/layout.tsx`` and ``page.tsx`` back."""
        locale_layout = read_if_exists(self.workspace.path("locale_layout"))
        locale_page = read_if_exists(self.workspace.path("locale_page"))
        title, description = self._title_and_description(locale_layout)
        dark_mode = file_exists(self.workspace.path("theme_provider"))

        write_file(
            self.workspace.path("root_layout"),
            render_root_layout(self.renderer, title, description, dark_mode, i18n=False),
        )
        if locale_page and "next-intl" not in locale_page:
            write_file(self.workspace.path("root_page"), locale_page)
            return
        page = render_home_page(self.renderer, title, i18n=False)
        if file_exists(self.workspace.path("store")):
            page = inject_counter(page)
        write_file(self.workspace.path("root_page"), page)

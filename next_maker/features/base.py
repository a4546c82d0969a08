"""Common machinery for feature modules.

A feature module owns one optional add-on of the starter template (HTTP
client, dark theme, state store, i18n).  It can detect whether the add-on is
present, install it by copying files from a template tree and patching the
shared composition points, and remove it again.  Every step is idempotent:
installing an installed feature or removing an absent one is a no-op.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import Any

from next_maker.core import patchers
from next_maker.core.files import (
    delete_tree,
    file_exists,
    patch_file,
    read_file,
    read_json,
    update_json,
    write_file,
)
from next_maker.core.workspace import Workspace
from next_maker.errors import AnchorMissingError
from next_maker.features.composition import render_root_provider
from next_maker.generators.templates import TemplateRenderer


class SetupStatus(str, Enum):
    ABSENT = "absent"
    INSTALLED = "installed"
    PARTIAL = "partial"

    @classmethod
    def from_checks(cls, checks: list[bool]) -> SetupStatus:
        if checks and all(checks):
            return cls.INSTALLED
        if any(checks):
            return cls.PARTIAL
        return cls.ABSENT


class FeatureModule(ABC):
    """Base class for the four optional add-ons."""

    #: Human readable name used in console output.
    title: str = ""
    #: Registry names of files and directories only this feature owns.
    owned_paths: tuple[str, ...] = ()
    #: npm packages the feature declares in package.json.
    packages: tuple[str, ...] = ()
    #: Registry names install copies from the template; each must exist there.
    template_paths: tuple[str, ...] = ()

    def __init__(self, workspace: Workspace, renderer: TemplateRenderer | None = None) -> None:
        self.workspace = workspace
        self.renderer = renderer or TemplateRenderer()

    # -- Contract ----------------------------------------------------------

    @abstractmethod
    def detect(self) -> SetupStatus:
        """Inspect the tree and report whether the feature is present."""

    @abstractmethod
    def install(self, template: Workspace) -> bool:
        """Copy and wire the feature from *template*.

        Returns:
            ``True`` if anything changed, ``False`` if it was already installed.
        """

    @abstractmethod
    def remove(self) -> bool:
        """Delete the feature and reverse its registrations.

        Returns:
            ``True`` if anything changed.
        """

    # -- Owned files -------------------------------------------------------

    def require_template(self, template: Workspace, entries: tuple[str, ...] | None = None) -> None:
        """Fail before touching the project if *template* lacks a file install copies.

        Raises:
            AnchorMissingError: Naming the first missing template path.
        """
        for entry in self.template_paths if entries is None else entries:
            path = template.path(entry)
            if not file_exists(path):
                raise AnchorMissingError(path, f"the template has no {template.paths.resolve(entry)}")

    def delete_owned_paths(self) -> None:
        for entry in self.owned_paths:
            delete_tree(self.workspace.path(entry))

    # -- Manifest helpers --------------------------------------------------

    def manifest(self) -> dict[str, Any]:
        path = self.workspace.path("package_json")
        if not file_exists(path):
            return {}
        return read_json(path)

    def has_packages(self, *names: str) -> bool:
        data = self.manifest()
        return all(patchers.has_dependency(data, name) for name in names)

    def add_packages(self, template: Workspace, names: tuple[str, ...] | list[str]) -> None:
        """Declare *names* in package.json using the template's version ranges."""
        path = self.workspace.path("package_json")
        if not file_exists(path):
            return
        versions = _template_versions(template)

        def _add(data: dict[str, Any]) -> dict[str, Any]:
            for name in names:
                version, dev = versions.get(name, ("latest", False))
                data = patchers.add_dependency(data, name, version, dev=dev)
            return data

        update_json(path, _add)

    def remove_packages(self, names: tuple[str, ...] | list[str]) -> None:
        path = self.workspace.path("package_json")
        if not file_exists(path):
            return

        def _remove(data: dict[str, Any]) -> dict[str, Any]:
            for name in names:
                data = patchers.remove_dependency(data, name)
            return data

        update_json(path, _remove)

    # -- Barrel helpers ----------------------------------------------------

    def ensure_providers_barrel(self) -> None:
        """Create ``src/providers/index.ts`` when missing.

        Its content is fully determined by the provider files on disk, so a
        missing barrel is synthesised instead of failing.
        """
        barrel = self.workspace.path("providers_index")
        if file_exists(barrel):
            return
        lines = [
            f"export * from './{name}';\n"
            for name, entry in (
                ("RootProvider", "root_provider"),
                ("StoreProvider", "store_provider"),
                ("CustomThemeProvider", "theme_provider"),
            )
            if file_exists(self.workspace.path(entry))
        ]
        write_file(barrel, "".join(lines))

    def ensure_root_provider(self) -> None:
        """Render a root provider matching the providers on disk when it is missing."""
        root_provider = self.workspace.path("root_provider")
        if file_exists(root_provider):
            return
        content = render_root_provider(
            self.renderer,
            redux=file_exists(self.workspace.path("store_provider")),
            dark_mode=file_exists(self.workspace.path("theme_provider")),
            i18n=file_exists(self.workspace.path("i18n_dir")),
        )
        write_file(root_provider, content)
        self.add_barrel_export("providers_index", "RootProvider")

    def add_barrel_export(self, barrel: str, module: str) -> None:
        path = self.workspace.path(barrel)
        if not file_exists(path):
            write_file(path, "")
        patch_file(path, lambda text: patchers.add_export_line_if_absent(text, module))

    def remove_barrel_export(self, barrel: str, module: str) -> None:
        patch_file(self.workspace.path(barrel), lambda text: patchers.remove_export_line(text, module))

    # -- Layout helpers ----------------------------------------------------

    def layout_path(self) -> Path:
        """The active root layout: the locale layout when i18n is set up."""
        locale_layout = self.workspace.path("locale_layout")
        if file_exists(locale_layout):
            return locale_layout
        return self.workspace.path("root_layout")

    def page_path(self) -> Path:
        locale_page = self.workspace.path("locale_page")
        if file_exists(locale_page):
            return locale_page
        return self.workspace.path("root_page")


def _template_versions(template: Workspace) -> dict[str, tuple[str, bool]]:
    """Map package name to ``(version, is_dev)`` from the template's manifest."""
    path = template.path("package_json")
    if not file_exists(path):
        return {}
    data = read_json(path)
    versions: dict[str, tuple[str, bool]] = {}
    for section, dev in (("devDependencies", True), ("dependencies", False)):
        for name, version in (data.get(section) or {}).items():
            versions[name] = (str(version), dev)
    return versions


def read_if_exists(path: Path) -> str:
    return read_file(path) if file_exists(path) else ""

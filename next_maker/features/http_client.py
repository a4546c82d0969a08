"""HTTP client feature (axios, fetch, or both).

Besides the client directories themselves the feature relies on files that
other code may share: the error classes, the common and utility type
packages, the API endpoint table, the secure storage service and a couple
of constants.  These are only deleted after a usage scan shows that nothing
outside the HTTP layer still refers to them.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from next_maker.config import HttpClientKind, Packages
from next_maker.core import patchers
from next_maker.core.files import (
    copy_file,
    copy_tree,
    delete_tree,
    file_exists,
    patch_file,
    read_file,
    write_file,
)
from next_maker.core.scanner import RewriteReport, exported_symbols, is_referenced, rewrite_references
from next_maker.core.workspace import Workspace
from next_maker.errors import InputError
from next_maker.features.base import FeatureModule, SetupStatus

CLIENT_DIRS: dict[HttpClientKind, str] = {
    HttpClientKind.AXIOS: "axios_client",
    HttpClientKind.FETCH: "fetch_client",
}
CLIENT_MODULES: dict[HttpClientKind, str] = {
    HttpClientKind.AXIOS: "axios-client",
    HttpClientKind.FETCH: "fetch-client",
}
TOKEN_STORE_MODULE = "token-store"

API_CONSTANTS: tuple[str, ...] = ("API_RESPONSE_DATA_KEY", "SAVE_AUTH_TOKENS")

_HTTP_TYPE_BLOCKS: dict[HttpClientKind, tuple[re.Pattern[str], ...]] = {
    HttpClientKind.AXIOS: (
        re.compile(r"^declare module 'axios' \{[\s\S]*?^\}\n*", re.MULTILINE),
        re.compile(r"^export interface AxiosClientOptions \{[\s\S]*?^\}\n*", re.MULTILINE),
    ),
    HttpClientKind.FETCH: (
        re.compile(r"^export interface FetchClientOptions \{[\s\S]*?^\}\n*", re.MULTILINE),
        re.compile(
            r"^export interface ExtendedRequestInit extends RequestInit \{[\s\S]*?^\}\n*",
            re.MULTILINE,
        ),
    ),
}

_IDENTIFIER_RENAMES: dict[HttpClientKind, dict[str, str]] = {
    HttpClientKind.AXIOS: {
        "createAxiosClient": "createFetchClient",
        "AxiosClientOptions": "FetchClientOptions",
        "axiosClient": "fetchClient",
        "axios-client": "fetch-client",
    },
}
_IDENTIFIER_RENAMES[HttpClientKind.FETCH] = {
    new: old for old, new in _IDENTIFIER_RENAMES[HttpClientKind.AXIOS].items()
}


@dataclass(frozen=True)
class SharedResource:
    """A file or directory the HTTP layer shares with the rest of the app."""

    entry: str
    alias: str
    barrel: str | None = None
    module: str | None = None


SHARED_RESOURCES: tuple[SharedResource, ...] = (
    SharedResource("errors_dir", "@/lib/errors"),
    SharedResource("common_types_dir", "@/types/common", "types_index", "common"),
    SharedResource("utility_types_dir", "@/types/utility", "types_index", "utility"),
    SharedResource("app_apis", "@/lib/config/app-apis", "config_index", "app-apis"),
    SharedResource("storage_service", "@/services/storage"),
)

BARREL_ENTRIES: tuple[str, ...] = ("types_index", "config_index", "utils_index")


# ---------------------------------------------------------------------------
# Pure text helpers
# ---------------------------------------------------------------------------


def strip_http_types(text: str, active: HttpClientKind) -> str:
    """Drop the type declarations of clients not in *active*."""
    for kind, patterns in _HTTP_TYPE_BLOCKS.items():
        if _includes(active, kind):
            continue
        for pattern in patterns:
            text = pattern.sub("", text)
    return text


def set_http_exports(text: str, active: HttpClientKind) -> str:
    """Make the http barrel export exactly the *active* clients plus the token store."""
    for kind, module in CLIENT_MODULES.items():
        if _includes(active, kind):
            text = patchers.add_export_line_if_absent(text, module)
        else:
            text = patchers.remove_export_line(text, module)
    return patchers.add_export_line_if_absent(text, TOKEN_STORE_MODULE)


def _includes(kinds: HttpClientKind, kind: HttpClientKind) -> bool:
    return kinds.union(kind) == kinds


def _single(kinds: HttpClientKind) -> list[HttpClientKind]:
    return [kind for kind in CLIENT_DIRS if _includes(kinds, kind)]


# ---------------------------------------------------------------------------
# Feature module
# ---------------------------------------------------------------------------


class HttpClientFeature(FeatureModule):
    title = "HTTP client"
    owned_paths = ("http_utils",)
    packages = (Packages.AXIOS, Packages.REACT_SECURE_STORAGE)

    def current_clients(self) -> HttpClientKind:
        """Which clients are set up: axios needs its directory and the package."""
        has_axios = file_exists(self.workspace.path("axios_client")) and self.has_packages(
            Packages.AXIOS
        )
        has_fetch = file_exists(self.workspace.path("fetch_client"))
        return HttpClientKind.from_flags(has_axios, has_fetch)

    def detect(self) -> SetupStatus:
        if self.current_clients() != HttpClientKind.NONE:
            return SetupStatus.INSTALLED
        if file_exists(self.workspace.path("http_utils")) or self.has_packages(Packages.AXIOS):
            return SetupStatus.PARTIAL
        return SetupStatus.ABSENT

    # -- install -----------------------------------------------------------

    def install(self, template: Workspace, client: HttpClientKind = HttpClientKind.AXIOS) -> bool:
        """Add *client* next to whatever is already present.

        Asking for a client that is already set up is a successful no-op.
        """
        if client == HttpClientKind.NONE:
            raise InputError("Choose axios, fetch or both to install an HTTP client")
        current = self.current_clients()
        target = current.union(client)
        if target == current:
            return False

        self.require_template(
            template,
            tuple(
                CLIENT_DIRS[kind]
                for kind in _single(target)
                if not file_exists(self.workspace.path(CLIENT_DIRS[kind]))
            ),
        )
        self._restore_shared(template)
        for kind in _single(target):
            if not file_exists(self.workspace.path(CLIENT_DIRS[kind])):
                copy_tree(template.path(CLIENT_DIRS[kind]), self.workspace.path(CLIENT_DIRS[kind]))

        token_store = template.path("token_store")
        if file_exists(token_store) and not file_exists(self.workspace.path("token_store")):
            copy_file(token_store, self.workspace.path("token_store"))

        http_index = self.workspace.path("http_index")
        if not file_exists(http_index):
            template_index = template.path("http_index")
            if file_exists(template_index):
                copy_file(template_index, http_index)
            else:
                write_file(http_index, "")
        patch_file(http_index, lambda text: set_http_exports(text, target))

        if file_exists(template.path("http_types")):
            copy_file(template.path("http_types"), self.workspace.path("http_types"))
        patch_file(self.workspace.path("http_types"), lambda text: strip_http_types(text, target))

        self.add_barrel_export("utils_index", "http")
        self.add_barrel_export("types_index", "common")
        self.add_barrel_export("types_index", "utility")
        self.add_barrel_export("config_index", "app-apis")

        self.add_packages(
            template, [name for name in self.packages if name != Packages.AXIOS or target.has_axios]
        )
        return True

    def _restore_shared(self, template: Workspace) -> None:
        """Bring back shared files from the template without overwriting local copies."""
        for resource in SHARED_RESOURCES:
            source = template.path(resource.entry)
            destination = self.workspace.path(resource.entry)
            if file_exists(source) and not file_exists(destination):
                copy_tree(source, destination)

        constants = self.workspace.path("constants")
        template_constants = template.path("constants")
        if not (file_exists(constants) and file_exists(template_constants)):
            return
        template_lines = read_file(template_constants).splitlines()
        missing = [
            line
            for name in API_CONSTANTS
            if name not in read_file(constants)
            for line in template_lines
            if name in line
        ]
        if missing:
            patch_file(constants, lambda text: text.rstrip("\n") + "\n" + "\n".join(missing) + "\n")

    # -- remove ------------------------------------------------------------

    def remove(
        self,
        client: HttpClientKind = HttpClientKind.BOTH,
        keep_secure_storage: bool = False,
    ) -> bool:
        """Remove *client*; when no client remains, clean up the whole HTTP layer.

        Args:
            client: Client(s) to remove.
            keep_secure_storage: Keep the token store and secure storage
                service even if no HTTP client is left.
        """
        if self.detect() == SetupStatus.ABSENT:
            return False
        current = self.current_clients()
        remaining = current.without(client)

        for kind in _single(client):
            delete_tree(self.workspace.path(CLIENT_DIRS[kind]))

        if remaining != HttpClientKind.NONE:
            patch_file(self.workspace.path("http_index"), lambda t: set_http_exports(t, remaining))
            patch_file(self.workspace.path("http_types"), lambda t: strip_http_types(t, remaining))
            if not remaining.has_axios:
                self.remove_packages([Packages.AXIOS])
            return True

        http_dir = self.workspace.path("http_utils")
        if keep_secure_storage:
            if file_exists(http_dir):
                write_file(self.workspace.path("http_index"), f"export * from './{TOKEN_STORE_MODULE}';\n")
                patch_file(
                    self.workspace.path("http_types"),
                    lambda t: strip_http_types(t, HttpClientKind.NONE),
                )
            removed_dirs = []
        else:
            self.delete_owned_paths()
            self.remove_barrel_export("utils_index", "http")
            removed_dirs = [http_dir]

        self.prune_shared(keep_secure_storage, removed_dirs)
        self._prune_constants(removed_dirs)

        packages = [Packages.AXIOS]
        if not keep_secure_storage and not file_exists(self.workspace.path("storage_service")):
            packages.append(Packages.REACT_SECURE_STORAGE)
        self.remove_packages(packages)
        return True

    def prune_shared(self, keep_secure_storage: bool, removed: list[Path]) -> list[str]:
        """Delete shared resources nothing else uses.

        Candidates referenced from outside the HTTP layer are kept; the scan
        is repeated until stable so that a kept resource also keeps whatever
        it imports itself.

        Returns:
            Registry names of the resources deleted.
        """
        candidates = [
            resource
            for resource in SHARED_RESOURCES
            if file_exists(self.workspace.path(resource.entry))
            and not (resource.entry == "storage_service" and keep_secure_storage)
        ]
        needles = {
            resource.entry: [
                resource.alias,
                *sorted(exported_symbols(self.workspace.path(resource.entry))),
            ]
            for resource in candidates
        }
        static_exclude = [*removed, *(self.workspace.path(b) for b in BARREL_ENTRIES)]

        stable = False
        while not stable:
            stable = True
            exclude = static_exclude + [self.workspace.path(r.entry) for r in candidates]
            for resource in candidates:
                if is_referenced(self.workspace.root, needles[resource.entry], exclude):
                    candidates.remove(resource)
                    stable = False
                    break

        for resource in candidates:
            delete_tree(self.workspace.path(resource.entry))
            if resource.barrel and resource.module:
                self.remove_barrel_export(resource.barrel, resource.module)
        return [resource.entry for resource in candidates]

    def _prune_constants(self, removed: list[Path]) -> None:
        constants = self.workspace.path("constants")
        if not file_exists(constants):
            return
        exclude = [*removed, constants]
        for name in API_CONSTANTS:
            if not is_referenced(self.workspace.root, name, exclude):
                patch_file(constants, lambda text, n=name: patchers.remove_lines_containing(text, n))

    # -- replace -----------------------------------------------------------

    def replace(
        self, template: Workspace, old: HttpClientKind, new: HttpClientKind
    ) -> RewriteReport:
        """Swap one client for the other, renaming usages across the tree.

        The rename is best effort; the returned report lists files that still
        mention the old client's identifiers.
        """
        if old not in CLIENT_DIRS or new not in CLIENT_DIRS or old == new:
            raise InputError("Replace needs two different clients: axios and fetch")
        current = self.current_clients()
        if not _includes(current, old):
            raise InputError(f"Cannot replace {old.value}: it is not set up")

        self.install(template, new)
        exclude = [
            self.workspace.path("axios_client"),
            self.workspace.path("fetch_client"),
            self.workspace.path("http_index"),
            self.workspace.path("http_types"),
            self.workspace.path("package_json"),
        ]
        report = rewrite_references(self.workspace.root, _IDENTIFIER_RENAMES[old], exclude)
        self.remove(old, keep_secure_storage=True)
        return report

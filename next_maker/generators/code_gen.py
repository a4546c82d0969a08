"""Feature, slice and service scaffolding inside an existing project.

Generates:
- ``src/features/<name>/``: component, hook, types, optional store and
  service, plus a barrel ``index.ts``
- ``<store dir>/<name>/``: a Redux slice with selectors, types and an
  optional persist config
- ``<services dir>/<name>.service.ts``: an API service bound to the axios or
  fetch client

Store and service scaffolds are registered in ``rootReducer.ts`` and
``app-apis.ts`` respectively.
"""

from __future__ import annotations

from pathlib import Path, PurePosixPath

from next_maker.config import HttpClientKind
from next_maker.core.files import file_exists
from next_maker.core.workspace import Workspace
from next_maker.errors import InputError, TargetExistsError
from next_maker.generators.registration import register_endpoints_file, register_reducer_file
from next_maker.generators.templates import TemplateRenderer
from next_maker.utils import kebab_to_pascal, to_import_alias, validate_generator_name

DEFAULT_FEATURES_PATH = "src/features"


# ---------------------------------------------------------------------------
# Destination resolution
# ---------------------------------------------------------------------------


def resolve_generator_dir(name: str, custom_path: str | None, leaf: str) -> str:
    """Project-relative directory for a slice (``leaf="store"``) or service.

    Without a custom path a new feature named after *name* is used.  A
    custom ``features/<feature>/...`` path is normalised to that feature's
    *leaf* directory; any other path is taken as-is under ``src/``.
    """
    if not custom_path:
        return f"{DEFAULT_FEATURES_PATH}/{name}/{leaf}"
    relative = custom_path.strip("/")
    if relative.startswith("src/"):
        relative = relative[len("src/"):]
    parts = PurePosixPath(relative).parts
    if len(parts) >= 2 and parts[0] == "features":
        return f"{DEFAULT_FEATURES_PATH}/{parts[1]}/{leaf}"
    return f"src/{relative}"


def choose_client(available: HttpClientKind, requested: HttpClientKind | None) -> HttpClientKind:
    """Pick the single client a generated service uses."""
    if available == HttpClientKind.NONE:
        raise InputError("No HTTP client is set up; run `next-maker setup` to add axios or fetch")
    if requested is None:
        return HttpClientKind.AXIOS if available.has_axios else HttpClientKind.FETCH
    if requested not in (HttpClientKind.AXIOS, HttpClientKind.FETCH):
        raise InputError("A service uses exactly one client: axios or fetch")
    if available.union(requested) != available:
        raise InputError(f"The {requested.value} client is not set up in this project")
    return requested


# ---------------------------------------------------------------------------
# CodeGenerator
# ---------------------------------------------------------------------------


class CodeGenerator:
    """Renders feature, slice and service scaffolds into a workspace."""

    def __init__(self, workspace: Workspace, renderer: TemplateRenderer | None = None) -> None:
        self.workspace = workspace
        self.renderer = renderer or TemplateRenderer()

    async def _render(self, template: str, path: Path, context: dict[str, object]) -> Path:
        return await self.renderer.render_to_file_async(template, path, context)

    # -- feature -----------------------------------------------------------

    async def generate_feature(
        self,
        name: str,
        *,
        base_path: str = DEFAULT_FEATURES_PATH,
        store: bool = False,
        persist: bool = False,
        service: HttpClientKind | None = None,
        register_store: bool = True,
    ) -> list[Path]:
        """Generate a feature module.

        Args:
            name: Kebab-case feature name.
            base_path: Project-relative parent directory.
            store: Generate a Redux slice under ``store/``.
            persist: Also generate a persist config for the slice.
            service: Client for a generated API service, or ``None`` to skip.
            register_store: Add the slice to ``rootReducer.ts``.

        Returns:
            List of written file paths.

        Raises:
            TargetExistsError: If the feature directory already exists.
        """
        validate_generator_name(name, "feature name")
        base_path = base_path.strip("/")
        root = self.workspace.root / base_path / name
        if file_exists(root):
            raise TargetExistsError(root, f"Feature '{name}' already exists at {base_path}")

        context: dict[str, object] = {
            "name": name,
            "with_store": store,
            "with_service": service is not None,
        }
        pascal = kebab_to_pascal(name)
        written = [
            await self._render("feature_component.tsx.j2", root / "components" / f"{pascal}.tsx", context),
            await self._render("feature_hook.ts.j2", root / "hooks" / f"use{pascal}.ts", context),
            await self._render("state_types.ts.j2", root / "types" / f"{name}.types.ts", context),
        ]

        if store:
            store_context = {
                **context,
                "types_module": f"../types/{name}.types",
                "with_actions": False,
                "with_types": False,
                "with_persist": persist,
            }
            written += await self._render_store(root / "store", store_context)
            if register_store:
                register_reducer_file(
                    self.workspace.path("root_reducer"),
                    name,
                    persist,
                    f"{to_import_alias(base_path)}/{name}/store",
                )

        if service is not None:
            written.append(
                await self._render(
                    "service.ts.j2",
                    root / "services" / f"{name}.service.ts",
                    {"name": name, "client": service.value},
                )
            )
            register_endpoints_file(self.workspace.path("app_apis"), name)

        written.append(await self._render("feature_index.ts.j2", root / "index.ts", context))
        return written

    async def _render_store(self, directory: Path, context: dict[str, object]) -> list[Path]:
        name = str(context["name"])
        written = [
            await self._render("slice.ts.j2", directory / f"{name}.slice.ts", context),
            await self._render("selectors.ts.j2", directory / f"{name}.selectors.ts", context),
        ]
        if context["with_persist"]:
            written.append(await self._render("persist.ts.j2", directory / "persist.ts", context))
        written.append(await self._render("store_index.ts.j2", directory / "index.ts", context))
        return written

    # -- slice -------------------------------------------------------------

    async def generate_slice(
        self, name: str, *, custom_path: str | None = None, persist: bool = False
    ) -> list[Path]:
        """Generate a Redux slice and register it in the root reducer."""
        validate_generator_name(name, "slice name")
        base_path = resolve_generator_dir(name, custom_path, "store")
        directory = self.workspace.root / base_path / name
        if file_exists(directory / f"{name}.slice.ts"):
            raise TargetExistsError(directory, f"Slice '{name}' already exists at {base_path}")

        context: dict[str, object] = {
            "name": name,
            "with_store": True,
            "types_module": f"./{name}.types",
            "with_actions": True,
            "with_types": True,
            "with_persist": persist,
        }
        written = [await self._render("state_types.ts.j2", directory / f"{name}.types.ts", context)]
        written += await self._render_store(directory, context)
        register_reducer_file(
            self.workspace.path("root_reducer"),
            name,
            persist,
            f"{to_import_alias(base_path)}/{name}",
        )
        return written

    # -- service -----------------------------------------------------------

    async def generate_service(
        self, name: str, client: HttpClientKind, *, custom_path: str | None = None
    ) -> Path:
        """Generate an API service and its ``AppApis`` endpoint group."""
        validate_generator_name(name, "service name")
        if client not in (HttpClientKind.AXIOS, HttpClientKind.FETCH):
            raise InputError("A service uses exactly one client: axios or fetch")
        base_path = resolve_generator_dir(name, custom_path, "services")
        path = self.workspace.root / base_path / f"{name}.service.ts"
        if file_exists(path):
            raise TargetExistsError(path, f"Service '{name}' already exists at {base_path}")

        register_endpoints_file(self.workspace.path("app_apis"), name)
        return await self._render("service.ts.j2", path, {"name": name, "client": client.value})


"""next-maker configuration.

Typed, immutable configuration for a single CLI invocation.  Everything the
mutation pipeline decides is a pure function of a ``ProjectAnswers`` record,
the ``ProjectPaths`` registry and the current file tree; nothing here is a
process-wide singleton.  Instances are built once by the CLI and passed down.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from next_maker.errors import InputError

PROJECT_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9._-]*$")

TEMPLATE_REPO = "teispace/nextjs-starter"
INITIAL_COMMIT_MESSAGE = "Initial commit from @teispace/next-maker"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class HttpClientKind(str, Enum):
    """Which HTTP client implementation(s) a project carries."""

    NONE = "none"
    AXIOS = "axios"
    FETCH = "fetch"
    BOTH = "both"

    @classmethod
    def from_flags(cls, axios: bool, fetch: bool) -> HttpClientKind:
        if axios and fetch:
            return cls.BOTH
        if axios:
            return cls.AXIOS
        if fetch:
            return cls.FETCH
        return cls.NONE

    @property
    def has_axios(self) -> bool:
        return self in (HttpClientKind.AXIOS, HttpClientKind.BOTH)

    @property
    def has_fetch(self) -> bool:
        return self in (HttpClientKind.FETCH, HttpClientKind.BOTH)

    def without(self, other: HttpClientKind) -> HttpClientKind:
        """Return the clients left after removing *other* from this set."""
        return HttpClientKind.from_flags(
            self.has_axios and not other.has_axios,
            self.has_fetch and not other.has_fetch,
        )

    def union(self, other: HttpClientKind) -> HttpClientKind:
        return HttpClientKind.from_flags(
            self.has_axios or other.has_axios,
            self.has_fetch or other.has_fetch,
        )


class PackageManager(str, Enum):
    NPM = "npm"
    YARN = "yarn"
    PNPM = "pnpm"
    BUN = "bun"


COMMUNITY_FILES: tuple[str, ...] = ("CODE_OF_CONDUCT.md", "CONTRIBUTING.md", "SECURITY.md")


# ---------------------------------------------------------------------------
# Path registry
# ---------------------------------------------------------------------------


class ProjectPaths(BaseModel):
    """Symbolic names for every location the pipeline touches.

    All values are POSIX paths relative to the project root.  Renaming a
    resource on disk only requires changing its default here.
    """

    model_config = ConfigDict(frozen=True)

    # Providers / composition
    root_provider: str = "src/providers/RootProvider.tsx"
    providers_index: str = "src/providers/index.ts"
    store_provider: str = "src/providers/StoreProvider.tsx"
    theme_provider: str = "src/providers/CustomThemeProvider.tsx"

    # App router
    root_layout: str = "src/app/layout.tsx"
    root_page: str = "src/app/page.tsx"
    locale_dir: str = "src/app/[locale]"
    locale_layout: str = "src/app/[locale]/layout.tsx"
    locale_page: str = "src/app/[locale]/page.tsx"
    globals_css: str = "src/styles/globals.css"

    # HTTP utilities
    http_utils: str = "src/lib/utils/http"
    http_index: str = "src/lib/utils/http/index.ts"
    http_types: str = "src/lib/utils/http/http.types.ts"
    token_store: str = "src/lib/utils/http/token-store.ts"
    axios_client: str = "src/lib/utils/http/axios-client"
    fetch_client: str = "src/lib/utils/http/fetch-client"
    utils_index: str = "src/lib/utils/index.ts"
    errors_dir: str = "src/lib/errors"

    # Types
    types_index: str = "src/types/index.ts"
    common_types_dir: str = "src/types/common"
    utility_types_dir: str = "src/types/utility"
    i18n_types: str = "src/types/i18n.ts"

    # Config
    config_index: str = "src/lib/config/index.ts"
    app_apis: str = "src/lib/config/app-apis.ts"
    app_locales: str = "src/lib/config/app-locales.ts"
    constants: str = "src/lib/config/constants.ts"

    # Services / state
    storage_service: str = "src/services/storage"
    store: str = "src/store"
    root_reducer: str = "src/store/rootReducer.ts"
    counter_feature: str = "src/features/counter"
    features_dir: str = "src/features"
    count_component: str = "src/components/Count.tsx"
    components_index: str = "src/components/index.ts"

    # i18n
    i18n_dir: str = "src/i18n"
    proxy: str = "src/proxy.ts"
    middleware: str = "src/middleware.ts"
    next_config: str = "next.config.ts"

    # Repository files
    package_json: str = "package.json"
    env_example: str = ".env.example"
    github_dir: str = ".github"
    workflows_dir: str = ".github/workflows"
    issue_templates_dir: str = ".github/ISSUE_TEMPLATE"
    pr_template: str = ".github/PULL_REQUEST_TEMPLATE.md"
    husky_dir: str = ".husky"
    commitlint_config: str = "commitlint.config.mjs"
    lint_staged_config: str = ".lintstagedrc.mjs"
    czrc: str = ".czrc"
    dockerfile: str = "Dockerfile"
    docker_compose: str = "docker-compose.yml"
    dockerignore: str = ".dockerignore"
    license: str = "LICENSE"
    changelog: str = "CHANGELOG.md"
    readme: str = "README.md"

    def resolve(self, name: str) -> str:
        """Return the relative path registered under *name*.

        Names are case-insensitive (``"ROOT_LAYOUT"`` and ``"root_layout"``
        are equivalent).

        Raises:
            KeyError: If *name* is not a registered resource.
        """
        key = name.lower()
        if key not in type(self).model_fields:
            raise KeyError(f"Unknown project path: {name}")
        return getattr(self, key)

    def names(self) -> list[str]:
        return list(type(self).model_fields)


# ---------------------------------------------------------------------------
# npm package table
# ---------------------------------------------------------------------------


class Packages:
    """npm package names managed per feature."""

    REDUX_TOOLKIT = "@reduxjs/toolkit"
    REACT_REDUX = "react-redux"
    REDUX_PERSIST = "redux-persist"
    REACT_SECURE_STORAGE = "react-secure-storage"
    NEXT_INTL = "next-intl"
    NEXT_THEMES = "next-themes"
    AXIOS = "axios"

    HUSKY = "husky"
    COMMITLINT_CLI = "@commitlint/cli"
    COMMITLINT_CONFIG = "@commitlint/config-conventional"
    LINT_STAGED = "lint-staged"
    COMMITIZEN = "commitizen"
    CZ_CONVENTIONAL_CHANGELOG = "cz-conventional-changelog"

    STATE_STORE = (REDUX_TOOLKIT, REACT_REDUX, REDUX_PERSIST)
    PRE_COMMIT_HOOKS = (HUSKY, COMMITLINT_CLI, COMMITLINT_CONFIG, LINT_STAGED)
    COMMIT_TOOLING = (COMMITIZEN, CZ_CONVENTIONAL_CHANGELOG)


# ---------------------------------------------------------------------------
# User answers
# ---------------------------------------------------------------------------


class ProjectAnswers(BaseModel):
    """Every choice made for one ``init`` run.

    Frozen after construction; validation happens here, at the boundary
    where prompts or flags are collected, and nowhere downstream.
    """

    model_config = ConfigDict(frozen=True)

    project_name: str = Field(..., description="Directory and package name")
    description: str = Field(default="A Next.js application")
    version: str = Field(default="0.1.0")
    author: str = Field(default="")
    company: str = Field(default="")
    email: str = Field(default="")

    git_remote: str = Field(default="", description="Remote URL added as origin")
    git_homepage: str = Field(default="")
    git_issues: str = Field(default="")
    push_to_remote: bool = Field(default=False)

    package_manager: PackageManager = Field(default=PackageManager.NPM)

    http_client: HttpClientKind = Field(default=HttpClientKind.AXIOS)
    react_secure_storage: bool = Field(default=False)
    dark_mode: bool = Field(default=True)
    redux: bool = Field(default=True)
    i18n: bool = Field(default=True)

    community_files: tuple[str, ...] = Field(default=COMMUNITY_FILES)
    keep_github_templates: bool = Field(default=True)
    docker: bool = Field(default=True)
    container_name: str = Field(default="next-app")
    image_name: str = Field(default="nextjs-starter")
    image_tag: str = Field(default="latest")
    ci: bool = Field(default=True)
    pre_commit_hooks: bool = Field(default=True)
    commitizen: bool = Field(default=True)
    readme: bool = Field(default=True)

    @field_validator("project_name")
    @classmethod
    def _check_project_name(cls, value: str) -> str:
        if not PROJECT_NAME_PATTERN.match(value):
            raise ValueError(
                "project name must be lowercase and may only contain letters, "
                "digits, '.', '_' and '-'"
            )
        return value

    @field_validator("community_files")
    @classmethod
    def _check_community_files(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in value if name not in COMMUNITY_FILES]
        if unknown:
            raise ValueError(f"unknown community files: {', '.join(unknown)}")
        return value

    @model_validator(mode="after")
    def _check_combinations(self) -> ProjectAnswers:
        if self.push_to_remote and not self.git_remote:
            raise ValueError("push_to_remote requires git_remote")
        return self

    @property
    def keep_secure_storage(self) -> bool:
        """Secure storage stays whenever a client needs it or it was requested."""
        return self.http_client != HttpClientKind.NONE or self.react_secure_storage

    @classmethod
    def build(cls, **values: object) -> ProjectAnswers:
        """Construct answers, converting validation failures to ``InputError``."""
        try:
            return cls(**values)
        except ValidationError as exc:
            messages = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'answers'}: {err['msg']}"
                for err in exc.errors()
            )
            raise InputError(messages) from exc


# ---------------------------------------------------------------------------
# Tool configuration
# ---------------------------------------------------------------------------


class ToolConfig(BaseModel):
    """Settings for how next-maker itself runs (not what it generates)."""

    template_repo: str = Field(default=TEMPLATE_REPO, description="GitHub owner/name")
    template_ref: str = Field(default="main")
    template_dir: Path | None = Field(
        default=None, description="Local template tree used instead of downloading"
    )
    clone_timeout: int = Field(default=300, ge=1, description="Template download timeout (s)")
    install_timeout: int = Field(default=900, ge=1, description="Dependency install timeout (s)")
    git_timeout: int = Field(default=120, ge=1, description="Per git command timeout (s)")
    script_timeout: int = Field(default=300, ge=1, description="format / lint timeout (s)")
    verbose: bool = Field(default=False)

    @property
    def template_url(self) -> str:
        """Tarball URL for the configured repository and ref."""
        return f"https://codeload.github.com/{self.template_repo}/tar.gz/{self.template_ref}"

    @classmethod
    def from_env(cls) -> ToolConfig:
        """Create a config, overriding defaults from ``NEXT_MAKER_*`` variables.

        Recognised environment variables:

        * ``NEXT_MAKER_TEMPLATE_REPO``
        * ``NEXT_MAKER_TEMPLATE_REF``
        * ``NEXT_MAKER_TEMPLATE_DIR``
        * ``NEXT_MAKER_CLONE_TIMEOUT``
        * ``NEXT_MAKER_INSTALL_TIMEOUT``
        * ``NEXT_MAKER_GIT_TIMEOUT``
        * ``NEXT_MAKER_SCRIPT_TIMEOUT``
        * ``NEXT_MAKER_VERBOSE``
        """
        kwargs: dict[str, object] = {}

        if repo := os.environ.get("NEXT_MAKER_TEMPLATE_REPO"):
            kwargs["template_repo"] = repo
        if ref := os.environ.get("NEXT_MAKER_TEMPLATE_REF"):
            kwargs["template_ref"] = ref
        if template_dir := os.environ.get("NEXT_MAKER_TEMPLATE_DIR"):
            kwargs["template_dir"] = Path(template_dir)

        for field_name in ("clone_timeout", "install_timeout", "git_timeout", "script_timeout"):
            variable = f"NEXT_MAKER_{field_name.upper()}"
            raw = os.environ.get(variable)
            if not raw:
                continue
            try:
                seconds = int(raw)
            except ValueError as exc:
                raise InputError(f"{variable} must be a whole number of seconds, got {raw!r}") from exc
            if seconds < 1:
                raise InputError(f"{variable} must be at least 1, got {seconds}")
            kwargs[field_name] = seconds

        verbose = os.environ.get("NEXT_MAKER_VERBOSE", "")
        if verbose.lower() in ("1", "true", "yes"):
            kwargs["verbose"] = True

        return cls(**kwargs)

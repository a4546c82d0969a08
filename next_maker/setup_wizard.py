"""Feature setup on an existing project (``next-maker setup``).

Each request names one feature module and an action:

* ``install`` -- set the feature up; a no-op success when already present
* ``add``     -- add a second HTTP client next to the current one
* ``replace`` -- swap the HTTP client, renaming usages across the tree
* ``remove``  -- delete the feature and reverse its registrations

After a change the dependencies are reinstalled and ``format`` is run;
a failing formatter only warns.
"""

from __future__ import annotations

import tempfile
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from next_maker.config import HttpClientKind, ToolConfig
from next_maker.core.files import file_exists
from next_maker.core.package_manager import PackageManagerRunner, detect_package_manager
from next_maker.core.scanner import RewriteReport
from next_maker.core.template import TemplateFetcher
from next_maker.core.workspace import Workspace
from next_maker.errors import AnchorMissingError, InputError
from next_maker.features import FeatureSet, SetupStatus
from next_maker.generators.templates import TemplateRenderer
from next_maker.utils import create_progress, print_info, print_success, print_warning

FEATURE_CHOICES: dict[str, str] = {
    "http": "HTTP client (axios / fetch)",
    "redux": "Redux Toolkit",
    "dark": "Dark theme",
    "i18n": "Internationalization (next-intl)",
}


class SetupAction(str, Enum):
    INSTALL = "install"
    ADD = "add"
    REPLACE = "replace"
    REMOVE = "remove"


class SetupRequest(BaseModel):
    """One setup action on one feature."""

    model_config = ConfigDict(frozen=True)

    feature: str
    action: SetupAction = SetupAction.INSTALL
    client: HttpClientKind | None = None
    keep_secure_storage: bool = False


class SetupOutcome(BaseModel):
    changed: bool
    message: str
    report: RewriteReport | None = None


def validate_request(request: SetupRequest, current: HttpClientKind) -> None:
    """Reject impossible combinations before anything is touched."""
    if request.feature not in FEATURE_CHOICES:
        raise InputError(
            f"Unknown feature '{request.feature}'; choose from {', '.join(FEATURE_CHOICES)}"
        )
    if request.feature != "http":
        if request.action in (SetupAction.ADD, SetupAction.REPLACE):
            raise InputError(f"'{request.action.value}' only applies to the HTTP client")
        return
    if request.client == HttpClientKind.NONE:
        raise InputError("Pick axios, fetch or both")
    if request.action == SetupAction.REPLACE:
        if current not in (HttpClientKind.AXIOS, HttpClientKind.FETCH):
            raise InputError("Replace needs exactly one HTTP client set up")
    if request.action == SetupAction.ADD and current == HttpClientKind.NONE:
        raise InputError("No HTTP client to add to; use install instead")


class SetupWizard:
    """Runs setup requests against the project in *project_dir*."""

    def __init__(
        self,
        project_dir: str | Path,
        config: ToolConfig,
        skip_install: bool = False,
        renderer: TemplateRenderer | None = None,
    ) -> None:
        self.project_dir = Path(project_dir).resolve()
        self.config = config
        self.skip_install = skip_install
        self.workspace = Workspace(self.project_dir)
        self.features = FeatureSet(self.workspace, renderer or TemplateRenderer())

    def ensure_project(self) -> None:
        if not file_exists(self.workspace.path("package_json")):
            raise AnchorMissingError(self.workspace.path("package_json"), "not a Node.js project")

    async def run(self, request: SetupRequest) -> SetupOutcome:
        self.ensure_project()
        validate_request(request, self.features.http_client.current_clients())

        if request.action == SetupAction.REMOVE:
            outcome = self._remove(request)
        else:
            with tempfile.TemporaryDirectory(prefix="next-maker-") as scratch:
                template = Workspace(Path(scratch) / "template")
                with create_progress() as progress:
                    progress.add_task("Fetching template...", total=None)
                    await TemplateFetcher(self.config).fetch(template.root)
                outcome = self._apply(request, template)

        if outcome.changed:
            print_success(outcome.message)
            await self._refresh_dependencies()
        else:
            print_info(outcome.message)
        return outcome

    def _apply(self, request: SetupRequest, template: Workspace) -> SetupOutcome:
        if request.feature != "http":
            feature = self.features.by_name(request.feature)
            if feature.detect() == SetupStatus.INSTALLED:
                return SetupOutcome(changed=False, message=f"{feature.title} is already set up")
            feature.install(template)
            return SetupOutcome(changed=True, message=f"{feature.title} set up")

        http = self.features.http_client
        current = http.current_clients()
        if request.action == SetupAction.REPLACE:
            new = HttpClientKind.FETCH if current == HttpClientKind.AXIOS else HttpClientKind.AXIOS
            report = http.replace(template, current, new)
            for path in report.remaining:
                print_warning(f"Still references {current.value}: {self.workspace.relative(path)}")
            return SetupOutcome(
                changed=True,
                message=(
                    f"Replaced {current.value} with {new.value} "
                    f"({len(report.rewritten)} file(s) updated)"
                ),
                report=report,
            )

        client = request.client or self._default_client(current, request.action)
        if client == HttpClientKind.NONE:
            return SetupOutcome(changed=False, message="Both HTTP clients are already set up")
        if not http.install(template, client):
            return SetupOutcome(changed=False, message=f"{client.value} client is already set up")
        return SetupOutcome(changed=True, message=f"{client.value} client set up")

    @staticmethod
    def _default_client(current: HttpClientKind, action: SetupAction) -> HttpClientKind:
        if action == SetupAction.ADD:
            return HttpClientKind.BOTH.without(current)
        return HttpClientKind.AXIOS

    def _remove(self, request: SetupRequest) -> SetupOutcome:
        feature = self.features.by_name(request.feature)
        if request.feature == "http":
            client = request.client or HttpClientKind.BOTH
            changed = self.features.http_client.remove(client, request.keep_secure_storage)
        else:
            changed = feature.remove()
        if not changed:
            return SetupOutcome(changed=False, message=f"{feature.title} is not set up")
        return SetupOutcome(changed=True, message=f"{feature.title} removed")

    async def _refresh_dependencies(self) -> None:
        if self.skip_install:
            return
        runner = PackageManagerRunner(
            self.project_dir,
            detect_package_manager(self.project_dir),
            install_timeout=self.config.install_timeout,
            script_timeout=self.config.script_timeout,
            verbose=self.config.verbose,
        )
        with create_progress() as progress:
            progress.add_task("Installing dependencies...", total=None)
            await runner.install()
        await runner.run_script("format")

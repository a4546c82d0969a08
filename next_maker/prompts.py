"""Interactive questions for every command, built on ``rich.prompt``.

Each collector takes the values already supplied as flags (``None`` where a
flag was not given) and only asks for the rest.  With ``assume_yes`` no
question is asked and defaults are used instead.
"""

from __future__ import annotations

from typing import Any

from rich.prompt import Confirm, Prompt

from next_maker.config import COMMUNITY_FILES, HttpClientKind, PackageManager, ProjectAnswers
from next_maker.core.package_manager import manager_from_user_agent
from next_maker.errors import InputError
from next_maker.features import ProjectDetection
from next_maker.setup_wizard import FEATURE_CHOICES, SetupAction, SetupRequest
from next_maker.utils import console, validate_generator_name

DEFAULT_PROJECT_NAME = "my-next-app"


# ---------------------------------------------------------------------------
# Primitive questions
# ---------------------------------------------------------------------------


def ask_text(question: str, default: str = "", assume_yes: bool = False) -> str:
    if assume_yes:
        return default
    return Prompt.ask(question, default=default, console=console).strip()


def ask_confirm(question: str, default: bool, assume_yes: bool = False) -> bool:
    if assume_yes:
        return default
    return Confirm.ask(question, default=default, console=console)


def ask_choice(question: str, choices: list[str], default: str, assume_yes: bool = False) -> str:
    if assume_yes:
        return default
    return Prompt.ask(question, choices=choices, default=default, console=console)


def ask_name(question: str, given: str | None, default: str, kind: str, assume_yes: bool) -> str:
    """Return a valid generator name, asking until one is given."""
    if given is not None:
        return validate_generator_name(given, kind)
    if assume_yes:
        return validate_generator_name(default, kind)
    while True:
        value = Prompt.ask(question, default=default, console=console).strip()
        try:
            return validate_generator_name(value, kind)
        except InputError as exc:
            console.print(f"[red]{exc}[/red]")


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------


def collect_project_answers(preset: dict[str, Any], assume_yes: bool = False) -> ProjectAnswers:
    """Ask every ``init`` question that *preset* does not already answer.

    Raises:
        InputError: If the combined answers fail validation.
    """
    values = {key: value for key, value in preset.items() if value is not None}
    defaults = ProjectAnswers.model_fields

    def text(key: str, question: str, default: str | None = None) -> None:
        if key not in values:
            fallback = default if default is not None else defaults[key].default
            values[key] = ask_text(question, fallback, assume_yes)

    def confirm(key: str, question: str) -> None:
        if key not in values:
            values[key] = ask_confirm(question, defaults[key].default, assume_yes)

    text("project_name", "Project name", DEFAULT_PROJECT_NAME)
    text("description", "Description")
    text("version", "Version")
    text("author", "Author")
    text("company", "Company")
    text("email", "Email")
    text("git_remote", "Git remote URL (leave empty to skip)")
    if values["git_remote"]:
        text("git_homepage", "Homepage URL")
        text("git_issues", "Issue tracker URL")
        confirm("push_to_remote", "Push the initial commit to the remote?")

    if "package_manager" not in values:
        values["package_manager"] = ask_choice(
            "Package manager",
            [m.value for m in PackageManager],
            manager_from_user_agent().value,
            assume_yes,
        )
    if "http_client" not in values:
        values["http_client"] = ask_choice(
            "HTTP client",
            [k.value for k in HttpClientKind],
            HttpClientKind.AXIOS.value,
            assume_yes,
        )
    if HttpClientKind(values["http_client"]) == HttpClientKind.NONE:
        confirm("react_secure_storage", "Keep react-secure-storage?")
    confirm("redux", "Use Redux Toolkit?")
    confirm("dark_mode", "Add dark mode?")
    confirm("i18n", "Add internationalization (next-intl)?")

    if "community_files" not in values:
        values["community_files"] = tuple(
            name for name in COMMUNITY_FILES if ask_confirm(f"Keep {name}?", True, assume_yes)
        )
    confirm("keep_github_templates", "Keep GitHub issue and PR templates?")
    confirm("docker", "Keep Docker support?")
    if values["docker"]:
        text("container_name", "Docker container name")
        text("image_name", "Docker image name")
        text("image_tag", "Docker image tag")
    confirm("ci", "Keep CI workflows?")
    confirm("pre_commit_hooks", "Keep pre-commit hooks (husky, lint-staged, commitlint)?")
    confirm("commitizen", "Keep commitizen?")
    confirm("readme", "Generate a README?")

    return ProjectAnswers.build(**values)


# ---------------------------------------------------------------------------
# setup
# ---------------------------------------------------------------------------


def _setup_actions(feature: str, detection: ProjectDetection) -> list[SetupAction]:
    if feature != "http":
        installed = {
            "redux": detection.has_redux,
            "dark": detection.has_dark_theme,
            "i18n": detection.has_i18n,
        }[feature]
        return [SetupAction.REMOVE] if installed else [SetupAction.INSTALL]
    current = detection.http_client
    if current == HttpClientKind.NONE:
        return [SetupAction.INSTALL]
    if current == HttpClientKind.BOTH:
        return [SetupAction.REMOVE]
    return [SetupAction.ADD, SetupAction.REPLACE, SetupAction.REMOVE]


def collect_setup_request(
    detection: ProjectDetection,
    feature: str | None = None,
    action: SetupAction | None = None,
    client: HttpClientKind | None = None,
    keep_secure_storage: bool | None = None,
    assume_yes: bool = False,
) -> SetupRequest:
    """Work out the setup request, asking only what the flags leave open."""
    if feature is None:
        if assume_yes:
            raise InputError("--feature is required with --yes")
        for key, label in FEATURE_CHOICES.items():
            console.print(f"  [cyan]{key:<6}[/cyan] {label}")
        feature = Prompt.ask("Feature", choices=list(FEATURE_CHOICES), console=console)

    if action is None:
        actions = _setup_actions(feature, detection) if feature in FEATURE_CHOICES else []
        if not actions:
            action = SetupAction.INSTALL
        else:
            action = SetupAction(
                ask_choice("Action", [a.value for a in actions], actions[0].value, assume_yes)
            )

    if feature == "http" and client is None:
        current = detection.http_client
        if action in (SetupAction.INSTALL, SetupAction.ADD):
            available = [HttpClientKind.BOTH.without(current)] if action == SetupAction.ADD else [
                HttpClientKind.AXIOS,
                HttpClientKind.FETCH,
                HttpClientKind.BOTH,
            ]
            client = HttpClientKind(
                ask_choice("Client", [k.value for k in available], available[0].value, assume_yes)
            )
        elif action == SetupAction.REMOVE and current == HttpClientKind.BOTH:
            client = HttpClientKind(
                ask_choice("Remove which client?", ["axios", "fetch", "both"], "both", assume_yes)
            )

    if feature == "http" and action == SetupAction.REMOVE and keep_secure_storage is None:
        remaining = detection.http_client.without(client or HttpClientKind.BOTH)
        if remaining == HttpClientKind.NONE:
            keep_secure_storage = ask_confirm("Keep react-secure-storage?", False, assume_yes)

    return SetupRequest(
        feature=feature,
        action=action,
        client=client,
        keep_secure_storage=bool(keep_secure_storage),
    )


# ---------------------------------------------------------------------------
# Generators
# ---------------------------------------------------------------------------


def collect_feature_options(
    name: str | None,
    detection: ProjectDetection,
    store: bool | None = None,
    persist: bool | None = None,
    service: HttpClientKind | None = None,
    skip_service: bool = False,
    assume_yes: bool = False,
) -> dict[str, Any]:
    """Name, store and service choices for ``next-maker feature``."""
    name = ask_name("Feature name", name, "my-feature", "feature name", assume_yes)

    if store is None:
        store = detection.has_redux and ask_confirm("Generate a Redux slice?", True, assume_yes)
    if store and persist is None:
        persist = ask_confirm("Persist the slice?", False, assume_yes)

    available = detection.http_client
    if service is None and not skip_service and available != HttpClientKind.NONE:
        if ask_confirm("Generate an API service?", True, assume_yes):
            if available == HttpClientKind.BOTH:
                service = HttpClientKind(
                    ask_choice("HTTP client", ["axios", "fetch"], "axios", assume_yes)
                )
            else:
                service = available

    return {"name": name, "store": store, "persist": bool(persist), "service": service}


def collect_slice_options(
    name: str | None, persist: bool | None = None, assume_yes: bool = False
) -> tuple[str, bool]:
    name = ask_name("Slice name", name, "my-slice", "slice name", assume_yes)
    if persist is None:
        persist = ask_confirm("Persist the slice?", False, assume_yes)
    return name, persist


def collect_service_options(
    name: str | None,
    available: HttpClientKind,
    requested: HttpClientKind | None = None,
    assume_yes: bool = False,
) -> tuple[str, HttpClientKind | None]:
    name = ask_name("Service name", name, "my-service", "service name", assume_yes)
    if requested is None and available == HttpClientKind.BOTH:
        requested = HttpClientKind(ask_choice("HTTP client", ["axios", "fetch"], "axios", assume_yes))
    return name, requested

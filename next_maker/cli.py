"""Command-line entry point for next-maker.

Usage::

    next-maker init my-app --yes --http-client fetch --no-i18n
    next-maker setup --feature http --action replace
    next-maker feature user-profile --store persist --service axios
    next-maker slice session --persist
    next-maker service billing --fetch --path features/billing

Every flag combination is validated before a file is touched.  Failures
print one red line and exit 1; argparse usage errors exit 2; an interrupt
exits 130.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from next_maker import __version__
from next_maker.config import HttpClientKind, PackageManager, ToolConfig
from next_maker.core.files import file_exists
from next_maker.core.workspace import Workspace
from next_maker.errors import AnchorMissingError, InputError, NextMakerError
from next_maker.features import ProjectDetection, detect_project
from next_maker.generators import CodeGenerator
from next_maker.generators.code_gen import DEFAULT_FEATURES_PATH, choose_client
from next_maker.pipeline import InitPipeline
from next_maker.prompts import (
    collect_feature_options,
    collect_project_answers,
    collect_service_options,
    collect_setup_request,
    collect_slice_options,
)
from next_maker.setup_wizard import FEATURE_CHOICES, SetupAction, SetupWizard
from next_maker.utils import (
    console,
    print_error,
    print_info,
    print_step_header,
    print_success,
    print_summary_table,
    print_warning,
)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="next-maker",
        description="Scaffold and evolve Next.js starter projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  next-maker init my-app\n"
            "  next-maker init my-app --yes --no-http-client --no-redux\n"
            "  next-maker setup --feature dark\n"
            "  next-maker feature todo --skip-service\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Echo external commands")
    parser.add_argument(
        "--template-dir",
        default=None,
        help="Use a local template tree instead of downloading one",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # -- init ---------------------------------------------------------------
    init = sub.add_parser("init", help="Create a new project from the starter template")
    init.add_argument("name", nargs="?", help="Project (and directory) name")
    init.add_argument("--directory", "-C", default=".", help="Parent directory (default: .)")
    init.add_argument("--yes", "-y", action="store_true", help="Accept defaults, ask nothing")
    init.add_argument("--skip-install", action="store_true", help="Do not install dependencies")
    init.add_argument("--description", default=None)
    init.add_argument(
        "--package-manager", choices=[m.value for m in PackageManager], default=None
    )
    http = init.add_mutually_exclusive_group()
    http.add_argument(
        "--http-client",
        choices=[k.value for k in HttpClientKind if k != HttpClientKind.NONE],
        default=None,
    )
    http.add_argument("--no-http-client", action="store_true", help="Remove both HTTP clients")
    for flag, dest, label in (
        ("redux", "redux", "Redux Toolkit"),
        ("dark-mode", "dark_mode", "dark mode"),
        ("i18n", "i18n", "next-intl"),
        ("docker", "docker", "Docker files"),
        ("ci", "ci", "CI workflows"),
        ("readme", "readme", "the generated README"),
    ):
        init.add_argument(
            f"--{flag}",
            dest=dest,
            action=argparse.BooleanOptionalAction,
            default=None,
            help=f"Include {label}",
        )

    # -- setup --------------------------------------------------------------
    setup = sub.add_parser("setup", help="Install, add, replace or remove a feature")
    setup.add_argument("--directory", "-C", default=".", help="Project directory (default: .)")
    setup.add_argument("--feature", choices=list(FEATURE_CHOICES), default=None)
    setup.add_argument("--action", choices=[a.value for a in SetupAction], default=None)
    setup.add_argument("--client", choices=["axios", "fetch", "both"], default=None)
    setup.add_argument(
        "--keep-secure-storage",
        action="store_true",
        default=None,
        help="Keep react-secure-storage when removing the last HTTP client",
    )
    setup.add_argument("--yes", "-y", action="store_true")
    setup.add_argument("--skip-install", action="store_true")

    # -- feature ------------------------------------------------------------
    feature = sub.add_parser("feature", help="Generate a feature module")
    feature.add_argument("name", nargs="?")
    feature.add_argument("--directory", "-C", default=".", help="Project directory (default: .)")
    feature.add_argument("--yes", "-y", action="store_true")
    store = feature.add_mutually_exclusive_group()
    store.add_argument("--skip-store", action="store_true", help="Skip Redux store generation")
    store.add_argument("--store", choices=["persist", "no-persist"], default=None)
    service = feature.add_mutually_exclusive_group()
    service.add_argument("--skip-service", action="store_true", help="Skip API service generation")
    service.add_argument("--service", choices=["axios", "fetch"], default=None)
    feature.add_argument(
        "--path", default=None, help=f"Parent directory (default: {DEFAULT_FEATURES_PATH})"
    )

    # -- slice --------------------------------------------------------------
    slice_ = sub.add_parser("slice", help="Generate a Redux slice")
    slice_.add_argument("name", nargs="?")
    slice_.add_argument("--directory", "-C", default=".", help="Project directory (default: .)")
    slice_.add_argument("--yes", "-y", action="store_true")
    slice_.add_argument("--path", default=None, help="Custom destination (default: new feature)")
    persist = slice_.add_mutually_exclusive_group()
    persist.add_argument("--persist", dest="persist", action="store_true", default=None)
    persist.add_argument("--no-persist", dest="persist", action="store_false", default=None)

    # -- service ------------------------------------------------------------
    service_ = sub.add_parser("service", help="Generate an API service")
    service_.add_argument("name", nargs="?")
    service_.add_argument("--directory", "-C", default=".", help="Project directory (default: .)")
    service_.add_argument("--yes", "-y", action="store_true")
    service_.add_argument("--path", default=None, help="Custom destination (default: new feature)")
    client = service_.add_mutually_exclusive_group()
    client.add_argument("--axios", action="store_true", help="Use the axios client")
    client.add_argument("--fetch", action="store_true", help="Use the fetch client")

    return parser


def build_config(args: argparse.Namespace) -> ToolConfig:
    config = ToolConfig.from_env()
    updates: dict[str, object] = {}
    if args.verbose:
        updates["verbose"] = True
    if args.template_dir:
        updates["template_dir"] = Path(args.template_dir)
    return config.model_copy(update=updates) if updates else config


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def open_project(directory: str) -> Workspace:
    """Workspace for an existing project; it must have a ``package.json``."""
    workspace = Workspace(Path(directory).resolve())
    if not file_exists(workspace.path("package_json")):
        raise AnchorMissingError(workspace.path("package_json"), "not a Node.js project")
    return workspace


def show_detection(detection: ProjectDetection) -> None:
    print_summary_table(detection.summary(), title="Project setup")


def cmd_init(args: argparse.Namespace, config: ToolConfig) -> None:
    if args.no_http_client:
        http_client: HttpClientKind | None = HttpClientKind.NONE
    elif args.http_client:
        http_client = HttpClientKind(args.http_client)
    else:
        http_client = None

    answers = collect_project_answers(
        {
            "project_name": args.name,
            "description": args.description,
            "package_manager": args.package_manager,
            "http_client": http_client,
            "redux": args.redux,
            "dark_mode": args.dark_mode,
            "i18n": args.i18n,
            "docker": args.docker,
            "ci": args.ci,
            "readme": args.readme,
        },
        assume_yes=args.yes,
    )
    pipeline = InitPipeline(
        answers, config, parent_dir=args.directory, skip_install=args.skip_install
    )
    asyncio.run(pipeline.run())


def cmd_setup(args: argparse.Namespace, config: ToolConfig) -> None:
    wizard = SetupWizard(args.directory, config, skip_install=args.skip_install)
    wizard.ensure_project()
    print_step_header("Feature setup")
    detection = detect_project(wizard.workspace)
    show_detection(detection)
    request = collect_setup_request(
        detection,
        feature=args.feature,
        action=SetupAction(args.action) if args.action else None,
        client=HttpClientKind(args.client) if args.client else None,
        keep_secure_storage=args.keep_secure_storage,
        assume_yes=args.yes,
    )
    asyncio.run(wizard.run(request))


def cmd_feature(args: argparse.Namespace, config: ToolConfig) -> None:
    workspace = open_project(args.directory)
    print_step_header("Feature generator")
    detection = detect_project(workspace)
    show_detection(detection)

    store: bool | None = None
    persist: bool | None = None
    if args.skip_store:
        store = False
    elif args.store:
        store = True
        persist = args.store == "persist"
    if store and not detection.has_redux:
        print_warning("Redux is not set up; the slice is generated but not registered")

    service: HttpClientKind | None = None
    if args.service:
        service = choose_client(detection.http_client, HttpClientKind(args.service))

    options = collect_feature_options(
        args.name,
        detection,
        store=store,
        persist=persist,
        service=service,
        skip_service=args.skip_service,
        assume_yes=args.yes,
    )
    base_path = args.path or DEFAULT_FEATURES_PATH
    written = asyncio.run(
        CodeGenerator(workspace).generate_feature(
            options["name"],
            base_path=base_path,
            store=options["store"],
            persist=options["persist"],
            service=options["service"],
            register_store=detection.has_redux,
        )
    )
    _report_written(workspace, written)
    print_success(f"Feature '{options['name']}' created in {base_path.strip('/')}/{options['name']}")


def cmd_slice(args: argparse.Namespace, config: ToolConfig) -> None:
    workspace = open_project(args.directory)
    print_step_header("Slice generator")
    detection = detect_project(workspace)
    if not detection.has_redux:
        raise InputError(
            "Redux is not set up in this project; run `next-maker setup --feature redux` first"
        )
    name, persist = collect_slice_options(args.name, args.persist, assume_yes=args.yes)
    written = asyncio.run(
        CodeGenerator(workspace).generate_slice(name, custom_path=args.path, persist=persist)
    )
    _report_written(workspace, written)
    print_success(f"Slice '{name}' created and registered in rootReducer.ts")


def cmd_service(args: argparse.Namespace, config: ToolConfig) -> None:
    workspace = open_project(args.directory)
    print_step_header("Service generator")
    available = detect_project(workspace).http_client
    requested = HttpClientKind.from_flags(args.axios, args.fetch)
    requested_client = None if requested == HttpClientKind.NONE else requested
    # Fails fast when no client exists or the requested one is missing.
    choose_client(available, requested_client)

    name, requested_client = collect_service_options(
        args.name, available, requested_client, assume_yes=args.yes
    )
    client = choose_client(available, requested_client)
    path = asyncio.run(
        CodeGenerator(workspace).generate_service(name, client, custom_path=args.path)
    )
    _report_written(workspace, [path])
    print_success(f"Service '{name}' created using the {client.value} client")


def _report_written(workspace: Workspace, written: list[Path]) -> None:
    for path in written:
        print_info(f"  + {workspace.relative(path)}")


COMMANDS = {
    "init": cmd_init,
    "setup": cmd_setup,
    "feature": cmd_feature,
    "slice": cmd_slice,
    "service": cmd_service,
}


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``next-maker`` and ``python -m next_maker``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = build_config(args)
        COMMANDS[args.command](args, config)
    except NextMakerError as exc:
        print_error(f"Error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print()
        print_warning("Aborted")
        sys.exit(130)


if __name__ == "__main__":
    main()

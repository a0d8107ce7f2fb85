"""CLI entry point for building test apps and reporting their results."""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from medivac.config_loader import ConfigNotFoundError, load_test_config
from medivac.environment import TestEnvironment, parse_events
from medivac.generator import generate
from medivac.models.options import RuntimeOptions
from medivac.reporters import ApiReporter, ConsoleReporter, CrashReporter, MedicReporter
from medivac.scaffold import (
    CORE_PLUGINS,
    CordovaCLI,
    SetupError,
    check_workspace,
    scaffold_app,
)
from medivac.store import CouchDBStore

RESULT_TABLE_NAME = "medivac_results"
CRASH_TABLE_NAME = "medivac_crashes"

PLATFORM_FLAGS: Sequence[tuple[str, str, str, str]] = (
    ("-z", "--amazon", "amazon-fireos", "Add Amazon FireOS platform."),
    ("-n", "--android", "android", "Add Android platform."),
    ("-b", "--browser", "browser", "Add browser platform."),
    ("-i", "--ios", "ios", "Add iOS platform."),
    ("-q", "--blackberry10", "blackberry10", "Add BlackBerry 10 platform."),
    ("-k", "--wp8", "wp8", "Add Windows Phone 8 platform."),
    ("-m", "--windows8", "windows8", "Add Windows 8 (desktop) platform."),
    ("-w", "--windows", "windows", "Add Windows (universal) platform."),
)


def selected_platforms(args: argparse.Namespace) -> Sequence[str]:
    """Platforms switched on by the platform flags, in a fixed order."""
    return [
        platform
        for _, flag, platform, _ in PLATFORM_FLAGS
        if getattr(args, flag.removeprefix("--"))
    ]


def selected_plugins(core: bool, plugins: Sequence[str]) -> Sequence[str]:
    """Plugins to test: all core plugins, or those given on the command line.

    Raises:
        SetupError: If both ``--core`` and explicit plugins were given

    """
    if core and plugins:
        raise SetupError("Cannot specify plugins and --core at the same time.")
    return CORE_PLUGINS if core else plugins


async def run_build(
    base_dir: Path,
    name: str,
    platforms: Sequence[str],
    plugins: Sequence[str],
    options: RuntimeOptions,
    use_global: bool = False,
) -> int:
    """Build a test app and return exit code."""
    log = logging.getLogger("medivac")

    if not platforms:
        log.error("No platforms specified.")
        return 1
    if not plugins:
        log.error("No plugins specified.")
        return 1

    try:
        check_workspace(base_dir)
    except SetupError as e:
        log.error("%s", e)
        return 1

    app_dir = base_dir / name
    cli = CordovaCLI(base_dir=base_dir, use_global=use_global)
    log.debug("cli=%s app_dir=%s global=%s", cli.executable, app_dir, use_global)

    await scaffold_app(cli, app_dir, name, platforms, plugins)
    generate(app_dir, plugins, options)

    log.info("Done")
    log.info("To run the tests, run: cd %s && cordova run", name)
    return 0


def read_lines(source: Path) -> Iterable[str]:
    """Lines of an event stream file, or of stdin for ``-``."""
    if str(source) == "-":
        return sys.stdin
    return source.read_text(encoding="utf-8").splitlines()


async def run_report(
    config_path: Path, lines: Iterable[str], sha: str | None = None
) -> int:
    """Replay a recorded test run through the reporters and return exit code."""
    log = logging.getLogger("medivac")

    try:
        options = load_test_config(config_path)
    except (ConfigNotFoundError, FileNotFoundError, ValidationError) as e:
        log.error("Cannot load runtime options from %s: %s", config_path, e)
        return 1
    log.info("Reporting to %s", options.report_endpoint)

    async with CouchDBStore.from_config(options) as store:
        medic = MedicReporter(store=store, sha=sha)
        environment = TestEnvironment(crash_reporter=CrashReporter(store=store))
        environment.add_reporter(ConsoleReporter())
        environment.add_reporter(ApiReporter(store=store))
        environment.add_reporter(medic)

        try:
            environment.replay(parse_events(lines))
        except ValidationError as e:
            log.error("Invalid lifecycle event: %s", e)
            return 1
        finally:
            await store.drain()

    if not medic.state.reported:
        log.error("Test run did not finish")
        return 1

    print(json.dumps(format_output(medic), indent=2))
    return 1 if medic.state.failure_count else 0


def format_output(medic: MedicReporter) -> dict[str, Any]:
    """Format the outcome of a reported run for JSON output."""
    document = medic.build_document()
    return {
        "document_id": document.document_id,
        "specs": medic.state.specs_executed,
        "failures": medic.state.failure_count,
        "pending": medic.state.pending_count,
        "failed": [result.full_name for result in medic.state.results],
    }


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        description="Build Cordova test apps and report their results"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Be verbose.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Create a test app")
    for short, flag, _, help_text in PLATFORM_FLAGS:
        build.add_argument(short, flag, action="store_true", help=help_text)
    build.add_argument("plugins", nargs="*", help="Plugins to install and test")
    build.add_argument(
        "-c",
        "--couchdb-host",
        default="localhost",
        help="Hostname of the CouchDB server to record results",
    )
    build.add_argument(
        "-p", "--couchdb-port", default="5984", help="Port of the CouchDB server"
    )
    build.add_argument("--name", default="marine", help="Name of the test app")
    build.add_argument(
        "-r",
        "--result-id",
        default=None,
        help="String identifying the results in CouchDB (POST when omitted)",
    )
    build.add_argument(
        "--result-table", default=RESULT_TABLE_NAME, help="Database for results"
    )
    build.add_argument(
        "--crash-table", default=CRASH_TABLE_NAME, help="Database for crashes"
    )
    build.add_argument(
        "-a",
        "--core",
        action="store_true",
        help="Include all org.apache.cordova plugins; cannot be used with plugins",
    )
    build.add_argument(
        "-g",
        "--global",
        dest="use_global",
        action="store_true",
        help="Use the globally-installed cordova and registry packages "
        "instead of the local git checkouts",
    )
    build.add_argument(
        "--base-dir",
        type=Path,
        default=Path.cwd(),
        help="Directory containing cordova-medivac and the Cordova checkouts",
    )

    report = subparsers.add_parser("report", help="Report a recorded test run")
    report.add_argument(
        "--config",
        type=Path,
        required=True,
        help="Path to the app's generated test-config.js",
    )
    report.add_argument(
        "--events",
        type=Path,
        default=Path("-"),
        help="JSON lines file of lifecycle events ('-' for stdin)",
    )
    report.add_argument("--sha", default=None, help="Source revision under test")

    return parser


def main() -> None:
    """CLI entry point."""
    args = build_parser().parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    if args.command == "build":
        try:
            plugins = selected_plugins(args.core, args.plugins)
        except SetupError as e:
            logging.getLogger("medivac").error("%s", e)
            sys.exit(1)

        options = RuntimeOptions(
            result_id=args.result_id,
            report_endpoint=f"http://{args.couchdb_host}:{args.couchdb_port}",
            result_table_name=args.result_table,
            crash_table_name=args.crash_table,
        )
        exit_code = asyncio.run(
            run_build(
                base_dir=args.base_dir,
                name=args.name,
                platforms=selected_platforms(args),
                plugins=plugins,
                options=options,
                use_global=args.use_global,
            )
        )
    else:
        exit_code = asyncio.run(
            run_report(
                config_path=args.config,
                lines=read_lines(args.events),
                sha=args.sha,
            )
        )
    sys.exit(exit_code)


if __name__ == "__main__":  # pragma: no cover
    main()

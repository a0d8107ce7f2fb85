"""Create a Cordova test app and populate it with platforms and plugins."""

import asyncio
import logging
import shutil
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

CLI_NAME = "cordova"
MEDIVAC_DIR_NAME = "cordova-medivac"
TEMPLATE_DIR_NAME = "app-template"
APP_ID_PREFIX = "org.apache.cordova."

DEFAULT_PLUGINS: Sequence[str] = (
    "org.apache.cordova.device",
    "org.apache.cordova.console",
)

CORE_PLUGINS: Sequence[str] = (
    "org.apache.cordova.battery-status",
    "org.apache.cordova.camera",
    "org.apache.cordova.console",
    "org.apache.cordova.contacts",
    "org.apache.cordova.device",
    "org.apache.cordova.device-motion",
    "org.apache.cordova.device-orientation",
    "org.apache.cordova.dialogs",
    "org.apache.cordova.file",
    "org.apache.cordova.file-transfer",
    "org.apache.cordova.geolocation",
    "org.apache.cordova.globalization",
    "org.apache.cordova.inappbrowser",
    "org.apache.cordova.media",
    "org.apache.cordova.media-capture",
    "org.apache.cordova.network-information",
    "org.apache.cordova.splashscreen",
    "org.apache.cordova.statusbar",
    "org.apache.cordova.vibration",
)


class CommandError(Exception):
    """Raised when a Cordova CLI command exits with a non-zero status."""


class SetupError(Exception):
    """Raised when the workspace cannot host a new test app."""


@dataclass(frozen=True, kw_only=True)
class CordovaCLI:
    """Runs Cordova CLI commands, one at a time, failing on non-zero exit.

    With ``use_global`` the ``cordova`` executable on PATH and the published
    platforms and plugins are used; otherwise everything comes from the git
    checkouts next to the medivac directory in ``base_dir``.
    """

    base_dir: Path
    use_global: bool = False

    @property
    def executable(self) -> str:
        """Path or name of the Cordova CLI to run."""
        if self.use_global:
            return CLI_NAME
        return str(self.base_dir / "cordova-cli" / "bin" / CLI_NAME)

    async def run(self, *args: str, cwd: Path | None = None) -> None:
        """Run a CLI command and wait for it to finish.

        Raises:
            CommandError: If the command exits with a non-zero status

        """
        command = [self.executable, *args]
        log.debug("RUNNING: %s", " ".join(command))

        process = await asyncio.create_subprocess_exec(*command, cwd=cwd)
        await process.communicate()

        if process.returncode != 0:
            raise CommandError(
                f"Command failed with exit code {process.returncode}: "
                f"{' '.join(command)}"
            )

    async def create_app(self, app_dir: Path, name: str, template: Path) -> None:
        """Create a new app from the test app template."""
        await self.run(
            "create",
            str(app_dir),
            f"{APP_ID_PREFIX}{name}",
            name,
            f"--copy-from={template}",
        )

    async def install_platforms(
        self, app_dir: Path, platforms: Sequence[str]
    ) -> None:
        """Add each platform to the app, in order."""
        log.info("Installing platforms")
        for platform in platforms:
            source = platform
            if not self.use_global:
                source = str(self.base_dir / f"cordova-{platform}")
            await self.run("platform", "add", source, cwd=app_dir)

    async def install_plugins(self, app_dir: Path, plugins: Sequence[str]) -> None:
        """Add all plugins to the app in one command."""
        log.info("Installing plugins: %s", ", ".join(plugins))
        args = ["plugin", "add", *plugins]
        if not self.use_global:
            args += ["--searchpath", str(self.base_dir)]
        await self.run(*args, cwd=app_dir)


def template_dir(base_dir: Path) -> Path:
    """Location of the test app template."""
    return base_dir / MEDIVAC_DIR_NAME / TEMPLATE_DIR_NAME


def check_workspace(base_dir: Path) -> None:
    """Ensure the workspace holds the medivac checkout and its template.

    Raises:
        SetupError: If the template directory is missing

    """
    if not template_dir(base_dir).is_dir():
        raise SetupError(
            f"Template not found at {template_dir(base_dir)}; please run from the "
            f"directory containing {MEDIVAC_DIR_NAME}"
        )


def remove_app(app_dir: Path) -> None:
    """Delete a previously generated app.

    Raises:
        SetupError: If the directory could not be removed

    """
    if not app_dir.exists():
        return
    log.info("Removing old app at %s", app_dir)
    try:
        shutil.rmtree(app_dir)
    except OSError as e:
        raise SetupError(
            f"Failed to remove old app; please remove {app_dir} manually."
        ) from e


async def scaffold_app(
    cli: CordovaCLI,
    app_dir: Path,
    name: str,
    platforms: Sequence[str],
    plugins: Sequence[str],
) -> None:
    """Create a fresh app and install platforms, default and tested plugins."""
    remove_app(app_dir)

    log.info("Creating app %s", app_dir)
    await cli.create_app(app_dir, name, template_dir(cli.base_dir))

    await cli.install_platforms(app_dir, platforms)
    await cli.install_plugins(app_dir, DEFAULT_PLUGINS)
    await cli.install_plugins(app_dir, plugins)

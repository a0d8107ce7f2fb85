"""Tests for Cordova app scaffolding."""

from collections.abc import Generator
from pathlib import Path
from unittest.mock import AsyncMock, Mock, call, patch

import pytest

from medivac.scaffold import (
    DEFAULT_PLUGINS,
    CommandError,
    CordovaCLI,
    SetupError,
    check_workspace,
    remove_app,
    scaffold_app,
    template_dir,
)


def process(returncode: int = 0) -> Mock:
    """Create a finished subprocess mock."""
    proc = Mock()
    proc.communicate = AsyncMock(return_value=(None, None))
    proc.returncode = returncode
    return proc


@pytest.fixture
def exec_mock() -> Generator[AsyncMock, None, None]:
    """Patch subprocess creation with successful processes."""
    with patch(
        "medivac.scaffold.asyncio.create_subprocess_exec",
        new_callable=AsyncMock,
        side_effect=lambda *args, **kwargs: process(),
    ) as mock:
        yield mock


class TestCordovaCLI:
    """Tests for CordovaCLI."""

    def test_uses_local_checkout_by_default(self) -> None:
        """Runs the CLI from the cordova-cli checkout."""
        cli = CordovaCLI(base_dir=Path("/work"))

        assert cli.executable == "/work/cordova-cli/bin/cordova"

    def test_uses_global_cli(self) -> None:
        """Runs the CLI from PATH in global mode."""
        assert CordovaCLI(base_dir=Path("/work"), use_global=True).executable == (
            "cordova"
        )

    async def test_raises_on_non_zero_exit(self) -> None:
        """Fails the whole build when a command fails."""
        cli = CordovaCLI(base_dir=Path("/work"))

        with patch(
            "medivac.scaffold.asyncio.create_subprocess_exec",
            new_callable=AsyncMock,
            return_value=process(returncode=2),
        ):
            with pytest.raises(CommandError, match="exit code 2"):
                await cli.run("platform", "add", "android")

    async def test_installs_local_platforms(self, exec_mock: AsyncMock) -> None:
        """Adds each platform from its sibling checkout."""
        cli = CordovaCLI(base_dir=Path("/work"))

        await cli.install_platforms(Path("/work/app"), ["android", "ios"])

        assert exec_mock.call_args_list == [
            call(
                "/work/cordova-cli/bin/cordova",
                "platform",
                "add",
                "/work/cordova-android",
                cwd=Path("/work/app"),
            ),
            call(
                "/work/cordova-cli/bin/cordova",
                "platform",
                "add",
                "/work/cordova-ios",
                cwd=Path("/work/app"),
            ),
        ]

    async def test_installs_global_plugins_without_searchpath(
        self, exec_mock: AsyncMock
    ) -> None:
        """Adds plugins from the registry in global mode."""
        cli = CordovaCLI(base_dir=Path("/work"), use_global=True)

        await cli.install_plugins(Path("/work/app"), ["org.a", "org.b"])

        exec_mock.assert_called_once_with(
            "cordova", "plugin", "add", "org.a", "org.b", cwd=Path("/work/app")
        )

    async def test_installs_local_plugins_with_searchpath(
        self, exec_mock: AsyncMock
    ) -> None:
        """Searches the workspace for plugins by default."""
        cli = CordovaCLI(base_dir=Path("/work"))

        await cli.install_plugins(Path("/work/app"), ["org.a"])

        assert exec_mock.call_args.args[1:] == (
            "plugin",
            "add",
            "org.a",
            "--searchpath",
            "/work",
        )


class TestWorkspace:
    """Tests for workspace checks and cleanup."""

    def test_check_workspace_requires_template(self, tmp_path: Path) -> None:
        """Raises when the template directory is missing."""
        with pytest.raises(SetupError, match="Template not found"):
            check_workspace(tmp_path)

    def test_check_workspace_accepts_template(self, tmp_path: Path) -> None:
        """Accepts a workspace holding the template."""
        template_dir(tmp_path).mkdir(parents=True)

        check_workspace(tmp_path)

    def test_remove_app_deletes_old_app(self, tmp_path: Path) -> None:
        """Deletes a previously generated app."""
        app_dir = tmp_path / "marine"
        (app_dir / "www").mkdir(parents=True)

        remove_app(app_dir)

        assert not app_dir.exists()

    def test_remove_app_reports_failure(self, tmp_path: Path) -> None:
        """Asks for manual removal when deleting fails."""
        app_dir = tmp_path / "marine"
        app_dir.mkdir()

        with patch("medivac.scaffold.shutil.rmtree", side_effect=OSError("busy")):
            with pytest.raises(SetupError, match="remove .* manually"):
                remove_app(app_dir)


async def test_scaffold_app_runs_steps_in_order(
    tmp_path: Path, exec_mock: AsyncMock
) -> None:
    """Creates the app, then adds platforms, default and tested plugins."""
    cli = CordovaCLI(base_dir=tmp_path, use_global=True)
    app_dir = tmp_path / "marine"
    app_dir.mkdir()

    await scaffold_app(cli, app_dir, "marine", ["android"], ["org.apache.cordova.file"])

    commands = [c.args[1:] for c in exec_mock.call_args_list]
    assert commands[0][:4] == (
        "create",
        str(app_dir),
        "org.apache.cordova.marine",
        "marine",
    )
    assert commands[1:] == [
        ("platform", "add", "android"),
        ("plugin", "add", *DEFAULT_PLUGINS),
        ("plugin", "add", "org.apache.cordova.file"),
    ]
    assert exec_mock.call_args_list[0].args[-1] == (
        f"--copy-from={template_dir(tmp_path)}"
    )
    assert not app_dir.exists()

"""Fixtures for integration tests."""

import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from medivac.scaffold import template_dir

FAKE_CORDOVA = """#!/bin/sh
echo "$@" >> "{log}"
case "$1" in
  create)
    mkdir -p "$2" && cp -R "${{5#--copy-from=}}/." "$2/"
    ;;
  platform)
    [ "$3" = "{base}/cordova-broken" ] && exit 3
    mkdir -p platforms
    ;;
  plugin)
    shift 2
    for plugin in "$@"; do
      [ "$plugin" = "--searchpath" ] && break
      if [ -d "{base}/$plugin" ]; then
        mkdir -p plugins && cp -R "{base}/$plugin" "plugins/$plugin"
      fi
    done
    ;;
esac
"""

INDEX_HTML = """<!DOCTYPE html>
<html>
  <head>
    <script type="text/javascript" src="lib/jasmine-2.0.0/boot.js"></script>
    <!-- {{ SPECS }} -->
  </head>
  <body></body>
</html>
"""

CONFIG_XML = """<?xml version='1.0' encoding='utf-8'?>
<widget id="org.apache.cordova.marine" version="0.0.1"
        xmlns="http://www.w3.org/ns/widgets">
    <name>marine</name>
    <content src="index.html" />
</widget>
"""


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Create a workspace with a template and a fake local Cordova CLI."""
    template = template_dir(tmp_path)
    (template / "www" / "js").mkdir(parents=True)
    (template / "www" / "index.html").write_text(INDEX_HTML)
    (template / "www" / "js" / "test-config.js").write_text("")
    (template / "config.xml").write_text(CONFIG_XML)

    cli = tmp_path / "cordova-cli" / "bin" / "cordova"
    cli.parent.mkdir(parents=True)
    cli.write_text(FAKE_CORDOVA.format(log=tmp_path / "cordova.log", base=tmp_path))
    cli.chmod(cli.stat().st_mode | stat.S_IEXEC)
    return tmp_path


@pytest.fixture
def add_local_plugin(workspace: Path) -> Callable[[str, str | None], None]:
    """Return a function creating plugin checkouts in the workspace."""

    def _add(plugin_id: str, tests: str | None) -> None:
        plugin_dir = workspace / plugin_id
        plugin_dir.mkdir()
        (plugin_dir / "plugin.xml").write_text("<plugin />\n")
        if tests is not None:
            (plugin_dir / "tests").mkdir()
            (plugin_dir / "tests" / "tests.js").write_text(tests)

    return _add

"""Generate the spec files, manifest and config of a scaffolded test app.

All operations expect a freshly created app (see ``medivac.scaffold``) and
raise ``OSError`` on any filesystem failure; a partially written app is left
as-is and must be regenerated from the template.
"""

import io
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Sequence
from html.parser import HTMLParser
from pathlib import Path

from medivac.models.options import RuntimeOptions, TestFileRecord
from medivac.transformer import transform_test

log = logging.getLogger(__name__)

ENCODING = "utf-8"
PLACEHOLDER = "<!-- {{ SPECS }} -->"
CONFIG_VAR_NAME = "TEST_CONFIG"
SPEC_SUFFIX = "-tests.js"
RESERVED_PREFIX = re.compile(r"ns\d+$")


def spec_dir(app_dir: Path) -> Path:
    """Directory of the app holding the installed specs."""
    return app_dir / "www" / "js" / "spec"


def find_test_files(
    app_dir: Path, plugin_ids: Sequence[str]
) -> Sequence[TestFileRecord]:
    """Probe each installed plugin for a ``tests/tests.js`` file, in order."""
    records: list[TestFileRecord] = []
    for plugin_id in plugin_ids:
        source_path = app_dir / "plugins" / plugin_id / "tests" / "tests.js"
        records.append(
            TestFileRecord(
                plugin=plugin_id,
                source_path=source_path,
                exists=source_path.is_file(),
            )
        )
    return records


def install_tests(app_dir: Path, plugin_ids: Sequence[str]) -> Sequence[Path]:
    """Copy and transform each plugin's tests into the app's spec directory.

    Plugins without a test file are skipped with a notice.

    Returns:
        Paths of the spec files written, in plugin order

    """
    destination_dir = spec_dir(app_dir)
    destination_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for record in find_test_files(app_dir, plugin_ids):
        if not record.exists:
            log.info('No tests found for "%s"', record.plugin)
            continue

        log.info('Installing tests for "%s"', record.plugin)
        destination = destination_dir / f"{record.plugin}{SPEC_SUFFIX}"
        log.debug("%s -> %s", record.source_path, destination)

        code = record.source_path.read_text(encoding=ENCODING)
        destination.write_text(transform_test(code), encoding=ENCODING)
        written.append(destination)

    return written


def list_spec_files(app_dir: Path) -> Sequence[str]:
    """List the spec files currently installed in the app, sorted by name."""
    directory = spec_dir(app_dir)
    if not directory.is_dir():
        return []
    return sorted(path.name for path in directory.iterdir() if path.is_file())


def script_tags(spec_files: Iterable[str]) -> Sequence[str]:
    """Build one script include per spec file."""
    return [
        f'<script type="text/javascript" src="js/spec/{spec_file}"></script>'
        for spec_file in spec_files
    ]


class _PlaceholderFinder(HTMLParser):
    """Record the position of the first comment equal to the spec placeholder."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=False)
        self.position: tuple[int, int] | None = None

    def handle_comment(self, data: str) -> None:
        if self.position is None and f"<!--{data}-->" == PLACEHOLDER:
            self.position = self.getpos()


def find_placeholder(html: str) -> int | None:
    """Return the offset of the spec placeholder comment, if the page has one.

    Only a real comment counts; the token inside a script or attribute value
    is ignored.
    """
    finder = _PlaceholderFinder()
    finder.feed(html)
    finder.close()
    if finder.position is None:
        return None

    line, column = finder.position
    line_start = sum(len(text) + 1 for text in html.split("\n")[: line - 1])
    offset = line_start + column
    return offset if html.startswith(PLACEHOLDER, offset) else None


def rewrite_index(app_dir: Path, spec_files: Sequence[str]) -> bool:
    """Replace the placeholder in ``www/index.html`` with the spec includes.

    Returns:
        True if the placeholder was found and replaced

    """
    index_html = app_dir / "www" / "index.html"
    html = index_html.read_text(encoding=ENCODING)

    offset = find_placeholder(html)
    if offset is None:
        log.warning("No spec placeholder found in %s", index_html)
        return False

    tags = script_tags(spec_files)
    for tag in tags:
        log.debug(tag)

    html = html[:offset] + "\n".join(tags) + html[offset + len(PLACEHOLDER) :]
    index_html.write_text(html, encoding=ENCODING)
    return True


def _register_namespaces(content: str) -> None:
    """Keep the manifest's namespace prefixes when it is serialized again.

    ElementTree keeps one prefix map for the whole process, so a prefix
    registered here stays registered for later manifests too. Prefixes of the
    form ``ns<digits>`` are reserved by ElementTree and left for it to assign.
    """
    for _, (prefix, uri) in ET.iterparse(io.StringIO(content), events=("start-ns",)):
        if RESERVED_PREFIX.match(prefix):
            log.debug("Not registering reserved namespace prefix %s", prefix)
            continue
        ET.register_namespace(prefix, uri)


def add_whitelist_rule(app_dir: Path, options: RuntimeOptions) -> str:
    """Append an access rule for the report endpoint to ``config.xml``.

    Must run on a pristine manifest: every call appends another rule.

    Returns:
        The origin that was whitelisted

    """
    config_xml = app_dir / "config.xml"
    content = config_xml.read_text(encoding=ENCODING)

    _register_namespaces(content)
    parser = ET.XMLParser(target=ET.TreeBuilder(insert_comments=True))
    root = ET.fromstring(content, parser=parser)

    namespace = root.tag[1:].partition("}")[0] if root.tag.startswith("{") else ""
    tag = f"{{{namespace}}}access" if namespace else "access"

    origin = options.whitelist_origin
    log.info("Adding whitelist rule: %s", origin)

    rule = ET.SubElement(root, tag, origin=origin)
    if len(root) > 1:
        previous = root[-2]
        rule.tail = previous.tail
        previous.tail = root.text
    else:
        rule.tail = "\n"

    ET.ElementTree(root).write(config_xml, encoding=ENCODING, xml_declaration=True)
    return origin


def config_assignment(options: RuntimeOptions) -> str:
    """Render the runtime options as the statement the app evaluates."""
    return f"var {CONFIG_VAR_NAME} = {options.to_js_json()};"


def write_test_config(app_dir: Path, options: RuntimeOptions) -> Path:
    """Append the runtime options to ``www/js/test-config.js``."""
    config_js = app_dir / "www" / "js" / "test-config.js"
    existing = config_js.read_text(encoding=ENCODING) if config_js.exists() else ""
    separator = "\n" if existing and not existing.endswith("\n") else ""

    assignment = config_assignment(options)
    log.info("Passing this config to the app: %s", options.to_js_json())

    config_js.parent.mkdir(parents=True, exist_ok=True)
    with config_js.open("a", encoding=ENCODING) as handle:
        handle.write(f"{separator}{assignment}\n")
    return config_js


def generate(
    app_dir: Path, plugin_ids: Sequence[str], options: RuntimeOptions
) -> None:
    """Install tests, wire them into the app, and configure result reporting."""
    log.info("Installing tests")
    install_tests(app_dir, plugin_ids)

    log.info("Modifying app's index.html")
    rewrite_index(app_dir, list_spec_files(app_dir))

    log.info("Modifying app's config.xml")
    add_whitelist_rule(app_dir, options)

    log.info("Modifying app's test-config.js")
    write_test_config(app_dir, options)

"""Read the runtime options back from a generated ``test-config.js``."""

import re
from pathlib import Path

from medivac.generator import CONFIG_VAR_NAME, ENCODING
from medivac.models.options import RuntimeOptions

ASSIGNMENT = re.compile(
    rf"^\s*var\s+{CONFIG_VAR_NAME}\s*=\s*(?P<json>\{{.*?\}})\s*;\s*$", re.MULTILINE
)


class ConfigNotFoundError(Exception):
    """Raised when a config file holds no runtime options assignment."""


def parse_test_config(content: str) -> RuntimeOptions:
    """Parse runtime options from the contents of a ``test-config.js``.

    The file is append-only, so when several assignments exist the last one
    wins, as it does when the app evaluates the script.
    """
    matches = list(ASSIGNMENT.finditer(content))
    if not matches:
        raise ConfigNotFoundError(f"No '{CONFIG_VAR_NAME}' assignment found")
    return RuntimeOptions.model_validate_json(matches[-1].group("json"))


def load_test_config(path: Path) -> RuntimeOptions:
    """Load runtime options from a ``test-config.js`` file."""
    return parse_test_config(path.read_text(encoding=ENCODING))

"""Convert legacy plugin test files into standalone runnable specs."""

import re

AUTO_TESTS_MARKER = re.compile(r"exports\.defineAutoTests")

MANUAL_TESTS_TAIL = re.compile(
    r"exports\.defineManualTests.*", re.IGNORECASE | re.DOTALL
)
AUTO_TESTS_LINE = re.compile(r"exports\.defineAutoTests[^\r\n\u2028\u2029]*")
LAST_BRACE_TAIL = re.compile(r"\}[^}]*\Z")


def transform_test(code: str) -> str:
    """Turn a plugin's ``tests.js`` into a spec the runner can load directly.

    Legacy test files wrap their specs in ``exports.defineAutoTests = function
    () { ... };`` and optionally follow it with ``exports.defineManualTests``.
    For those files the following rewrites are applied, in this order:

    1. everything from the ``defineManualTests`` declaration to the end of
       the file is removed;
    2. the rest of the line declaring ``defineAutoTests`` is removed;
    3. the last ``}`` in the file and everything after it is removed.

    Step 3 is not brace-aware: it closes the ``defineAutoTests`` wrapper only
    when that wrapper's brace is the last one left after step 1.

    Files without the ``defineAutoTests`` marker are returned unchanged.
    """
    if not AUTO_TESTS_MARKER.search(code):
        return code

    code = MANUAL_TESTS_TAIL.sub("", code)
    code = AUTO_TESTS_LINE.sub("", code, count=1)
    return LAST_BRACE_TAIL.sub("", code, count=1)

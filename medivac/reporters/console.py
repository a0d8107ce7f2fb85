"""Reporter logging the progress of a run."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from medivac.models.results import RunStartedInfo, SpecResult, SpecStatus
from medivac.reporters.base import Reporter

log = logging.getLogger(__name__)

STATUS_SYMBOLS: Mapping[SpecStatus, str] = {
    "passed": ".",
    "failed": "F",
    "pending": "*",
    "disabled": "-",
}


@dataclass(kw_only=True)
class ConsoleReporter(Reporter):
    """Logs one line per spec and a closing count."""

    executed: int = 0
    failed: int = 0
    pending: int = 0

    def run_started(self, info: RunStartedInfo) -> None:
        self.executed = self.failed = self.pending = 0
        log.info("Running %d spec(s)", info.total_specs_defined)

    def spec_done(self, result: SpecResult) -> None:
        log.info("%s %s", STATUS_SYMBOLS[result.status], result.full_name)
        if result.status == "disabled":
            return
        self.executed += 1
        if result.status == "pending":
            self.pending += 1
        if result.status == "failed":
            self.failed += 1
            for expectation in result.failed_expectations:
                log.info("  Message: %s", expectation.message)

    def run_done(self) -> None:
        log.info(
            "%d spec(s), %d failure(s), %d pending spec(s)",
            self.executed,
            self.failed,
            self.pending,
        )

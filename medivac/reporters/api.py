"""Reporter collecting every suite and spec result of a run."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

from medivac.models.results import RunStartedInfo, SpecResult, SuiteResult
from medivac.reporters.base import Reporter
from medivac.store import CouchDBStore

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class ApiReporter(Reporter):
    """Keeps the full result tree and reports it to the result table."""

    store: CouchDBStore
    clock: Callable[[], float] = time.time
    timer: Callable[[], float] = time.monotonic
    status: Literal["loaded", "started", "done"] = "loaded"
    suites: dict[str, SuiteResult] = field(default_factory=dict)
    specs: list[SpecResult] = field(default_factory=list)
    execution_time: float = 0.0
    started_at: float = 0.0
    delivery: asyncio.Task[None] | None = field(default=None, repr=False)

    def run_started(self, info: RunStartedInfo) -> None:
        self.status = "started"
        self.suites = {}
        self.specs = []
        self.started_at = self.timer()

    def suite_started(self, result: SuiteResult) -> None:
        self.suites[result.id] = result

    def suite_done(self, result: SuiteResult) -> None:
        self.suites[result.id] = result

    def spec_done(self, result: SpecResult) -> None:
        self.specs.append(result)

    def results(self) -> dict[str, Any]:
        """Package the collected results as a result-table document."""
        return {
            "timestamp": int(self.clock() * 1000),
            "status": self.status,
            "suites": {
                suite_id: suite.model_dump(mode="json", by_alias=True)
                for suite_id, suite in self.suites.items()
            },
            "specs": [
                spec.model_dump(mode="json", by_alias=True) for spec in self.specs
            ],
            "executionTime": self.execution_time,
        }

    def run_done(self) -> None:
        if self.status == "done":
            log.warning("Results already reported, not sending them again")
            return
        self.status = "done"
        self.execution_time = (self.timer() - self.started_at) * 1000
        self.delivery = self.store.report(
            self.results(), self.store.options.result_table_name
        )

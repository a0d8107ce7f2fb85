"""Reporter aggregating a run into one summary document for CouchDB."""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from medivac.models.device import DeviceReady
from medivac.models.results import (
    MobileSpecSummary,
    ReportDocument,
    RunStartedInfo,
    RunSummary,
    SpecResult,
)
from medivac.reporters.base import Reporter
from medivac.store import CouchDBStore, encode_uri_component

log = logging.getLogger(__name__)

RESULTS_TABLE_NAME = "mobilespec_results"
DOC_ID_SEPARATOR = "__"
MISSING_ID_PART = "none"


def document_id(sha: str | None, version: str, model: str) -> str:
    """Derive the id a run summary is stored under.

    The same (revision, version, model) triple always yields the same id, so
    rerunning on an unchanged device and revision overwrites the document.
    A missing revision or model is spelled ``none``, not the ``undefined`` older
    JavaScript reporters wrote, so their documents are never overwritten.
    """
    parts: Sequence[str | None] = (sha, version, model)
    return DOC_ID_SEPARATOR.join(
        encode_uri_component(part if part is not None else MISSING_ID_PART)
        for part in parts
    )


@dataclass(kw_only=True)
class ReporterState:
    """Counters and failed results accumulated over a single run."""

    total_specs_defined: int = 0
    specs_executed: int = 0
    failure_count: int = 0
    pending_count: int = 0
    results: list[SpecResult] = field(default_factory=list)
    started_at: float = 0.0
    reported: bool = False


@dataclass(kw_only=True)
class MedicReporter(Reporter):
    """Counts executed and failed specs and PUTs one summary per run."""

    store: CouchDBStore
    sha: str | None = None
    clock: Callable[[], float] = time.time
    timer: Callable[[], float] = time.monotonic
    ready: DeviceReady = field(default_factory=DeviceReady)
    state: ReporterState = field(default_factory=ReporterState)
    delivery: asyncio.Task[None] | None = field(default=None, repr=False)

    def initialize(self, ready: DeviceReady) -> None:
        """Remember the device the run executes on."""
        self.ready = ready

    def run_started(self, info: RunStartedInfo) -> None:
        """Reset the state and start timing the run."""
        self.state = ReporterState(
            total_specs_defined=info.total_specs_defined,
            started_at=self.timer(),
        )

    def spec_done(self, result: SpecResult) -> None:
        """Count the spec and keep it if it failed."""
        if result.status != "disabled":
            self.state.specs_executed += 1
        if result.status == "failed":
            self.state.failure_count += 1
            self.state.results.append(result)
        if result.status == "pending":
            self.state.pending_count += 1

    def build_summary(self) -> RunSummary:
        """Assemble the summary of the run so far."""
        return RunSummary(
            mobilespec=MobileSpecSummary(
                specs=self.state.specs_executed,
                failures=self.state.failure_count,
                results=list(self.state.results),
            ),
            platform=self.ready.platform,
            version=self.ready.app_version,
            sha=self.sha,
            timestamp=int(self.clock()),
            model=self.ready.device_model,
        )

    def build_document(self) -> ReportDocument:
        """Pair the run summary with its document id."""
        summary = self.build_summary()
        return ReportDocument(
            document_id=document_id(summary.sha, summary.version, summary.model),
            summary=summary,
        )

    def run_done(self) -> None:
        """Send the summary; a run is only ever reported once."""
        if self.state.reported:
            log.warning("Run already reported, not sending it again")
            return
        self.state.reported = True

        document = self.build_document()
        log.info(
            "Posting tests: %d spec(s), %d failure(s), %d pending in %.2fs",
            self.state.specs_executed,
            self.state.failure_count,
            self.state.pending_count,
            self.timer() - self.state.started_at,
        )
        self.delivery = self.store.put(
            RESULTS_TABLE_NAME, document.document_id, document.to_json()
        )

        if self.state.failure_count == 0:
            log.info("[[[ TEST OK ]]]")
        else:
            log.info("[[[ TEST FAILED ]]]")
        log.info(">>> DONE <<<")

"""Drive reporters from the lifecycle events of an on-device test run."""

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from medivac.models.device import DeviceReady
from medivac.models.events import (
    DeviceReadyEvent,
    ErrorEvent,
    JasmineDoneEvent,
    JasmineStartedEvent,
    LifecycleEvent,
    SpecDoneEvent,
    SpecStartedEvent,
    SuiteDoneEvent,
    SuiteStartedEvent,
    parse_event,
)
from medivac.reporters.base import Reporter
from medivac.reporters.crash import CrashReporter

log = logging.getLogger(__name__)


def parse_events(lines: Iterable[str]) -> Iterator[LifecycleEvent]:
    """Parse a stream of JSON lines into lifecycle events, skipping blanks."""
    for line in lines:
        if line.strip():
            yield parse_event(line)


@dataclass(kw_only=True)
class TestEnvironment:
    """Fans lifecycle events out to every registered reporter.

    Nothing runs before the host signals that the device is ready: lifecycle
    events and errors arriving earlier are dropped. Once ready, uncaught
    errors go to the crash reporter.
    """

    __test__ = False

    reporters: list[Reporter] = field(default_factory=list)
    crash_reporter: CrashReporter | None = None
    ready: DeviceReady | None = None

    def add_reporter(self, reporter: Reporter) -> None:
        """Register a reporter; reporters are notified in registration order."""
        self.reporters.append(reporter)

    def device_ready(self, ready: DeviceReady) -> None:
        """Mark the device ready and initialize the reporters."""
        if self.ready is not None:
            log.warning("Device already ready, ignoring repeated signal")
            return
        self.ready = ready
        log.info(
            "Device ready: platform=%s model=%s version=%s",
            ready.platform,
            ready.device_model,
            ready.app_version,
        )
        for reporter in self.reporters:
            reporter.initialize(ready)

    def on_error(self, error: Mapping[str, Any]) -> None:
        """Hand an uncaught error to the crash reporter."""
        log.error("Uncaught error: %s", error)
        if self.crash_reporter is not None:
            self.crash_reporter.report_crash(error)

    def dispatch(self, event: LifecycleEvent) -> None:
        """Deliver one lifecycle event to the reporters."""
        if isinstance(event, DeviceReadyEvent):
            self.device_ready(event)
            return

        if self.ready is None:
            log.warning(
                "Dropping %s event received before device ready", event.event
            )
            return

        if isinstance(event, ErrorEvent):
            self.on_error(event.error)
            return

        for reporter in self.reporters:
            if isinstance(event, JasmineStartedEvent):
                reporter.run_started(event.info)
            elif isinstance(event, SuiteStartedEvent):
                reporter.suite_started(event.result)
            elif isinstance(event, SpecStartedEvent):
                reporter.spec_started(event.result)
            elif isinstance(event, SpecDoneEvent):
                reporter.spec_done(event.result)
            elif isinstance(event, SuiteDoneEvent):
                reporter.suite_done(event.result)
            elif isinstance(event, JasmineDoneEvent):
                reporter.run_done()

    def replay(self, events: Iterable[LifecycleEvent]) -> Sequence[LifecycleEvent]:
        """Dispatch a recorded event stream in order.

        Returns:
            The events that were dispatched

        """
        dispatched: list[LifecycleEvent] = []
        for event in events:
            self.dispatch(event)
            dispatched.append(event)
        return dispatched

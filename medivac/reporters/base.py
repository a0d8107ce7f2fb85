"""Abstract base class for test run reporters."""

from abc import ABC, abstractmethod

from medivac.models.device import DeviceReady
from medivac.models.results import RunStartedInfo, SpecResult, SuiteResult


class Reporter(ABC):
    """Listener for the lifecycle of a single test run.

    The test environment calls these methods in the order::

        run_started -> (suite_started -> (spec_started -> spec_done)*
                        -> suite_done)* -> run_done

    Before the run, ``initialize`` is called once the host device is ready.
    Everything except ``spec_done`` and ``run_done`` defaults to a no-op.
    """

    def initialize(self, ready: DeviceReady) -> None:
        """Called once the host runtime signalled that the device is ready."""

    def run_started(self, info: RunStartedInfo) -> None:
        """Called once before any suite runs."""

    def suite_started(self, result: SuiteResult) -> None:
        """Called when a suite starts."""

    def spec_started(self, result: SpecResult) -> None:
        """Called when a spec starts."""

    @abstractmethod
    def spec_done(self, result: SpecResult) -> None:
        """Called once per spec with its final result."""

    def suite_done(self, result: SuiteResult) -> None:
        """Called when a suite finishes."""

    @abstractmethod
    def run_done(self) -> None:
        """Called once after the last suite finished."""

"""Models for lifecycle events streamed from the test environment."""

from typing import Annotated, Any, Literal

from pydantic import Field, TypeAdapter

from medivac.models.base import Model
from medivac.models.device import DeviceReady
from medivac.models.results import RunStartedInfo, SpecResult, SuiteResult


class DeviceReadyEvent(DeviceReady):
    """The host runtime is ready; test execution may begin."""

    event: Literal["deviceReady"]


class JasmineStartedEvent(Model):
    """A run has started."""

    event: Literal["jasmineStarted"]
    info: RunStartedInfo = Field(default_factory=RunStartedInfo)


class SuiteStartedEvent(Model):
    """A suite has started."""

    event: Literal["suiteStarted"]
    result: SuiteResult


class SpecStartedEvent(Model):
    """A spec has started."""

    event: Literal["specStarted"]
    result: SpecResult


class SpecDoneEvent(Model):
    """A spec has finished."""

    event: Literal["specDone"]
    result: SpecResult


class SuiteDoneEvent(Model):
    """A suite has finished."""

    event: Literal["suiteDone"]
    result: SuiteResult


class JasmineDoneEvent(Model):
    """A run has finished."""

    event: Literal["jasmineDone"]


class ErrorEvent(Model):
    """An exception reached the top of the execution environment."""

    event: Literal["error"]
    error: dict[str, Any] = Field(default_factory=dict)


LifecycleEvent = Annotated[
    DeviceReadyEvent
    | JasmineStartedEvent
    | SuiteStartedEvent
    | SpecStartedEvent
    | SpecDoneEvent
    | SuiteDoneEvent
    | JasmineDoneEvent
    | ErrorEvent,
    Field(discriminator="event"),
]

lifecycle_event_adapter: TypeAdapter[Any] = TypeAdapter(LifecycleEvent)


def parse_event(line: str) -> LifecycleEvent:
    """Parse one JSON-encoded lifecycle event."""
    return lifecycle_event_adapter.validate_json(line)

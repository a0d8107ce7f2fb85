"""Models for test results streamed from the on-device test environment."""

from collections.abc import Sequence
from typing import Literal, TypeAlias

from pydantic import Field

from medivac.models.base import Model

SpecStatus: TypeAlias = Literal["passed", "failed", "pending", "disabled"]


class FailedExpectation(Model):
    """A single failed expectation inside a spec."""

    matcher_name: str = Field(default="", alias="matcherName")
    message: str = ""
    stack: str = ""
    passed: bool = False


class SpecResult(Model):
    """Result of one spec, emitted once by the test environment."""

    id: str = ""
    description: str = ""
    full_name: str = Field(..., alias="fullName")
    status: SpecStatus
    failed_expectations: Sequence[FailedExpectation] = Field(
        default_factory=list, alias="failedExpectations"
    )


class SuiteResult(Model):
    """Result of one suite."""

    id: str = ""
    description: str = ""
    full_name: str = Field(..., alias="fullName")
    status: str = ""


class RunStartedInfo(Model):
    """Metadata handed over when a run starts."""

    total_specs_defined: int = Field(default=0, alias="totalSpecsDefined")


class MobileSpecSummary(Model):
    """Counts and failed results of a single run."""

    specs: int = Field(..., ge=0, description="Specs executed (not disabled)")
    failures: int = Field(..., ge=0, description="Specs with status 'failed'")
    results: Sequence[SpecResult] = Field(
        default_factory=list, description="Failed spec results, in order received"
    )


class RunSummary(Model):
    """Wire form of a finished run as stored in the results database."""

    mobilespec: MobileSpecSummary
    platform: str
    version: str
    sha: str | None = None
    timestamp: int
    model: str

    @property
    def specs_executed(self) -> int:
        """Number of specs that were not disabled."""
        return self.mobilespec.specs

    @property
    def failures(self) -> int:
        """Number of failed specs."""
        return self.mobilespec.failures


class ReportDocument(Model):
    """A run summary paired with the document id it is stored under."""

    document_id: str
    summary: RunSummary

    def to_json(self) -> str:
        """Serialize the summary as sent over the wire."""
        return self.summary.model_dump_json(by_alias=True)

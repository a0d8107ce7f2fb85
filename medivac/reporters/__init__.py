"""Reporters listening to the lifecycle of a test run."""

from medivac.reporters.api import ApiReporter
from medivac.reporters.base import Reporter
from medivac.reporters.console import ConsoleReporter
from medivac.reporters.crash import CrashReporter
from medivac.reporters.medic import MedicReporter

__all__ = [
    "ApiReporter",
    "ConsoleReporter",
    "CrashReporter",
    "MedicReporter",
    "Reporter",
]

"""Reporting of uncaught exceptions as crash documents."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from medivac.store import CouchDBStore

log = logging.getLogger(__name__)


@dataclass(kw_only=True)
class CrashReporter:
    """Sends each uncaught exception to the crash table.

    Crashes of one run are told apart by a ``-crash-<n>`` suffix on the
    configured result id, counting from zero.
    """

    store: CouchDBStore
    crash_number: int = 0
    deliveries: list[asyncio.Task[None]] = field(default_factory=list, repr=False)

    def report_crash(self, error: Mapping[str, Any]) -> None:
        """Report a crash; failing to do so is logged and never raised."""
        id_suffix = f"-crash-{self.crash_number}"
        self.crash_number += 1

        try:
            task = self.store.report(
                error, self.store.options.crash_table_name, id_suffix
            )
        except Exception:
            log.exception("FATAL: Crashed while reporting a crash!")
            return
        self.deliveries.append(task)

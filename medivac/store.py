"""Client for the CouchDB server collecting test results and crashes."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator, Coroutine, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Literal, TypeAlias
from urllib.parse import quote

import aiohttp
from yarl import URL

from medivac.models.options import RuntimeOptions

log = logging.getLogger(__name__)

HEADERS: Mapping[str, str] = {"Content-Type": "application/json"}

Document: TypeAlias = Mapping[str, Any] | str


def encode_uri_component(value: str) -> str:
    """Percent-encode a value the way JavaScript's ``encodeURIComponent`` does."""
    return quote(value, safe="!~*'()")


@dataclass(frozen=True, kw_only=True)
class CouchDBStore:
    """Delivers result documents to CouchDB at most once each.

    Every send runs as a detached task: callers never wait for it, and its
    outcome is only logged. Nothing is retried and no timeout is applied.
    """

    options: RuntimeOptions
    session: aiohttp.ClientSession = field(repr=False)
    _tasks: set[asyncio.Task[None]] = field(default_factory=set, repr=False)

    @classmethod
    @asynccontextmanager
    async def from_config(
        cls, options: RuntimeOptions
    ) -> AsyncGenerator["CouchDBStore", None]:
        """Create store with managed session lifecycle."""
        async with aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=None),
        ) as session:
            yield cls(options=options, session=session)

    def document_url(self, table_name: str, doc_id: str = "") -> URL:
        """URL of a document; ``doc_id`` must already be percent-encoded."""
        base = self.options.report_endpoint.rstrip("/")
        return URL(f"{base}/{table_name}/{doc_id}", encoded=True)

    def report(
        self, document: Document, table_name: str, id_suffix: str = ""
    ) -> asyncio.Task[None]:
        """Send a document to a table of the configured server.

        With a configured result id the document is PUT under that id (plus
        ``id_suffix``), so a rerun overwrites it. Without one it is POSTed and
        CouchDB assigns a fresh id.

        Raises:
            ValueError: If ``table_name`` is empty

        """
        if not table_name:
            raise ValueError("Invalid CouchDB table name passed.")

        method: Literal["PUT", "POST"] = "POST"
        doc_id = ""
        if self.options.result_id is not None:
            method = "PUT"
            doc_id = encode_uri_component(self.options.result_id + id_suffix)

        return self._spawn(
            self._send(method, self.document_url(table_name, doc_id), document)
        )

    def put(
        self, table_name: str, doc_id: str, document: Document
    ) -> asyncio.Task[None]:
        """PUT a document under an explicit, already encoded id."""
        if not table_name:
            raise ValueError("Invalid CouchDB table name passed.")
        return self._spawn(
            self._send("PUT", self.document_url(table_name, doc_id), document)
        )

    async def drain(self) -> None:
        """Wait for all deliveries still in flight."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _send(self, method: str, url: URL, document: Document) -> None:
        body = document if isinstance(document, str) else json.dumps(document)
        log.info("Sending %s request to %s", method, url)

        try:
            async with self.session.request(
                method, url, data=body, headers=HEADERS
            ) as response:
                text = await response.text()
                if 200 <= response.status < 300:
                    log.info(
                        "HTTP success: status=%s response=%s", response.status, text
                    )
                else:
                    log.error(
                        "HTTP error: status=%s reason=%s response=%s",
                        response.status,
                        response.reason,
                        text,
                    )
        except aiohttp.ClientError as e:
            log.error("Failed to send %s request to %s: %s", method, url, e)
        except Exception:
            log.exception("Failed to send %s request to %s", method, url)

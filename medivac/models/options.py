"""Models for the runtime options baked into a generated test app."""

from dataclasses import dataclass
from pathlib import Path

from pydantic import Field
from yarl import URL

from medivac.models.base import Model


class RuntimeOptions(Model):
    """Options the on-device runtime reads as process-wide configuration.

    Serialized verbatim into the app's ``test-config.js``; the aliases are the
    keys the runtime expects.
    """

    result_id: str | None = Field(
        default=None, description="Stable document id for results (None = POST)"
    )
    report_endpoint: str = Field(
        ..., alias="couchdb_uri", description="Base URI of the CouchDB server"
    )
    result_table_name: str = Field(..., description="Database for run results")
    crash_table_name: str = Field(..., description="Database for crash documents")

    @property
    def whitelist_origin(self) -> str:
        """Origin of the report endpoint with the wildcard suffix Cordova uses."""
        url = URL(self.report_endpoint)
        host = url.raw_host or ""
        if ":" in host:
            host = f"[{host}]"
        return f"{url.scheme}://{host}:{url.port}*"

    def to_js_json(self) -> str:
        """Serialize compactly with the runtime's key names."""
        return self.model_dump_json(by_alias=True)


@dataclass(frozen=True, kw_only=True)
class TestFileRecord:
    """Result of probing an installed plugin for its test file."""

    __test__ = False

    plugin: str
    source_path: Path
    exists: bool

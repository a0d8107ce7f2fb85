"""Module test reporting a recorded run to a WireMock-backed CouchDB."""

from pathlib import Path

import pytest
from wiremock.client import (
    HttpMethods,
    Mapping,
    MappingRequest,
    MappingResponse,
    Mappings,
    Requests,
)

from medivac.cli import run_report
from medivac.generator import write_test_config
from medivac.testing import payloads
from medivac.testing.factories import RuntimeOptionsFactory

pytestmark = pytest.mark.module


def created(method: str, path_pattern: str) -> Mapping:
    """Answer matching requests the way CouchDB acknowledges a write."""
    return Mapping(
        request=MappingRequest(method=method, url_path_pattern=path_pattern),
        response=MappingResponse(
            status=201,
            headers={"Content-Type": "application/json"},
            json_body={"ok": True, "id": "doc", "rev": "1-abc"},
        ),
    )


async def test_report_run_to_couchdb(couchdb_url: str, tmp_path: Path) -> None:
    """Stores the run summary and the full results over HTTP."""
    Mappings.delete_all_mappings()
    Requests.reset_request_journal()
    Mappings.create_mapping(created(HttpMethods.PUT, "/mobilespec_results/.*"))
    Mappings.create_mapping(created(HttpMethods.POST, "/results/"))

    config = write_test_config(
        tmp_path,
        RuntimeOptionsFactory.build(
            report_endpoint=couchdb_url,
            result_table_name="results",
        ),
    )
    lines = payloads.to_lines(
        [
            payloads.device_ready(),
            payloads.jasmine_started(total_specs_defined=1),
            payloads.spec_done(full_name="device exists", status="passed"),
            payloads.jasmine_done(),
        ]
    )

    exit_code = await run_report(config, lines, sha="abc123")

    assert exit_code == 0
    summary = Requests.get_request_count(
        MappingRequest(
            method=HttpMethods.PUT,
            url_path_pattern="/mobilespec_results/abc123__4.4.4__Nexus.*",
        )
    )
    assert summary.count == 1
    results = Requests.get_request_count(
        MappingRequest(method=HttpMethods.POST, url_path_pattern="/results/")
    )
    assert results.count == 1

import json
from pathlib import Path
from typing import Any

import pytest
from fastmcp import Client

import mcp_server

EXPECTED_TOOLS = {
    "summarize_results",
    "list_failed_specs",
    "list_flaky_specs",
    "generate_report",
    "run_pipeline",
}


async def _call(name: str, arguments: dict[str, Any] | None = None) -> dict[str, Any]:
    async with Client(mcp_server.mcp) as client:
        result = await client.call_tool(name, arguments or {})
    content = result.content if hasattr(result, "content") else result
    return json.loads(content[0].text)


@pytest.fixture
def tests_env(monkeypatch: pytest.MonkeyPatch, clean_env: None, results_dir: Path) -> Path:
    monkeypatch.setenv("TESTS_DIR", str(results_dir))
    return results_dir


@pytest.mark.asyncio
async def test_tools_registered() -> None:
    async with Client(mcp_server.mcp) as client:
        tools = await client.list_tools()
    assert EXPECTED_TOOLS <= {t.name for t in tools}


@pytest.mark.asyncio
async def test_summarize_results(tests_env: Path, write_result, suite_factory, spec_factory) -> None:
    write_result("acme_widgets.json", [suite_factory(specs=[spec_factory(state="passed", attempts=2)])])

    payload = await _call("summarize_results")

    assert payload["summary"]["suites"] == 1
    assert payload["summary"]["flaky"] == 1


@pytest.mark.asyncio
async def test_list_failed_specs(tests_env: Path, write_result, suite_factory, spec_factory) -> None:
    write_result("acme_widgets.json", [suite_factory(succeeded=False, specs=[
        spec_factory(name="deletes", state="failed", attempts=3, message="boom", line=5),
    ])])

    payload = await _call("list_failed_specs")

    assert payload["total"] == 1
    assert payload["failed"][0]["failure"] == {"message": "boom", "line_number": 5}


@pytest.mark.asyncio
async def test_generate_report(tests_env: Path, write_result, suite_factory, tmp_path: Path) -> None:
    write_result("acme_widgets.json", [suite_factory(description="Widgets")])

    payload = await _call("generate_report")

    assert payload["suites"] == 1
    assert "Description: Widgets" in (tmp_path / "report.txt").read_text()


@pytest.mark.asyncio
async def test_errors_returned_as_json(monkeypatch: pytest.MonkeyPatch, clean_env: None, tmp_path: Path) -> None:
    monkeypatch.setenv("TESTS_DIR", str(tmp_path / "missing"))

    payload = await _call("summarize_results")

    assert "Failed to list results directory" in payload["error"]


@pytest.mark.asyncio
async def test_run_pipeline_requires_token(clean_env: None) -> None:
    payload = await _call("run_pipeline", {"repos": "acme/widgets"})
    assert "GITHUB_TOKEN" in payload["error"]

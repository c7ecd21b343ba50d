import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from e2e_fleet_runner.config import CONFIG_KEYS, PipelineConfig


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Drop all runner settings from the environment and move away from any .env file."""
    for key in CONFIG_KEYS + ["E2E_FLEET_CONFIG"]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def spec_factory() -> Callable[..., dict[str, Any]]:
    def _make(
        name: str = "creates a widget",
        state: str = "passed",
        attempts: int = 1,
        leaf_type: str = "It",
        message: str | None = None,
        line: int = 0,
        trace: str = "",
    ) -> dict[str, Any]:
        spec: dict[str, Any] = {
            "ContainerHierarchyTexts": ["Widgets"],
            "LeafNodeText": name,
            "LeafNodeType": leaf_type,
            "State": state,
            "NumAttempts": attempts,
            "RunTime": 1200000,
        }
        if message is not None:
            spec["Failure"] = {
                "Message": message,
                "Location": {"FileName": "widgets_test.go", "LineNumber": line, "FullStackTrace": trace},
            }
        return spec

    return _make


@pytest.fixture
def suite_factory(spec_factory: Callable[..., dict[str, Any]]) -> Callable[..., dict[str, Any]]:
    def _make(
        description: str = "Widgets",
        succeeded: bool = True,
        specs: list[dict[str, Any]] | None = None,
        path: str | None = None,
    ) -> dict[str, Any]:
        specs = [spec_factory()] if specs is None else specs
        return {
            "SuitePath": path or f"/src/{description.lower()}/test/e2e",
            "SuiteDescription": description,
            "SuiteSucceeded": succeeded,
            "PreRunStats": {"TotalSpecs": len(specs), "SpecsThatWillRun": len(specs)},
            "SpecReports": specs,
        }

    return _make


@pytest.fixture
def results_dir(tmp_path: Path) -> Path:
    path = tmp_path / "tests"
    path.mkdir()
    return path


@pytest.fixture
def write_result(results_dir: Path) -> Callable[[str, Any], Path]:
    """Write a result file; strings are written verbatim, anything else as JSON."""
    def _write(name: str, payload: Any) -> Path:
        path = results_dir / name
        path.write_text(payload if isinstance(payload, str) else json.dumps(payload))
        return path

    return _write


@pytest.fixture
def pipeline_config(tmp_path: Path, results_dir: Path) -> PipelineConfig:
    return PipelineConfig(
        github_token="ghp-test-token",
        repos_dir=tmp_path / "repos",
        tests_dir=results_dir,
        report_path=tmp_path / "report.txt",
    )

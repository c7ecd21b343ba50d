#!/usr/bin/env python3
"""
Core operations shared between MCP server and CLI.
Contains the pipeline orchestration: acquire, run, aggregate, render.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Sequence

from e2e_fleet_runner.acquirer import RepositoryAcquirer, acquire_all
from e2e_fleet_runner.config import PipelineConfig
from e2e_fleet_runner.ginkgo_runner import GinkgoRunner
from e2e_fleet_runner.github_client import GitHubClient
from e2e_fleet_runner.models import RunResult, RunStatus, SpecState, Suite
from e2e_fleet_runner.report import ReportTemplate, write_report
from e2e_fleet_runner.result_loader import load_all

logger = logging.getLogger(__name__)


def make_acquirer(config: PipelineConfig) -> RepositoryAcquirer:
    client = GitHubClient(config.github_token, base_url=config.github_api_url)
    return RepositoryAcquirer(client, config.repos_dir)


def make_runner(config: PipelineConfig) -> GinkgoRunner:
    return GinkgoRunner(config.repos_dir, config.tests_dir,
                        settings=config.ginkgo, test_subdir=config.test_subdir)


def load_template(config: PipelineConfig) -> ReportTemplate:
    return ReportTemplate.load(config.template_path)


def generate_report(config: PipelineConfig, template: Optional[ReportTemplate] = None) -> dict:
    """
    Aggregate every result file under the tests directory and write the report.

    Raises:
        AggregationError: the tests directory cannot be listed
        TemplateError: the template cannot be loaded
        RenderError: the report cannot be rendered or written
    """
    template = template or load_template(config)
    suites = load_all(config.tests_dir)
    path = write_report(suites, config.report_path, template)
    return {
        "report_path": str(path),
        "suites": len(suites),
        "specs": sum(len(s.spec_reports) for s in suites),
    }


async def run_pipeline(
    config: PipelineConfig,
    repos: Sequence[str],
    acquirer: Optional[RepositoryAcquirer] = None,
    runner: Optional[GinkgoRunner] = None,
) -> dict:
    """
    Run the whole pipeline for the given repository identifiers.

    The template is loaded first so a broken layout fails before any clone.
    Acquisition is concurrent and fail-fast; test runs are sequential and
    never abort the run.

    Args:
        config: Pipeline configuration
        repos: Repository identifiers (owner/name), in run order
        acquirer: Override for the repository acquirer
        runner: Override for the ginkgo runner

    Returns:
        dict with per-repository run results and report info
    """
    template = load_template(config)
    config.provision_dirs()

    acquirer = acquirer or make_acquirer(config)
    await acquire_all(acquirer, repos)
    logger.info(f"Acquired {len(repos)} repositories")

    runner = runner or make_runner(config)
    runs = await asyncio.to_thread(runner.run_all, repos)

    report = await asyncio.to_thread(generate_report, config, template)
    return {
        "runs": [_run_to_dict(r) for r in runs],
        "skipped": sum(1 for r in runs if r.status == RunStatus.SKIPPED),
        "failed": sum(1 for r in runs if r.status == RunStatus.COMPLETED and not r.succeeded),
        "report": report,
    }


def _run_to_dict(run: RunResult) -> dict:
    return {
        "repo": run.repo,
        "status": run.status.value,
        "exit_code": run.exit_code,
        "report_path": str(run.report_path) if run.report_path else None,
    }


def _spec_to_dict(suite: Suite, spec) -> dict:
    entry = {
        "suite": suite.description,
        "suite_path": suite.path,
        "name": spec.name,
        "type": spec.type,
        "state": spec.state,
        "attempts": spec.attempts,
    }
    if spec.failure.present:
        entry["failure"] = {
            "message": spec.failure.message,
            "line_number": spec.failure.location.line_number,
        }
    return entry


def summarize_suites(suites: Sequence[Suite]) -> dict:
    """Pass/fail/flake counts over decoded suites."""
    totals = {
        "suites": len(suites),
        "suites_failed": 0,
        "specs": 0,
        "passed": 0,
        "failed": 0,
        "skipped": 0,
        "pending": 0,
        "flaky": 0,
    }
    details = []
    for suite in suites:
        passed = suite.count(SpecState.PASSED.value)
        failed = len(suite.failed_specs)
        flaky = len(suite.flaky_specs)
        totals["suites_failed"] += 0 if suite.succeeded else 1
        totals["specs"] += len(suite.spec_reports)
        totals["passed"] += passed
        totals["failed"] += failed
        totals["skipped"] += suite.count(SpecState.SKIPPED.value)
        totals["pending"] += suite.count(SpecState.PENDING.value)
        totals["flaky"] += flaky
        details.append({
            "path": suite.path,
            "description": suite.description,
            "succeeded": suite.succeeded,
            "specs": len(suite.spec_reports),
            "passed": passed,
            "failed": failed,
            "flaky": flaky,
        })
    return {"summary": totals, "suites": details}


def summarize_results(results_dir: Path) -> dict:
    return summarize_suites(load_all(results_dir))


def list_failed_specs(results_dir: Path) -> list[dict]:
    return [_spec_to_dict(suite, spec)
            for suite in load_all(results_dir) for spec in suite.failed_specs]


def list_flaky_specs(results_dir: Path) -> list[dict]:
    return [_spec_to_dict(suite, spec)
            for suite in load_all(results_dir) for spec in suite.flaky_specs]

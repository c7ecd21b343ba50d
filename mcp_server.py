#!/usr/bin/env python3
"""
MCP Server for e2e-fleet-runner.
Provides tools for running multi-repository e2e suites and reading their results.
"""

import asyncio
import json
import logging

from fastmcp import FastMCP

import core
from e2e_fleet_runner.config import PipelineConfig, get_mcp_port
from e2e_fleet_runner.models import read_repo_list

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# FastMCP server
mcp = FastMCP("e2e-fleet-runner")


@mcp.tool(
    name="summarize_results",
    description="""Get pass/fail/flake counts for every suite in the results directory.

    A spec counts as flaky when it passed after more than one attempt.
    """
)
async def summarize_results() -> str:
    try:
        config = PipelineConfig.from_env(require_token=False)
        result = core.summarize_results(config.tests_dir)
        return json.dumps(result, indent=2)
    except Exception as e:
        logger.error(f"Error in summarize_results: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="list_failed_specs",
    description="""List specs that ended in a failing state, with failure message and line number."""
)
async def list_failed_specs() -> str:
    try:
        config = PipelineConfig.from_env(require_token=False)
        result = core.list_failed_specs(config.tests_dir)
        return json.dumps({"failed": result, "total": len(result)}, indent=2)
    except Exception as e:
        logger.error(f"Error in list_failed_specs: {str(e)}")
        return json.dumps({"error": str(e), "failed": [], "total": 0})


@mcp.tool(
    name="list_flaky_specs",
    description="""List specs that passed only after a retry."""
)
async def list_flaky_specs() -> str:
    try:
        config = PipelineConfig.from_env(require_token=False)
        result = core.list_flaky_specs(config.tests_dir)
        return json.dumps({"flaky": result, "total": len(result)}, indent=2)
    except Exception as e:
        logger.error(f"Error in list_flaky_specs: {str(e)}")
        return json.dumps({"error": str(e), "flaky": [], "total": 0})


@mcp.tool(
    name="generate_report",
    description="""Regenerate the text report from the JSON results already on disk."""
)
async def generate_report() -> str:
    try:
        config = PipelineConfig.from_env(require_token=False)
        result = core.generate_report(config)
        return json.dumps(result, indent=2)
    except Exception as e:
        logger.error(f"Error in generate_report: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="run_pipeline",
    description="""Clone repositories, run their e2e suites one at a time and write the report.

    Args:
        repos: Newline- or comma-separated repository identifiers (owner/name)
    """
)
async def run_pipeline(repos: str) -> str:
    try:
        config = PipelineConfig.from_env()
        repo_list = read_repo_list(repos.replace(",", "\n"))
        # ginkgo runs block, keep them off the event loop
        result = await asyncio.to_thread(asyncio.run, core.run_pipeline(config, repo_list))
        return json.dumps(result, indent=2, default=str)
    except Exception as e:
        logger.error(f"Error in run_pipeline: {str(e)}")
        return json.dumps({"error": str(e)})


async def main():
    port = get_mcp_port()
    await mcp.run_async(transport="sse", host="0.0.0.0", port=port)


if __name__ == "__main__":
    asyncio.run(main())

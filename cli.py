#!/usr/bin/env python3
"""CLI for the multi-repository e2e runner."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import core
from e2e_fleet_runner.config import PipelineConfig
from e2e_fleet_runner.errors import PipelineError
from e2e_fleet_runner.models import read_repo_list


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def _path(value):
    return Path(value) if value else None


def _config(args, require_token: bool = False) -> PipelineConfig:
    return PipelineConfig.from_env(
        require_token=require_token,
        repos_dir=_path(getattr(args, 'repos_dir', None)),
        tests_dir=_path(args.tests_dir),
        report_path=_path(getattr(args, 'report', None)),
        template_path=_path(getattr(args, 'template', None)),
    )


def cmd_run(args):
    """Clone, test and report on the repositories listed on stdin."""
    config = _config(args, require_token=True)
    repos = read_repo_list(sys.stdin.read())

    result = asyncio.run(core.run_pipeline(config, repos))

    if result["skipped"] or result["failed"]:
        print(f"Skipped: {result['skipped']}, failed test runs: {result['failed']}")
    print(f"All done! See {config.report_path} for results.")
    return 0


def cmd_report(args):
    """Regenerate the report from an existing results directory."""
    config = _config(args)
    result = core.generate_report(config)
    print(f"Wrote {result['suites']} suites ({result['specs']} specs) to {result['report_path']}")
    return 0


def cmd_summary(args):
    """Print pass/fail/flake counts for the results directory."""
    config = _config(args)
    result = core.summarize_results(config.tests_dir)

    if args.format == 'json':
        print(json.dumps(result, indent=2))
        return 0

    totals = result["summary"]
    print(f"\n{'='*60}")
    print(f"Suites: {totals['suites']} ({totals['suites_failed']} failed)")
    print(f"\nSpecs:")
    print(f"  Total:   {totals['specs']}")
    print(f"  Passed:  {totals['passed']}")
    print(f"  Failed:  {totals['failed']}")
    print(f"  Skipped: {totals['skipped']}")
    print(f"  Pending: {totals['pending']}")
    print(f"  Flaky:   {totals['flaky']}")

    if not args.quiet and result["suites"]:
        print(f"\nSuites:")
        for s in result["suites"]:
            mark = "PASS" if s["succeeded"] else "FAIL"
            print(f"  [{mark}] {s['description']} ({s['passed']}/{s['specs']} passed, {s['flaky']} flaky)")
    print(f"{'='*60}\n")
    return 0


def cmd_failures(args):
    """List failed and flaky specs."""
    config = _config(args)
    failed = core.list_failed_specs(config.tests_dir)
    flaky = core.list_flaky_specs(config.tests_dir)

    if args.format == 'json':
        print(json.dumps({"failed": failed, "flaky": flaky}, indent=2))
        return 0

    print(f"Failed specs ({len(failed)}):")
    for s in failed:
        print(f"  - [{s['suite']}] {s['name'][:70]} ({s['state']})")
        failure = s.get("failure")
        if failure:
            first_line = failure["message"].splitlines()[0] if failure["message"] else ""
            print(f"      {first_line} (line {failure['line_number']})")
    print(f"\nFlaky specs ({len(flaky)}):")
    for s in flaky:
        print(f"  - [{s['suite']}] {s['name'][:70]} ({s['attempts']} attempts)")
    return 0 if not failed else 1


def main():
    parser = argparse.ArgumentParser(description='Multi-repository e2e test runner')
    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--tests-dir', help='Directory holding the JSON test results')

    sub = parser.add_subparsers(dest='command')

    p = sub.add_parser('run', help='Clone repositories from stdin, run their e2e suites and write the report')
    p.add_argument('--repos-dir', help='Directory for repository clones')
    p.add_argument('--report', help='Report output path')
    p.add_argument('--template', help='Report template (YAML)')

    p = sub.add_parser('report', help='Regenerate the report from existing results')
    p.add_argument('--report', help='Report output path')
    p.add_argument('--template', help='Report template (YAML)')

    p = sub.add_parser('summary', help='Show pass/fail/flake counts')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')
    p.add_argument('--quiet', '-q', action='store_true', help='Only show counts, not suites')

    p = sub.add_parser('failures', help='List failed and flaky specs')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    cmds = {
        'run': cmd_run,
        'report': cmd_report,
        'summary': cmd_summary,
        'failures': cmd_failures,
    }
    try:
        return cmds[args.command](args)
    except PipelineError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())

"""Sequential Ginkgo runner: one repository's e2e suite at a time."""

import logging
import subprocess
from pathlib import Path
from typing import Iterable

from .config import DEFAULT_TEST_SUBDIR, GinkgoSettings
from .models import RunResult, RunStatus, repo_dir_name

logger = logging.getLogger(__name__)

EXIT_NOT_STARTED = 127


class GinkgoRunner:
    """Runs the e2e suite of each cloned repository and records where its JSON report lands."""

    def __init__(self, repos_dir: Path, tests_dir: Path,
                 settings: GinkgoSettings = GinkgoSettings(),
                 test_subdir: str = DEFAULT_TEST_SUBDIR):
        self.repos_dir = repos_dir
        self.tests_dir = tests_dir
        self.settings = settings
        self.test_subdir = test_subdir

    def suite_dir(self, repo: str) -> Path:
        return self.repos_dir / repo_dir_name(repo) / self.test_subdir

    def report_path(self, repo: str) -> Path:
        return self.tests_dir / f"{repo_dir_name(repo)}.json"

    def run(self, repo: str) -> RunResult:
        """Run the suite for one repository, blocking until ginkgo exits.

        Output is inherited from this process so the operator sees it live.
        A non-zero exit is logged and returned, never raised.
        """
        suite_dir = self.suite_dir(repo)
        if not suite_dir.is_dir():
            logger.warning(f"[SKIP] No {self.test_subdir} directory for {repo}")
            return RunResult(repo=repo, status=RunStatus.SKIPPED)

        logger.info(f"Running tests for {repo}...")
        cmd = self.settings.command(
            output_dir=self.tests_dir.resolve(),
            json_report=self.report_path(repo).name,
        )
        logger.debug(f"Running: {' '.join(cmd)} (cwd={suite_dir})")

        try:
            completed = subprocess.run(cmd, cwd=suite_dir, check=False)
            exit_code = completed.returncode
        except OSError as e:
            logger.error(f"[ERROR] Ginkgo test failed for {repo}: {e}")
            exit_code = EXIT_NOT_STARTED
        else:
            if exit_code != 0:
                logger.error(f"[ERROR] Ginkgo test failed for {repo}: exit status {exit_code}")

        return RunResult(
            repo=repo,
            status=RunStatus.COMPLETED,
            exit_code=exit_code,
            report_path=self.report_path(repo),
        )

    def run_all(self, repos: Iterable[str]) -> list[RunResult]:
        """Run every repository in order, one ginkgo process at a time."""
        return [self.run(repo) for repo in repos]

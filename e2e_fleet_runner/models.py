"""
Data models for repository runs and Ginkgo suite reports.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import InvalidIdentifier


class SpecState(Enum):
    """Spec states written by Ginkgo. Only used for classification."""
    PASSED = "passed"
    SKIPPED = "skipped"
    PENDING = "pending"
    FAILED = "failed"
    ABORTED = "aborted"
    PANICKED = "panicked"
    INTERRUPTED = "interrupted"
    TIMEDOUT = "timedout"


FAILING_STATES = frozenset({
    SpecState.FAILED.value,
    SpecState.ABORTED.value,
    SpecState.PANICKED.value,
    SpecState.INTERRUPTED.value,
    SpecState.TIMEDOUT.value,
})


@dataclass(frozen=True)
class RepoIdentifier:
    """A GitHub repository identifier of the form owner/name."""
    owner: str
    name: str

    @classmethod
    def parse(cls, raw: str) -> "RepoIdentifier":
        parts = raw.split("/")
        if len(parts) != 2 or not all(parts):
            raise InvalidIdentifier(raw, f"invalid repo format: {raw}")
        return cls(owner=parts[0], name=parts[1])

    @property
    def dir_name(self) -> str:
        return f"{self.owner}_{self.name}"

    def __str__(self) -> str:
        return f"{self.owner}/{self.name}"


def repo_dir_name(repo: str) -> str:
    """Directory and report file stem for a repository identifier."""
    return repo.replace("/", "_")


def read_repo_list(text: str) -> list[str]:
    """Split newline-delimited input into identifiers, dropping blank lines."""
    return [line.strip() for line in text.splitlines() if line.strip()]


class RunStatus(Enum):
    """Outcome of the test stage for one repository."""
    SKIPPED = "skipped"
    COMPLETED = "completed"


@dataclass(frozen=True)
class RunResult:
    """Result of running (or skipping) the e2e suite of one repository."""
    repo: str
    status: RunStatus
    exit_code: Optional[int] = None
    report_path: Optional[Path] = None

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.COMPLETED and self.exit_code == 0


@dataclass(frozen=True)
class FailureLocation:
    line_number: int = 0
    stack_trace: str = ""


@dataclass(frozen=True)
class Failure:
    """Failure details of a spec. All fields are empty when the spec passed."""
    message: str = ""
    location: FailureLocation = field(default_factory=FailureLocation)

    @property
    def present(self) -> bool:
        return bool(self.message or self.location.line_number or self.location.stack_trace)


@dataclass(frozen=True)
class Spec:
    """Represents a single leaf node (It, BeforeSuite, ...) result."""
    name: str
    type: str
    state: str
    attempts: int = 0
    failure: Failure = field(default_factory=Failure)

    @property
    def failed(self) -> bool:
        return self.state in FAILING_STATES

    @property
    def flaky(self) -> bool:
        """Passed, but only after at least one retry."""
        return self.state == SpecState.PASSED.value and self.attempts > 1


@dataclass(frozen=True)
class PreRunStats:
    total_specs: int = 0
    specs_that_will_run: int = 0


@dataclass(frozen=True)
class Suite:
    """Represents one Ginkgo suite execution."""
    path: str
    description: str
    succeeded: bool
    pre_run_stats: PreRunStats = field(default_factory=PreRunStats)
    spec_reports: tuple[Spec, ...] = ()

    def count(self, state: str) -> int:
        return sum(1 for s in self.spec_reports if s.state == state)

    @property
    def failed_specs(self) -> list[Spec]:
        return [s for s in self.spec_reports if s.failed]

    @property
    def flaky_specs(self) -> list[Spec]:
        return [s for s in self.spec_reports if s.flaky]

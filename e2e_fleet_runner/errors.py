"""
Exception types raised by the pipeline stages.

The orchestrator in ``core`` decides which of these abort the run.
"""

from pathlib import Path


class PipelineError(Exception):
    """Base class for all pipeline failures."""


class ConfigError(PipelineError):
    """Missing credential, bad setting or directory provisioning failure."""


class AcquisitionError(PipelineError):
    """A repository could not be acquired."""

    def __init__(self, repo: str, message: str):
        self.repo = repo
        super().__init__(f"{repo}: {message}")


class InvalidIdentifier(AcquisitionError):
    """The identifier is not of the form owner/name."""


class LookupFailure(AcquisitionError):
    """The repository could not be resolved on GitHub."""


class FetchFailure(AcquisitionError):
    """The shallow clone failed."""


class ResultDecodeError(PipelineError):
    """A result file could not be read or decoded."""

    def __init__(self, path: Path, message: str):
        self.path = path
        super().__init__(f"{path.name}: {message}")


class AggregationError(PipelineError):
    """The results directory could not be listed."""


class TemplateError(PipelineError):
    """The report template could not be loaded or is malformed."""


class RenderError(PipelineError):
    """The report could not be rendered or written."""

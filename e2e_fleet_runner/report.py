"""
Plain-text report rendering.

The layout comes from a YAML file with three format-string sections:
``suite``, ``spec`` and ``failure``. Specs are rendered into the suite's
``{specs}`` field and a spec's failure block into its ``{failure}`` field.
"""

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import yaml

from .errors import RenderError, TemplateError
from .models import Failure, PreRunStats, Spec, Suite

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "suite_template.yaml"
TEMPLATE_SECTIONS = ("suite", "spec", "failure")

_SAMPLE_SUITE = Suite(
    path="/sample", description="sample", succeeded=True,
    pre_run_stats=PreRunStats(total_specs=1, specs_that_will_run=1),
    spec_reports=(Spec(name="sample", type="It", state="failed", attempts=1,
                       failure=Failure(message="sample")),),
)


@dataclass(frozen=True)
class ReportTemplate:
    suite: str
    spec: str
    failure: str

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ReportTemplate":
        """Load and trial-render a template file.

        Raises:
            TemplateError: the file is unreadable, not valid YAML, lacks a
                section, or a section references an unknown field.
        """
        path = path or DEFAULT_TEMPLATE_PATH
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise TemplateError(f"Failed to read report template {path}: {e}") from e
        except yaml.YAMLError as e:
            raise TemplateError(f"Failed to parse report template {path}: {e}") from e

        if not isinstance(data, dict):
            raise TemplateError(f"Report template {path} must be a mapping of sections")
        missing = [s for s in TEMPLATE_SECTIONS if not isinstance(data.get(s), str)]
        if missing:
            raise TemplateError(f"Report template {path} is missing sections: {', '.join(missing)}")

        template = cls(suite=data["suite"], spec=data["spec"], failure=data["failure"])
        try:
            template.render([_SAMPLE_SUITE])
        except RenderError as e:
            raise TemplateError(f"Report template {path} is malformed: {e}") from e
        logger.debug(f"Loaded report template from {path}")
        return template

    def render_failure(self, failure: Failure) -> str:
        if not failure.present:
            return ""
        return self.failure.format_map({
            "message": failure.message,
            "line_number": failure.location.line_number,
            "stack_trace": failure.location.stack_trace,
        })

    def render_spec(self, spec: Spec) -> str:
        return self.spec.format_map({
            "name": spec.name,
            "type": spec.type,
            "state": spec.state,
            "attempts": spec.attempts,
            "failure": self.render_failure(spec.failure),
        })

    def render_suite(self, suite: Suite) -> str:
        return self.suite.format_map({
            "path": suite.path,
            "description": suite.description,
            "succeeded": suite.succeeded,
            "total_specs": suite.pre_run_stats.total_specs,
            "specs_that_will_run": suite.pre_run_stats.specs_that_will_run,
            "specs": "".join(self.render_spec(s) for s in suite.spec_reports),
        })

    def render(self, suites: Sequence[Suite]) -> str:
        """Concatenate the rendering of every suite, in order."""
        try:
            return "".join(self.render_suite(s) for s in suites)
        except (KeyError, IndexError, ValueError, AttributeError, TypeError) as e:
            raise RenderError(f"Failed to render report: {type(e).__name__}: {e}") from e


def write_report(suites: Sequence[Suite], destination: Path, template: ReportTemplate) -> Path:
    """Render all suites and write them to destination atomically."""
    text = template.render(suites)
    destination = Path(destination)
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        # temp file + rename, so a failed write never leaves a partial report
        temp_fd, temp_path = tempfile.mkstemp(dir=destination.parent, suffix='.tmp')
        try:
            with os.fdopen(temp_fd, 'w', encoding='utf-8') as f:
                f.write(text)
            os.replace(temp_path, destination)
        except BaseException:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
    except OSError as e:
        raise RenderError(f"Failed to write report {destination}: {e}") from e

    logger.info(f"Wrote {len(suites)} suites to {destination}")
    return destination

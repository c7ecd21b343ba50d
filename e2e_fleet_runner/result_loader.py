"""
Loader for Ginkgo JSON reports.

A report file holds a JSON array of suite reports. Only the keys below are
read; everything else Ginkgo writes is ignored.
"""

import json
import logging
from pathlib import Path
from typing import Any

from .errors import AggregationError, ResultDecodeError
from .models import Failure, FailureLocation, PreRunStats, Spec, Suite

logger = logging.getLogger(__name__)

RESULT_SUFFIX = ".json"

_MISSING = object()


class _SchemaError(Exception):
    pass


def _field(data: dict, key: str, kind: type, default: Any = _MISSING) -> Any:
    value = data.get(key, _MISSING)
    if value is _MISSING or (value is None and default is not _MISSING):
        if default is _MISSING:
            raise _SchemaError(f"missing required field {key!r}")
        return default
    # bool is an int subclass; reject it where a count is expected
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise _SchemaError(f"field {key!r} must be {kind.__name__}, got {type(value).__name__}")
    return value


def _parse_failure(data: Any) -> Failure:
    if data is None:
        return Failure()
    if not isinstance(data, dict):
        raise _SchemaError("field 'Failure' must be an object")
    location = _field(data, "Location", dict, {})
    return Failure(
        message=_field(data, "Message", str, ""),
        location=FailureLocation(
            line_number=_field(location, "LineNumber", int, 0),
            stack_trace=_field(location, "FullStackTrace", str, ""),
        ),
    )


def _parse_spec(data: Any) -> Spec:
    if not isinstance(data, dict):
        raise _SchemaError("spec report must be an object")
    return Spec(
        name=_field(data, "LeafNodeText", str, ""),
        type=_field(data, "LeafNodeType", str),
        state=_field(data, "State", str),
        attempts=_field(data, "NumAttempts", int, 0),
        failure=_parse_failure(data.get("Failure")),
    )


def _parse_suite(data: Any) -> Suite:
    if not isinstance(data, dict):
        raise _SchemaError("suite report must be an object")
    stats = _field(data, "PreRunStats", dict, {})
    return Suite(
        path=_field(data, "SuitePath", str),
        description=_field(data, "SuiteDescription", str),
        succeeded=_field(data, "SuiteSucceeded", bool),
        pre_run_stats=PreRunStats(
            total_specs=_field(stats, "TotalSpecs", int, 0),
            specs_that_will_run=_field(stats, "SpecsThatWillRun", int, 0),
        ),
        spec_reports=tuple(_parse_spec(s) for s in _field(data, "SpecReports", list, [])),
    )


def parse_suites(data: Any, source: Path) -> list[Suite]:
    """Decode an already-parsed JSON document into suites.

    Raises:
        ResultDecodeError: the document does not match the report schema.
    """
    if not isinstance(data, list):
        raise ResultDecodeError(source, "expected a JSON array of suite reports")
    try:
        return [_parse_suite(item) for item in data]
    except _SchemaError as e:
        raise ResultDecodeError(source, str(e)) from None


def load_file(path: Path) -> list[Suite]:
    """Read and decode one result file."""
    try:
        content = path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        raise ResultDecodeError(path, f"cannot read file: {e}") from e
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise ResultDecodeError(path, f"invalid JSON: {e}") from e
    return parse_suites(data, path)


def result_files(results_dir: Path) -> list[Path]:
    """JSON result files in listing (name) order; directories are ignored."""
    try:
        entries = sorted(results_dir.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise AggregationError(f"Failed to list results directory {results_dir}: {e}") from e
    return [p for p in entries if p.name.endswith(RESULT_SUFFIX) and not p.is_dir()]


def load_all(results_dir: Path) -> list[Suite]:
    """Load every result file, skipping the ones that fail to decode."""
    suites = []
    for path in result_files(results_dir):
        try:
            loaded = load_file(path)
        except ResultDecodeError as e:
            logger.error(f"[SKIP] {e}")
            continue
        logger.debug(f"Loaded {len(loaded)} suites from {path.name}")
        suites.extend(loaded)
    return suites

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import ImportConfig
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import ErrorType
from ..models.result import ImportResult, RunResult
from ..models.schema import TargetSchema
from ..parsing.parser import ParseError, UnsupportedFileKindError
from .committer import CommitError, Writer
from .preview import render_preview
from .progress import ProgressTracker
from .validator import MissingRequiredFieldsError
from .workflow import ImportWorkflow, WorkflowError

"""Non-interactive import runs.

Drives one ImportWorkflow per file (Upload -> Map -> Preview -> Commit) with
optional manual mapping overrides, records every user-facing error in the
JSON Lines error log, and aggregates a RunResult for the SUMMARY line.
Files are independent sessions; a failing file never stops the run.
"""

__all__ = [
    "import_file",
    "run_imports",
]

logger = logging.getLogger(__name__)


async def import_file(
    path: Path,
    schema: TargetSchema,
    config: ImportConfig,
    *,
    writer: Writer | None = None,
    overrides: Sequence[tuple[str, str]] = (),
    error_log: ErrorLogBuffer | None = None,
) -> ImportResult:
    """Import one file. ``writer=None`` stops after the preview (dry run)."""
    started = time.perf_counter()
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    name = path.name
    workflow = ImportWorkflow(
        schema.columns,
        allowed_extensions=config.parser.allowed_extensions,
        doubled_quote_escape=config.parser.doubled_quote_escape,
        preview_rows=config.preview_rows,
    )

    def failed(error_type: ErrorType, message: str, **counts: object) -> ImportResult:
        logger.error("%s: %s", name, message)
        error_log.file_error(name, error_type, message)
        return ImportResult(
            file_name=name,
            success=False,
            error=message,
            elapsed_seconds=time.perf_counter() - started,
            **counts,  # type: ignore[arg-type]
        )

    try:
        session = await workflow.select_file(path)
    except UnsupportedFileKindError as e:
        return failed(ErrorType.UNSUPPORTED_FILE_KIND, str(e))
    except ParseError as e:
        if workflow.last_outcome is not None:
            error_log.record_diagnostics(name, workflow.last_outcome)
        return failed(ErrorType.PARSE_ERROR, str(e))
    except OSError as e:
        return failed(ErrorType.READ_ERROR, f"cannot read file: {e}")
    # each file gets its own workflow and nothing resets it mid-read, so the
    # read cannot be superseded here
    if session is None:  # pragma: no cover
        return failed(ErrorType.READ_ERROR, "read superseded")

    outcome = workflow.last_outcome
    warnings = outcome.warning_count if outcome is not None else 0
    if outcome is not None:
        error_log.record_diagnostics(name, outcome)
    parsed = workflow.row_count
    logger.info(
        "%s: found %d rows with %d columns", name, parsed, session.table.column_count
    )

    try:
        for source_column, target_key in overrides:
            workflow.map_column(source_column, target_key)
    except WorkflowError as e:
        return failed(ErrorType.MAPPING_ERROR, str(e), parsed_rows=parsed, warning_count=warnings)

    try:
        preview = workflow.preview()
    except MissingRequiredFieldsError as e:
        return failed(
            ErrorType.MISSING_REQUIRED_FIELDS,
            f"missing required: {', '.join(e.labels)}",
            parsed_rows=parsed,
            warning_count=warnings,
            missing_labels=e.labels,
        )
    logger.info("%s: preview\n%s", name, render_preview(preview))

    submitted = 0
    if writer is not None:
        try:
            submitted = await workflow.commit(writer) or 0
        except CommitError as e:
            return failed(
                ErrorType.COMMIT_ERROR,
                f"import failed: {e.message}",
                parsed_rows=parsed,
                previewed_rows=len(preview.rows),
                warning_count=warnings,
            )

    return ImportResult(
        file_name=name,
        success=True,
        parsed_rows=parsed,
        previewed_rows=len(preview.rows),
        submitted_records=submitted,
        warning_count=warnings,
        elapsed_seconds=time.perf_counter() - started,
    )


async def run_imports(
    paths: Sequence[Path],
    schema: TargetSchema,
    config: ImportConfig,
    *,
    writer: Writer | None = None,
    overrides: Sequence[tuple[str, str]] = (),
    error_log: ErrorLogBuffer | None = None,
) -> RunResult:
    start_time = datetime.now(UTC)
    error_log = error_log if error_log is not None else ErrorLogBuffer()
    results: list[ImportResult] = []

    with ProgressTracker(len(paths)) as progress:
        for path in paths:
            with progress.track(path):
                result = await import_file(
                    path,
                    schema,
                    config,
                    writer=writer,
                    overrides=overrides,
                    error_log=error_log,
                )
            results.append(result)
            progress.add(result)

    try:
        log_path = error_log.flush()
    except OSError as e:
        logger.warning("failed to write error log: %s", e)
    else:
        if log_path is not None:
            logger.info("error log: %s", log_path)

    return RunResult.from_results(results, start_time, datetime.now(UTC))

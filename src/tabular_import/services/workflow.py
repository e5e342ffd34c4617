from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from pathlib import Path

from ..models.schema import SKIP, ColumnDefinition, ColumnMapping
from ..models.session import ImportSession, ImportStep
from ..models.table import FailureReason, ParseOutcome, RawTable
from ..parsing.parser import (
    DEFAULT_ALLOWED_EXTENSIONS,
    ParseError,
    check_file_kind,
    parse_outcome,
    read_text,
)
from .committer import CommitError, Writer, extract_error_message, materialize
from .committer import commit as submit_records
from .mapper import auto_map, duplicate_targets, update_mapping
from .preview import DEFAULT_PREVIEW_ROWS, Preview, build_preview
from .validator import ensure_required, missing_required_labels

"""Upload -> Map -> Preview import workflow.

The module-level functions are pure transitions over the immutable
ImportSession. ImportWorkflow owns one session plus the two suspending
operations (file read and commit):

- every read is tagged with a token; a read that completes after another
  file was selected, or after reset(), is discarded
- the committing flag is set before the writer is awaited; commit() while a
  commit is in flight is a no-op returning None
- a failed commit leaves the session in Preview; a successful one resets it
"""

__all__ = [
    "ImportWorkflow",
    "WorkflowError",
    "back",
    "load_table",
    "new_session",
    "set_target",
    "to_preview",
]

logger = logging.getLogger(__name__)


class WorkflowError(Exception):
    """Illegal transition or unknown target for the current step."""


def _require_step(session: ImportSession, step: ImportStep, action: str) -> None:
    if session.step is not step:
        raise WorkflowError(f"cannot {action} in step {session.step.value}")


def new_session(token: int = 0) -> ImportSession:
    return ImportSession(token=token)


def load_table(
    session: ImportSession,
    table: RawTable,
    column_defs: Sequence[ColumnDefinition],
    file_name: str | None = None,
) -> ImportSession:
    """UPLOAD -> MAP with an auto-proposed mapping."""
    _require_step(session, ImportStep.UPLOAD, "load a file")
    if not table.headers:
        raise ParseError(FailureReason.EMPTY, file_name)
    return replace(
        session,
        step=ImportStep.MAP,
        table=table,
        mapping=tuple(auto_map(table.headers, column_defs)),
        file_name=file_name,
    )


def set_target(
    session: ImportSession,
    source_column: str,
    target_key: str,
    column_defs: Sequence[ColumnDefinition],
) -> ImportSession:
    _require_step(session, ImportStep.MAP, "change the mapping")
    if source_column not in session.table.headers:
        raise WorkflowError(f"unknown source column: {source_column}")
    if target_key != SKIP and target_key not in {d.key for d in column_defs}:
        raise WorkflowError(f"unknown target field: {target_key}")
    return replace(
        session, mapping=tuple(update_mapping(session.mapping, source_column, target_key))
    )


def back(session: ImportSession) -> ImportSession:
    """PREVIEW -> MAP keeps the mapping; MAP -> UPLOAD discards everything."""
    if session.committing:
        raise WorkflowError("cannot go back while a commit is in progress")
    if session.step is ImportStep.PREVIEW:
        return replace(session, step=ImportStep.MAP)
    if session.step is ImportStep.MAP:
        return new_session(token=session.token)
    raise WorkflowError("nothing to go back to from upload")


def to_preview(
    session: ImportSession, column_defs: Sequence[ColumnDefinition]
) -> ImportSession:
    """MAP -> PREVIEW, only when every required field is mapped.

    Raises:
        MissingRequiredFieldsError: required targets are unmapped
    """
    _require_step(session, ImportStep.MAP, "preview")
    ensure_required(column_defs, session.mapping)
    return replace(session, step=ImportStep.PREVIEW)


class ImportWorkflow:
    """One import session for a fixed target schema."""

    def __init__(
        self,
        column_defs: Iterable[ColumnDefinition],
        *,
        allowed_extensions: Iterable[str] = DEFAULT_ALLOWED_EXTENSIONS,
        doubled_quote_escape: bool = False,
        preview_rows: int = DEFAULT_PREVIEW_ROWS,
    ) -> None:
        self.column_defs = tuple(column_defs)
        self.allowed_extensions = tuple(allowed_extensions)
        self.doubled_quote_escape = doubled_quote_escape
        self.preview_rows = preview_rows
        self.last_outcome: ParseOutcome | None = None
        self._token = 0
        self._session = new_session()

    @property
    def session(self) -> ImportSession:
        return self._session

    @property
    def step(self) -> ImportStep:
        return self._session.step

    @property
    def mapping(self) -> tuple[ColumnMapping, ...]:
        return self._session.mapping

    @property
    def row_count(self) -> int:
        return self._session.table.row_count

    @property
    def missing_required_labels(self) -> list[str]:
        return missing_required_labels(self.column_defs, self._session.mapping)

    def _restart(self) -> int:
        if self._session.committing:
            raise WorkflowError("cannot start a new file while a commit is in progress")
        self._token += 1
        self._session = new_session(token=self._token)
        self.last_outcome = None
        return self._token

    def _accept(self, text: str, file_name: str | None) -> ImportSession:
        outcome = parse_outcome(text, doubled_quote_escape=self.doubled_quote_escape)
        self.last_outcome = outcome
        for diag in outcome.diagnostics:
            logger.warning("%s %s", file_name or "<text>", diag.message)
        if not outcome.ok:
            raise ParseError(outcome.failure, file_name)
        self._session = load_table(self._session, outcome.table, self.column_defs, file_name)
        logger.debug(
            "loaded file=%s headers=%d rows=%d mapped=%d",
            file_name,
            outcome.table.column_count,
            outcome.table.row_count,
            sum(1 for m in self._session.mapping if not m.is_skipped),
        )
        return self._session

    async def select_file(self, path: Path | str) -> ImportSession | None:
        """Check, read and parse a file; UPLOAD -> MAP.

        Returns None when the read was superseded by a newer selection or a
        reset before it completed.

        Raises:
            UnsupportedFileKindError: before any read
            ParseError: empty or header-only content (session stays in UPLOAD)
        """
        path = Path(path)
        check_file_kind(path.name, self.allowed_extensions)
        token = self._restart()
        text = await read_text(path)
        if token != self._session.token:
            logger.debug("discarding stale read file=%s token=%d", path.name, token)
            return None
        return self._accept(text, path.name)

    def load_text(self, text: str, file_name: str | None = None) -> ImportSession:
        """Synchronous variant of select_file() for content already in memory."""
        if file_name is not None:
            check_file_kind(file_name, self.allowed_extensions)
        self._restart()
        return self._accept(text, file_name)

    def map_column(self, source_column: str, target_key: str) -> ImportSession:
        self._session = set_target(self._session, source_column, target_key, self.column_defs)
        return self._session

    def back(self) -> ImportSession:
        self._session = back(self._session)
        return self._session

    def reset(self) -> ImportSession:
        """Discard the session (dialog closed).

        In-flight reads become stale. An in-flight commit still runs to the
        end but no longer updates the session that replaced it.
        """
        self._token += 1
        self._session = new_session(token=self._token)
        self.last_outcome = None
        return self._session

    def preview(self, limit: int | None = None) -> Preview:
        """Enter PREVIEW (from MAP) and build the preview table."""
        if self._session.step is ImportStep.MAP:
            self._session = to_preview(self._session, self.column_defs)
            for key, sources in duplicate_targets(self._session.mapping).items():
                logger.warning(
                    "target %s is mapped from %s; the last column wins", key, ", ".join(sources)
                )
        else:
            _require_step(self._session, ImportStep.PREVIEW, "preview")
        return build_preview(
            self._session.table,
            self._session.mapping,
            self.column_defs,
            limit=self.preview_rows if limit is None else limit,
        )

    async def commit(self, writer: Writer) -> int | None:
        """Materialize every row and hand the batch to ``writer``.

        Returns the submitted record count, or None when a commit is already
        in flight.

        Raises:
            CommitError: writer failure; session stays in PREVIEW
        """
        if self._session.committing:
            logger.debug("commit ignored: already committing")
            return None
        _require_step(self._session, ImportStep.PREVIEW, "commit")
        ensure_required(self.column_defs, self._session.mapping)

        token = self._session.token
        file_name = self._session.file_name or "<text>"
        self._session = replace(self._session, committing=True)
        records = materialize(self._session.table, self._session.mapping, self.column_defs)
        try:
            count = await submit_records(records, writer)
        except Exception as e:
            raise CommitError(extract_error_message(e)) from e
        finally:
            # a reset during the write has already replaced the session
            if self._session.token == token:
                self._session = replace(self._session, committing=False)

        logger.info("imported %d records from %s", count, file_name)
        if self._session.token == token:
            self._token += 1
            self._session = new_session(token=self._token)
        return count

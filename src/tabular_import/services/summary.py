from __future__ import annotations

from ..models.result import RunResult

"""SUMMARY line rendering.

Format:
SUMMARY files={total}/{total} success={success} failed={failed}
parsed_rows={parsed} previewed_rows={previewed} submitted={submitted}
elapsed_sec={elapsed}
(single line, space separated)
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
]


def format_seconds(value: float) -> str:
    """Integers without a fraction, tiny values without scientific notation."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(result: RunResult) -> str:
    """Render the SUMMARY line for a run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = RunResult(
        ...     success_files=1, failed_files=0, parsed_rows=12, previewed_rows=10,
        ...     submitted_records=12, start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(result)
        'SUMMARY files=1/1 success=1 failed=0 parsed_rows=12 previewed_rows=10 submitted=12 elapsed_sec=2'
    """
    total = result.total_files
    return (
        f"SUMMARY files={total}/{total} "
        f"success={result.success_files} "
        f"failed={result.failed_files} "
        f"parsed_rows={result.parsed_rows} "
        f"previewed_rows={result.previewed_rows} "
        f"submitted={result.submitted_records} "
        f"elapsed_sec={format_seconds(result.elapsed_seconds)}"
    )

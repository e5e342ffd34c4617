from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from tabular_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, ImportConfig, load_config
from tabular_import.db.connection import resolve_dsn
from tabular_import.db.writers import JsonLinesWriter, PostgresWriter
from tabular_import.logging.init import log_summary, set_level, setup_logging
from tabular_import.models.schema import TargetSchema
from tabular_import.parsing.parser import check_file_kind, decode_bytes, parse
from tabular_import.services.committer import Writer
from tabular_import.services.mapper import auto_map
from tabular_import.services.runner import run_imports
from tabular_import.services.summary import render_summary_line

"""CLI entrypoint.

    tabular-import FILE... --schema NAME [--map SRC=KEY]... [--dry-run]
                   [--output PATH] [--config PATH] [--debug] [--inspect-data]

Each FILE is its own import session against the schema NAME from config.
Records go to PostgreSQL (connection from .env / environment / config) or,
with --output, to a JSON Lines file. --dry-run stops after the preview.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

INSPECT_SAMPLE_ROWS = 3


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env with python-dotenv; .env values win over the process env."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_override(raw: str) -> tuple[str, str]:
    """``"Source Column=target_key"``; an empty key skips the column."""
    source, sep, key = raw.rpartition("=")
    if not sep or not source.strip():
        raise ValueError(f"invalid --map value {raw!r}, expected SOURCE=KEY")
    return source.strip(), key.strip()


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="CSV -> structured record importer")
    p.add_argument("files", nargs="+", help="CSV files to import")
    p.add_argument("--schema", required=True, help="Target schema name from config")
    p.add_argument(
        "--map",
        action="append",
        default=[],
        metavar="SOURCE=KEY",
        help="Override the proposed mapping for a source column (empty KEY skips it)",
    )
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Config YAML path")
    p.add_argument("--output", type=Path, help="Write records to this JSON Lines file instead of the database")
    p.add_argument("--dry-run", action="store_true", help="Stop after the preview")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, proposed mapping and first rows then exit")
    return p.parse_args(argv)


def _inspect_data(files: list[Path], schema: TargetSchema, cfg: ImportConfig) -> int:
    code = EXIT_SUCCESS_ALL
    for f in files:
        print(f"FILE: {f.name}")
        try:
            check_file_kind(f.name, cfg.parser.allowed_extensions)
            table = parse(
                decode_bytes(f.read_bytes()),
                doubled_quote_escape=cfg.parser.doubled_quote_escape,
            )
        except Exception as e:
            print(f"  read_error: {e}")
            code = EXIT_PARTIAL_FAILURE
            continue
        print(f"  rows={table.row_count} columns={table.column_count}")
        for i, m in enumerate(auto_map(table.headers, schema.columns)):
            target = schema.label_for(m.target_key) if m.target_key else "(skip)"
            example = table.sample(i)
            hint = f" (e.g. {example})" if example else ""
            print(f"  {m.source_column} -> {target}{hint}")
        for row in table.rows[:INSPECT_SAMPLE_ROWS]:
            print(f"    sample_row= {list(row)}")
    return code


def _build_writer(args: argparse.Namespace, schema: TargetSchema, cfg: ImportConfig) -> Writer | None:
    if args.dry_run:
        return None
    if args.output is not None:
        return JsonLinesWriter(args.output, schema.defaults)
    return PostgresWriter(resolve_dsn(cfg.database), schema.table, schema.defaults)


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む ([] はテストからの明示的な空引数)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_level(logging.DEBUG)
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
        schema = cfg.schema(args.schema)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    try:
        overrides = [_parse_override(raw) for raw in args.map]
    except ValueError as e:
        logger.error(f"arguments: {e}")
        return EXIT_FATAL

    files = [Path(f) for f in args.files]
    if args.inspect_data:
        return _inspect_data(files, schema, cfg)

    writer = _build_writer(args, schema, cfg)
    mode = "dry-run" if writer is None else ("jsonl" if args.output else "postgres")
    logger.info(f"Importing {len(files)} file(s) into {schema.title} mode={mode}")

    result = asyncio.run(
        run_imports(files, schema, cfg, writer=writer, overrides=overrides)
    )

    summary_line = render_summary_line(result)
    log_summary(summary_line.removeprefix("SUMMARY "))

    if result.failed_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())

from __future__ import annotations

import os
from collections.abc import Mapping

from ..config.loader import DatabaseConfig

"""PostgreSQL connection settings.

Resolution order:
    1. DATABASE_URL / PGDSN environment variables (full DSN)
    2. ``database.dsn`` from config
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling back
       to the matching config key, then to libpq-style defaults

.env is loaded by the CLI (python-dotenv, override) before this runs.
"""

__all__ = [
    "resolve_dsn",
]


def resolve_dsn(db_cfg: DatabaseConfig, environ: Mapping[str, str] | None = None) -> str:
    env = os.environ if environ is None else environ
    dsn = env.get("DATABASE_URL") or env.get("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn

    host = env.get("PGHOST", db_cfg.host or "localhost")
    port = env.get("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = env.get("PGUSER", db_cfg.user or "postgres")
    password = env.get("PGPASSWORD", db_cfg.password or "")
    database = env.get("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn

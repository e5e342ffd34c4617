"""Record writers and PostgreSQL helpers."""

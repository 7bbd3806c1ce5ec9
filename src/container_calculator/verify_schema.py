"""Check that the calculator tables exist in DATABASE_URL."""

from __future__ import annotations

from psycopg2 import connect

from container_calculator import config

REQUIRED_TABLES = {
    "container_types",
    "shipping_routes",
    "container_calculations",
    "cost_components",
    "loading_plans",
}


def missing_tables(existing: set[str]) -> set[str]:
    return REQUIRED_TABLES - existing


def main() -> None:
    if not config.DATABASE_URL:
        raise SystemExit("DATABASE_URL not found. Check .env at repo root.")

    conn = connect(config.DATABASE_URL)
    try:
        with conn.cursor() as cur:
            cur.execute("""
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema='public'
            ORDER BY table_name;
            """)
            tables = {r[0] for r in cur.fetchall()}
    finally:
        conn.close()

    print("Tables:", sorted(tables))
    missing = missing_tables(tables)
    print("Missing:", missing or "none")
    if missing:
        raise SystemExit(1)


if __name__ == "__main__":
    main()

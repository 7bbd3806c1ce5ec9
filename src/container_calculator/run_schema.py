"""Apply schema.sql to DATABASE_URL and load the catalog seed rows."""

from __future__ import annotations

from pathlib import Path

from psycopg2 import connect

from container_calculator import config
from container_calculator.containers import default_container_types, default_shipping_routes

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

CONTAINER_UPSERT = """
INSERT INTO container_types (id, name, type_code, internal_length, internal_width, internal_height,
                             max_payload, tare_weight, cubic_capacity, rental_cost)
VALUES (%(id)s, %(name)s, %(type_code)s, %(internal_length)s, %(internal_width)s, %(internal_height)s,
        %(max_payload)s, %(tare_weight)s, %(cubic_capacity)s, %(rental_cost)s)
ON CONFLICT (id) DO NOTHING
"""

ROUTE_UPSERT = """
INSERT INTO shipping_routes (id, origin_port, destination_port, route_code, transit_days, distance_km,
                             base_handling_cost, documentation_fee, insurance_rate)
VALUES (%(id)s, %(origin_port)s, %(destination_port)s, %(route_code)s, %(transit_days)s, %(distance_km)s,
        %(base_handling_cost)s, %(documentation_fee)s, %(insurance_rate)s)
ON CONFLICT (id) DO NOTHING
"""


def split_statements(sql_text: str) -> list[str]:
    """Split a DDL file on ';', dropping comment-only and empty chunks."""
    statements = []
    for chunk in sql_text.split(";"):
        lines = [line for line in chunk.splitlines() if line.strip() and not line.strip().startswith("--")]
        if lines:
            statements.append("\n".join(lines).strip())
    return statements


def main() -> None:
    print("schema.sql path:", SCHEMA_PATH, "exists:", SCHEMA_PATH.exists())
    if not config.DATABASE_URL:
        raise SystemExit("DATABASE_URL not found. Check .env at repo root.")

    statements = split_statements(SCHEMA_PATH.read_text(encoding="utf-8"))
    print("Statements found:", len(statements))

    conn = connect(config.DATABASE_URL)
    try:
        with conn.cursor() as cur:
            for stmt in statements:
                cur.execute(stmt + ";")
            for container in default_container_types():
                cur.execute(CONTAINER_UPSERT, container.model_dump())
            for route in default_shipping_routes():
                cur.execute(ROUTE_UPSERT, route.model_dump())
        conn.commit()
        print("Committed.")
    finally:
        conn.close()
    print("Done.")


if __name__ == "__main__":
    main()

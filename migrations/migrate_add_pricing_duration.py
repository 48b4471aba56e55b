#!/usr/bin/env python3
"""Migration script for databases created before duration-based pricing.

This migration:
- adds rentals.pricing_duration_minutes (INTEGER, nullable). Existing rentals
  keep NULL, so their late fee uses the 60-minute fallback rate basis.
- adds item_pricing.tolerance_minutes (INTEGER, default 0)
- creates the unique index that allows one open cash register per operator

Usage:
    python migrations/migrate_add_pricing_duration.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import rentdesk modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import text, inspect
from rentdesk.database.factories import create_sqlite_database

OPEN_REGISTER_INDEX = "uq_cash_registers_open_operator"


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column

    Returns:
        True if column exists, False otherwise
    """
    inspector = inspect(engine)
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def index_exists(engine, table_name: str, index_name: str) -> bool:
    """Check if an index exists on a table."""
    inspector = inspect(engine)
    return any(index["name"] == index_name for index in inspector.get_indexes(table_name))


def find_operators_with_several_open_registers(conn) -> list[tuple[int, int]]:
    """Return (operator_id, open_count) for operators with more than one open register."""
    rows = conn.execute(
        text(
            "SELECT operator_id, COUNT(*) FROM cash_registers "
            "WHERE status = 'open' GROUP BY operator_id HAVING COUNT(*) > 1"
        )
    ).fetchall()
    return [(row[0], row[1]) for row in rows]


def migrate_database(database_path: str | None = None) -> None:
    """Bring a legacy database up to the current schema.

    Args:
        database_path: Path to database file. If None, uses default location.

    Raises:
        Exception: If migration fails
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise Exception("Could not get database engine from session")
        finally:
            session.close()

        inspector = inspect(engine)
        for table in ("rentals", "item_pricing", "cash_registers"):
            if table not in inspector.get_table_names():
                raise Exception(f"Table '{table}' does not exist. Please initialize the database schema first.")

        needs_duration = not column_exists(engine, "rentals", "pricing_duration_minutes")
        needs_tolerance = not column_exists(engine, "item_pricing", "tolerance_minutes")
        needs_index = not index_exists(engine, "cash_registers", OPEN_REGISTER_INDEX)

        if needs_index:
            with engine.connect() as conn:
                duplicates = find_operators_with_several_open_registers(conn)
            if duplicates:
                listing = ", ".join(f"operator {op} ({count} open)" for op, count in duplicates)
                raise Exception(
                    f"Cannot create {OPEN_REGISTER_INDEX}: close the extra open registers first: {listing}"
                )

        applied = 0
        with engine.begin() as conn:
            if needs_duration:
                conn.execute(text("ALTER TABLE rentals ADD COLUMN pricing_duration_minutes INTEGER"))
                print("  Added column: rentals.pricing_duration_minutes")
                applied += 1

            if needs_tolerance:
                conn.execute(
                    text("ALTER TABLE item_pricing ADD COLUMN tolerance_minutes INTEGER NOT NULL DEFAULT 0")
                )
                print("  Added column: item_pricing.tolerance_minutes")
                applied += 1

            if needs_index:
                conn.execute(
                    text(
                        f"CREATE UNIQUE INDEX {OPEN_REGISTER_INDEX} "
                        "ON cash_registers (operator_id) WHERE status = 'open'"
                    )
                )
                print(f"  Created index: {OPEN_REGISTER_INDEX}")
                applied += 1

        if applied == 0:
            print("Migration already applied: schema is up to date")
        else:
            print("Migration completed successfully!")

    except Exception as e:
        print(f"Migration failed: {e}")
        raise
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Migrate database to duration-based pricing and single open register per operator"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides RENTDESK_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())

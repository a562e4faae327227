#!/usr/bin/env python3
"""Migration script to store contact_submissions.guest_count as TEXT (older tables used an integer column)."""

import os
import sys
from sqlalchemy import create_engine, text, inspect

# Load environment variables
try:
    from dotenv import load_dotenv
    load_dotenv()
except ImportError:
    pass

DATABASE_URL = os.environ.get("DATABASE_URL")

if not DATABASE_URL:
    print("ERROR: DATABASE_URL environment variable is required.")
    sys.exit(1)

# Heroku uses postgres:// but SQLAlchemy 2.0+ requires postgresql://
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

engine = create_engine(DATABASE_URL)

TABLE_NAME = "contact_submissions"
COLUMN_NAME = "guest_count"


def get_column(connection, table_name, column_name):
    """Return the inspector entry for a column, or None."""
    inspector = inspect(connection)
    if not inspector.has_table(table_name):
        return None
    for column in inspector.get_columns(table_name):
        if column['name'] == column_name:
            return column
    return None


def run_migration():
    print(f"Running migration to convert {TABLE_NAME}.{COLUMN_NAME} to TEXT...")
    print(f"Database: {engine.url.host}:{engine.url.port}/{engine.url.database}")

    with engine.connect() as connection:
        column = get_column(connection, TABLE_NAME, COLUMN_NAME)
        if column is None:
            print(f"✓ Column '{COLUMN_NAME}' not found in '{TABLE_NAME}'; the app creates it as TEXT on startup.")
            return

        if str(column['type']).upper().startswith(("TEXT", "VARCHAR")):
            print(f"✓ Column '{COLUMN_NAME}' is already {column['type']}.")
            return

        print(f"Converting {COLUMN_NAME} from {column['type']} to TEXT...")
        connection.execute(text(
            f"ALTER TABLE {TABLE_NAME} ALTER COLUMN {COLUMN_NAME} TYPE TEXT USING {COLUMN_NAME}::text"
        ))
        connection.commit()
        print(f"✓ Successfully converted {COLUMN_NAME} to TEXT.")

    print("\n✓ Migration completed successfully!")


if __name__ == "__main__":
    run_migration()

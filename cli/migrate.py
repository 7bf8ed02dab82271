#!/usr/bin/env python3

from typing import List, Set
from logger import get_logger

logger = get_logger()


def ensure_migrations_table(conn) -> None:
    conn.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            migration_file TEXT PRIMARY KEY,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)
    conn.commit()


def applied_migrations(conn) -> Set[str]:
    rows = conn.execute("SELECT migration_file FROM schema_migrations").fetchall()
    return {row[0] for row in rows}


def available_migrations(db_manager) -> List[str]:
    migrations_dir = db_manager.get_migrations_dir()
    if not migrations_dir.exists():
        return []
    return sorted(path.name for path in migrations_dir.glob("*.sql"))


def pending_migrations(conn, db_manager) -> List[str]:
    """Migration files not yet recorded in schema_migrations, in apply order."""
    ensure_migrations_table(conn)
    done = applied_migrations(conn)
    return [m for m in available_migrations(db_manager) if m not in done]


def apply_migration(conn, migration_file: str, db_manager) -> None:
    sql = (db_manager.get_migrations_dir() / migration_file).read_text()

    try:
        conn.executescript(sql)
        conn.execute(
            "INSERT INTO schema_migrations (migration_file) VALUES (?)",
            (migration_file,),
        )
        conn.commit()
        logger.info(f"Applied migration: {migration_file}")
    except Exception as e:
        conn.rollback()
        logger.error(f"Error applying migration {migration_file}: {e}")
        raise


def cmd_status(args, db_manager):
    """Show which schema migrations are applied and which are pending."""
    if not db_manager.get_db_path().exists():
        logger.info("No database yet. Run 'sift migrate apply' to create it.")
        return

    with db_manager.connect() as conn:
        pending = set(pending_migrations(conn, db_manager))
        available = available_migrations(db_manager)

        if not available:
            logger.info("No migrations found.")
            return

        logger.info("Migration Status:")
        logger.info("================")
        for migration in available:
            logger.info(f"{migration}: {'PENDING' if migration in pending else 'APPLIED'}")

        logger.info(
            f"\n{len(available)} total, {len(available) - len(pending)} applied, "
            f"{len(pending)} pending"
        )


def cmd_apply(args, db_manager):
    """Apply pending migrations in filename order."""
    with db_manager.connect() as conn:
        pending = pending_migrations(conn, db_manager)

        if not pending:
            logger.info("Database schema is up to date.")
            return

        for migration in pending:
            apply_migration(conn, migration, db_manager)

        logger.info(f"Applied {len(pending)} migration(s).")


def setup_parser(subparsers):
    """Setup migrate subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Create or upgrade the pattern and transaction database",
    )

    migrate_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available migration commands",
        dest="subcommand",
        required=True,
    )

    status_parser = migrate_subparsers.add_parser("status", help="Show migration status")
    status_parser.set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser("apply", help="Apply pending migrations")
    apply_parser.set_defaults(func=cmd_apply)

"""
Database connection management.
Handles per-context connections, write transactions, initialization and teardown.
"""

import logging
import sqlite3
from contextlib import contextmanager

from flask import g, current_app

from utils.errors import LockTimeoutError

logger = logging.getLogger(__name__)


def get_db():
    """
    Get the database connection for the current application context.

    The connection runs in autocommit mode; multi-statement writes go
    through transaction() so the write lock is taken up front.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/cabana_club.db')
        g.db = sqlite3.connect(
            db_path,
            timeout=current_app.config.get('LOCK_TIMEOUT_SECONDS', 15),
            isolation_level=None
        )
        g.db.row_factory = sqlite3.Row
        # Enable foreign key constraints
        g.db.execute('PRAGMA foreign_keys = ON')
        # Enable WAL mode so readers never block the writer
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


def _is_lock_error(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return 'locked' in message or 'busy' in message


@contextmanager
def transaction():
    """
    Run a block inside a single serializable write transaction.

    BEGIN IMMEDIATE acquires SQLite's write lock before the first read, so
    every check made inside the block stays true until COMMIT. Any exception
    rolls the whole block back.

    Yields:
        sqlite3.Connection with an open transaction

    Raises:
        LockTimeoutError: If the write lock is not acquired within
            LOCK_TIMEOUT_SECONDS
    """
    db = get_db()
    if db.in_transaction:
        raise RuntimeError('transaction() does not support nesting')

    try:
        db.execute('BEGIN IMMEDIATE')
    except sqlite3.OperationalError as e:
        if _is_lock_error(e):
            logger.warning(f"Write lock not acquired: {e}")
            raise LockTimeoutError('Database is busy, try again') from e
        raise

    try:
        yield db
        db.commit()
    except sqlite3.OperationalError as e:
        db.rollback()
        if _is_lock_error(e):
            logger.warning(f"Transaction aborted by lock timeout: {e}")
            raise LockTimeoutError('Database is busy, try again') from e
        raise
    except BaseException:
        db.rollback()
        raise


def init_db():
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes, create_triggers
    from database.seed import seed_database

    db = get_db()

    # Drop existing tables (in reverse order of dependencies)
    drop_tables(db)

    with transaction():
        # Create all tables
        create_tables(db)

        # Create indexes
        create_indexes(db)

        # Append-only guards
        create_triggers(db)

        # Insert seed data
        seed_database(db)

    logger.info("Database initialized")

"""
Database package for the CabanaClub reservation engine.

This package provides modular database operations:
- connection: Database connection management (get_db, close_db, init_db, transaction)
- schema: Table creation, indexes and triggers
- seed: Initial seed data

For convenience, all functions are re-exported from this module.
"""

from database.connection import get_db, close_db, init_db, transaction
from database.schema import drop_tables, create_tables, create_indexes, create_triggers
from database.seed import seed_database

__all__ = [
    # Connection
    'get_db',
    'close_db',
    'init_db',
    'transaction',
    # Schema
    'drop_tables',
    'create_tables',
    'create_indexes',
    'create_triggers',
    # Seed
    'seed_database',
]

"""
Helper utilities for creating idempotent Alembic migrations.

These helpers ensure migrations can be run multiple times safely, for
example against a database whose tables were already created from the models.

Usage Examples
--------------

1. Create a table idempotently:

    from migration_helpers import create_table_if_not_exists

    def upgrade():
        create_table_if_not_exists(
            'companies',
            sa.Column('id', sa.Uuid(), primary_key=True),
            sa.Column('company_name', sa.String(255), nullable=False),
        )

2. Create a partial unique index idempotently:

    from migration_helpers import create_index_if_not_exists

    def upgrade():
        create_index_if_not_exists(
            'uq_introduction_requests_pending_pair',
            'introduction_requests',
            ['job_role_id', 'professional_id'],
            unique=True,
            where="status = 'PENDING'"
        )
"""

from alembic import op
import sqlalchemy as sa
from typing import List, Optional


def _inspector():
    return sa.inspect(op.get_bind())


def table_exists(table_name: str) -> bool:
    """
    Check if a table exists.

    Args:
        table_name: Name of the table to check

    Returns:
        True if the table exists, False otherwise
    """
    return _inspector().has_table(table_name)


def index_exists(table_name: str, index_name: str) -> bool:
    """
    Check if an index exists on a table.

    Args:
        table_name: Table the index belongs to
        index_name: Name of the index to check

    Returns:
        True if index exists, False otherwise
    """
    if not table_exists(table_name):
        return False
    return any(ix["name"] == index_name for ix in _inspector().get_indexes(table_name))


def create_table_if_not_exists(table_name: str, *columns_and_constraints) -> bool:
    """
    Create a table only if it doesn't already exist.

    Returns:
        True if the table was created, False if it already existed
    """
    if table_exists(table_name):
        return False
    op.create_table(table_name, *columns_and_constraints)
    return True


def create_index_if_not_exists(
    index_name: str,
    table_name: str,
    columns: List[str],
    unique: bool = False,
    where: Optional[str] = None
) -> bool:
    """
    Create an index only if it doesn't already exist.

    Args:
        index_name: Name of the index
        table_name: Name of the table
        columns: List of column names
        unique: Whether the index should be unique
        where: Optional WHERE clause for a partial index (PostgreSQL and SQLite)

    Returns:
        True if index was created, False if it already existed
    """
    if index_exists(table_name, index_name):
        return False
    kwargs = {}
    if where is not None:
        kwargs["postgresql_where"] = sa.text(where)
        kwargs["sqlite_where"] = sa.text(where)
    op.create_index(index_name, table_name, columns, unique=unique, **kwargs)
    return True


def drop_table_if_exists(table_name: str) -> bool:
    """
    Drop a table only if it exists.
    Useful for downgrade() functions.

    Returns:
        True if the table was dropped, False if it didn't exist
    """
    if table_exists(table_name):
        op.drop_table(table_name)
        return True
    return False

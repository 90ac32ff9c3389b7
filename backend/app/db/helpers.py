"""Database helper functions for natural-key upserts"""
import logging
from typing import Any, Dict, List

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)

# Dialects supporting INSERT ... ON CONFLICT (...) DO UPDATE
_ON_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}
# Dialects supporting INSERT ... ON DUPLICATE KEY UPDATE
_ON_DUPLICATE_INSERTS = {
    "mysql": mysql.insert,
    "mariadb": mysql.insert,
}


def upsert(
    db: Session,
    model: Any,
    values: Dict[str, Any],
    conflict_columns: List[str],
    update_values: Dict[str, Any]
) -> None:
    """Insert a row, or update the existing row that shares its natural key.

    Issued as one atomic statement guarded by the UNIQUE constraint on
    ``conflict_columns``, so concurrent duplicate deliveries cannot create
    two rows for the same key.

    Args:
        db: Database session
        model: Mapped model class
        values: Column values for the insert
        conflict_columns: Columns of the unique natural key
        update_values: Column values applied when the key already exists

    Raises:
        NotImplementedError: If the bound database dialect has no upsert form
    """
    table = model.__table__
    dialect = db.get_bind().dialect.name

    if dialect in _ON_CONFLICT_INSERTS:
        stmt = _ON_CONFLICT_INSERTS[dialect](table).values(**values)
        stmt = stmt.on_conflict_do_update(index_elements=conflict_columns, set_=update_values)
    elif dialect in _ON_DUPLICATE_INSERTS:
        stmt = _ON_DUPLICATE_INSERTS[dialect](table).values(**values)
        stmt = stmt.on_duplicate_key_update(**update_values)
    else:
        raise NotImplementedError(f"Upsert is not supported for dialect '{dialect}'")

    db.execute(stmt)
    logger.debug(f"Upserted {table.name} on {conflict_columns}")

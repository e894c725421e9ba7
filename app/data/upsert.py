# app/data/upsert.py
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def dialect_insert(db: Session, model):
    """INSERT z obsługą ON CONFLICT dla aktualnego dialektu (postgres w prod, sqlite w testach)."""
    dialect = db.get_bind().dialect.name

    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)

    raise NotImplementedError(f"Upsert not supported for dialect {dialect}")

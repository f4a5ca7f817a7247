# field-sales/database.py
from sqlalchemy import create_engine
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import sessionmaker

import config

_connect_args = {"check_same_thread": False} if config.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(config.DATABASE_URL, connect_args=_connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _dialect_insert(db, model):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(model)
    if dialect == "sqlite":
        return sqlite.insert(model)
    raise NotImplementedError(f"Conditional writes are not supported on '{dialect}'.")


def upsert(db, model, values: dict):
    """
    INSERT ... ON CONFLICT (id) DO UPDATE for the given columns only.
    Columns missing from `values` keep whatever the existing row holds.
    """
    stmt = _dialect_insert(db, model).values(**values)
    update_cols = {k: stmt.excluded[k] for k in values if k != "id"}
    db.execute(stmt.on_conflict_do_update(index_elements=["id"], set_=update_cols))


def insert_if_absent(db, model, values: dict) -> bool:
    """Creates the row unless its id already exists. Returns True if it was inserted."""
    stmt = _dialect_insert(db, model).values(**values).on_conflict_do_nothing(index_elements=["id"])
    result = db.execute(stmt)
    return result.rowcount == 1

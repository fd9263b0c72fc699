from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from app.crm.db import build_engine, make_sessionmaker, transaction


@contextmanager
def script_session(db_url: str, *, create_tables: bool = False) -> Generator[Session, None, None]:
    """Standalone session for CLI scripts; the engine is disposed on exit."""
    engine = build_engine(db_url)
    try:
        if create_tables:
            from app.crm.models import Base

            Base.metadata.create_all(bind=engine)
        with transaction(make_sessionmaker(engine)) as s:
            yield s
    finally:
        engine.dispose()

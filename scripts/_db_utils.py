from __future__ import annotations

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.registry.store import RecordStore, store_from_config


def create_script_engine(db_url: str):
    return create_engine(
        db_url,
        future=True,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


@contextmanager
def script_session(db_url: str):
    engine = create_script_engine(db_url)
    sm = sessionmaker(bind=engine, class_=Session, autoflush=False, autocommit=False, expire_on_commit=False, future=True)
    s: Session = sm()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
        engine.dispose()


@contextmanager
def script_record_store(config: Mapping[str, Any]) -> Iterator[RecordStore | None]:
    """
    Record store for scripts, built from the same config keys as the app.
    Yields None when no backend is usable. The SQL backend gets its own
    engine, disposed on exit.
    """
    backend = (config.get("RECORD_STORE_BACKEND") or "sql").strip().lower()
    engine = create_script_engine(config["DATABASE_URL"]) if backend == "sql" else None
    store = store_from_config(config, engine=engine)
    try:
        yield store
    finally:
        if store is not None:
            store.close()
        if engine is not None:
            engine.dispose()

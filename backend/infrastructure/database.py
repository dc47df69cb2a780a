"""SQLModel database configuration."""
from __future__ import annotations

from pathlib import Path

from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session

from app.config import get_settings

DB_PATH = get_settings().database_path


def make_engine(db_path: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )


engine = make_engine(DB_PATH)


def init_db(bind: Engine | None = None) -> None:
    """Create tables if they do not exist."""
    from . import models  # noqa: F401  # ensure SQLModel metadata is loaded

    target = bind or engine
    database = target.url.database
    if database:
        Path(database).parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(target)


def SessionLocal(bind: Engine | None = None) -> Session:
    return Session(bind or engine)

from __future__ import annotations
from typing import Generator
import logging
from sqlmodel import SQLModel, create_engine, Session

from wellchat.config import DB_PATH, SQL_ECHO

logger = logging.getLogger(__name__)

engine = create_engine(f"sqlite:///{DB_PATH}", echo=SQL_ECHO, connect_args={"check_same_thread": False})

def init_db():
    # Import models so their tables are registered on SQLModel.metadata
    from wellchat import models  # noqa: F401
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA foreign_keys=ON")
    SQLModel.metadata.create_all(engine)
    logger.debug("Database ready at %s", DB_PATH)

def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session

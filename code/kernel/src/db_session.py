"""
OnceDrop Database Session Manager
Owns the engine, the session factory and schema creation
"""

from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool

from config.settings import DATABASE_URL, SQL_ECHO
from kernel.src.models import Base


class DatabaseManager:
    """Database manager"""

    def __init__(self, url: Optional[str] = None, engine: Optional[Engine] = None, echo: bool = SQL_ECHO):
        self.url = url or DATABASE_URL
        self._engine = engine if engine is not None else self._create_engine(self.url, echo)
        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )

    @staticmethod
    def _create_engine(url: str, echo: bool) -> Engine:
        if url.startswith("sqlite"):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                echo=echo
            )
        return create_engine(
            url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
            echo=echo
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    def ensure_schema(self):
        """Create every table that does not exist yet."""
        Base.metadata.create_all(bind=self._engine)

    def get_session(self) -> Session:
        return self._session_factory()

    @contextmanager
    def session_scope(self):
        """Transactional session: commit on success, rollback on error."""
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        if self._engine:
            self._engine.dispose()

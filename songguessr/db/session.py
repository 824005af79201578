# ============================================================================
# FILE: songguessr/db/session.py
# ============================================================================
import threading
from typing import Iterator, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from songguessr.config import settings
import logging

logger = logging.getLogger(__name__)


class Database:
    """
    Process-wide database handle.

    The engine (and its connection pool) is created lazily by the first caller.
    Creation happens under a lock, so concurrent first callers wait for the one
    in-flight attempt and then share its engine. A failed engine is disposed by
    reset() and the next caller builds a new one.
    """

    def __init__(self, url: str, echo: bool = False, connect_timeout: int = None):
        self.url = url
        self.echo = echo
        self.connect_timeout = connect_timeout
        self._engine: Optional[Engine] = None
        self._lock = threading.Lock()
        self._sessionmaker = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)

    @property
    def is_memory(self) -> bool:
        return self.url in ("sqlite://", "sqlite:///:memory:")

    def _engine_kwargs(self) -> dict:
        kwargs = {"echo": self.echo, "pool_pre_ping": True}
        if self.url.startswith("sqlite"):
            connect_args = {"check_same_thread": False}
            if self.connect_timeout:
                connect_args["timeout"] = self.connect_timeout
            kwargs["connect_args"] = connect_args
            if self.is_memory:
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
        elif self.connect_timeout:
            kwargs["connect_args"] = {"connect_timeout": self.connect_timeout}
        return kwargs

    def _connect(self) -> Engine:
        engine = create_engine(self.url, **self._engine_kwargs())
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception:
            engine.dispose()
            raise
        logger.info(f"Database connection established ({engine.url.get_backend_name()})")
        return engine

    def get_engine(self) -> Engine:
        engine = self._engine
        if engine is not None:
            return engine
        with self._lock:
            if self._engine is None:
                self._engine = self._connect()
            return self._engine

    def reset(self) -> None:
        """Tear down the current engine; the next caller reconnects"""
        with self._lock:
            if self._engine is not None:
                logger.warning("Disposing database engine after connection failure")
                self._engine.dispose()
                self._engine = None

    def session(self) -> Session:
        return self._sessionmaker(bind=self.get_engine())

    def init(self) -> None:
        """Create tables for all registered models"""
        from songguessr.db.base import Base
        import songguessr.db.models  # noqa: F401
        Base.metadata.create_all(bind=self.get_engine())

    def shutdown(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
                logger.info("Database engine disposed")


database = Database(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    connect_timeout=settings.DB_CONNECT_TIMEOUT,
)


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding a session bound to the shared engine"""
    db = database.session()
    try:
        yield db
    except Exception as e:
        cause = e if isinstance(e, DBAPIError) else e.__cause__
        if isinstance(cause, DBAPIError) and cause.connection_invalidated:
            database.reset()
        raise
    finally:
        db.close()

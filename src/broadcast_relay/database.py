import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Union

from sqlalchemy import Column, DateTime, Integer, MetaData, String, Table, create_engine, delete, func, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import StoreError
from .models import Subscriber

logger = logging.getLogger(__name__)

metadata = MetaData()

subscribers = Table(
    "subscribers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("chat_id", String, unique=True, nullable=False),
    Column("created_at", DateTime, nullable=False),
)


def normalize_database_url(database_url: Union[str, Path]) -> str:
    """Turn DATABASE_URL into a SQLAlchemy URL.

    Bare paths become SQLite files and the ``postgres://`` scheme used by most
    hosting platforms is mapped to ``postgresql://``. Query parameters such as
    ``sslmode=require`` are passed through to the driver.
    """
    url = str(database_url).strip()
    if not url:
        raise StoreError("database url is empty")
    if "://" not in url:
        return f"sqlite:///{url}"
    if url.startswith("postgres://"):
        return "postgresql://" + url[len("postgres://"):]
    return url


class SubscriberStore:
    """Durable set of subscribed chat ids.

    Every operation checks a connection out of the engine and returns it when
    done. The table is created on the first connection, so nothing has to be
    initialised up front.
    """

    def __init__(self, database_url: Union[str, Path]):
        self.url = normalize_database_url(database_url)
        try:
            self.engine: Engine = create_engine(self.url, **self._engine_options(self.url))
        except (SQLAlchemyError, ImportError) as e:
            raise StoreError(f"cannot use database {self.url.split('://', 1)[0]}://: {e}") from e
        self._schema_ready = False
        self._schema_lock = threading.Lock()

    @staticmethod
    def _engine_options(url: str) -> dict:
        if url.startswith("sqlite"):
            # Store calls come from the event loop and from executor threads
            return {"connect_args": {"check_same_thread": False}}
        return {"pool_pre_ping": True}

    @property
    def dialect(self) -> str:
        return self.engine.dialect.name

    def _ensure_schema(self, conn: Connection) -> None:
        if self._schema_ready:
            return
        with self._schema_lock:
            if not self._schema_ready:
                metadata.create_all(conn, checkfirst=True)
                self._schema_ready = True

    @contextmanager
    def _get_conn(self) -> Generator[Connection, None, None]:
        """Get a transactional connection: commit on success, always release"""
        try:
            with self.engine.begin() as conn:
                self._ensure_schema(conn)
                yield conn
        except SQLAlchemyError as e:
            raise StoreError(f"database error: {e}") from e

    def _insert_ignore(self, conn: Connection, values: dict) -> int:
        """INSERT that does nothing when chat_id already exists, returns rows added"""
        if self.dialect == "sqlite":
            stmt = sqlite.insert(subscribers).values(**values).on_conflict_do_nothing()
        elif self.dialect == "postgresql":
            stmt = postgresql.insert(subscribers).values(**values).on_conflict_do_nothing()
        else:
            # Other backends: rely on the unique constraint
            try:
                with conn.begin_nested():
                    conn.execute(insert(subscribers).values(**values))
                return 1
            except IntegrityError:
                return 0
        return conn.execute(stmt).rowcount

    def add(self, chat_id: Union[int, str]) -> None:
        """Add a subscriber, no-op if already present"""
        with self._get_conn() as conn:
            added = self._insert_ignore(conn, {
                "chat_id": str(chat_id),
                "created_at": datetime.now(),
            })
        if added:
            logger.info(f"➕ New subscriber {chat_id}")

    def remove(self, chat_id: Union[int, str]) -> bool:
        """Remove a subscriber, returns True if one was removed"""
        with self._get_conn() as conn:
            result = conn.execute(
                delete(subscribers).where(subscribers.c.chat_id == str(chat_id))
            )
        return result.rowcount > 0

    def list_all(self) -> List[str]:
        """Get every subscribed chat id"""
        with self._get_conn() as conn:
            rows = conn.execute(select(subscribers.c.chat_id)).all()
        return [row.chat_id for row in rows]

    def get_all(self) -> List[Subscriber]:
        """Get every subscriber with its subscription time"""
        with self._get_conn() as conn:
            rows = conn.execute(
                select(subscribers.c.chat_id, subscribers.c.created_at)
                .order_by(subscribers.c.created_at)
            ).all()
        return [Subscriber(chat_id=row.chat_id, created_at=row.created_at) for row in rows]

    def count(self) -> int:
        """Get the number of subscribers"""
        with self._get_conn() as conn:
            return conn.execute(select(func.count()).select_from(subscribers)).scalar_one()

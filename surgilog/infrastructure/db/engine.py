from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from surgilog.config import settings


def _set_sqlite_pragmas(dbapi_connection, _connection_record) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=FULL")
        cursor.execute("PRAGMA busy_timeout=5000")
    finally:
        cursor.close()


def get_engine(database_url: str | None = None) -> Engine:
    url = database_url or settings.database_url
    # Extraction callbacks may reach the store from a pool thread.
    engine = create_engine(
        url,
        echo=settings.echo_sql,
        future=True,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )
    if url.startswith("sqlite"):
        event.listen(engine, "connect", _set_sqlite_pragmas)
    return engine

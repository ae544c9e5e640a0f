import asyncio
import weakref
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from shopfloor.core.config import settings


class Base(DeclarativeBase):
    pass


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


def _ensure_sqlite_dir(url: str) -> None:
    prefix = "sqlite:///"
    if url.startswith(prefix) and url != "sqlite:///:memory:":
        Path(url[len(prefix):]).parent.mkdir(parents=True, exist_ok=True)


def make_engine(url: str, **kwargs):
    _ensure_sqlite_dir(url)
    eng = create_engine(url, connect_args=_connect_args(url), future=True, **kwargs)
    if url.startswith("sqlite"):
        @event.listens_for(eng, "connect")
        def _fk_on(dbapi_conn, _record):
            cur = dbapi_conn.cursor()
            cur.execute("PRAGMA foreign_keys = ON")
            cur.close()
    return eng


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# One database handle per process: every request runs as a single critical section.
# Waiters park on the event loop, never on a worker thread the holder may need.
_db_locks: "weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, asyncio.Lock]" = weakref.WeakKeyDictionary()


def db_lock() -> asyncio.Lock:
    # one lock per running loop; uvicorn serves the app from a single loop
    loop = asyncio.get_running_loop()
    lock = _db_locks.get(loop)
    if lock is None:
        lock = _db_locks[loop] = asyncio.Lock()
    return lock


async def get_db():
    async with db_lock():
        db = SessionLocal()
        try:
            yield db
        finally:
            db.close()


def init_db(bind=None) -> None:
    # Import all models so their tables are registered on Base.metadata
    from shopfloor.models.user import User  # noqa: F401
    from shopfloor.models.auth_session import AuthSession  # noqa: F401
    from shopfloor.models.machine import Machine  # noqa: F401
    from shopfloor.models.project import Project  # noqa: F401
    from shopfloor.models.schedule import ScheduleEntry  # noqa: F401
    from shopfloor.models.audit_log import AuditLog  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)

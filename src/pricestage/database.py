from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .config import settings

connect_args = {}
if settings.database_url.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.database_url, connect_args=connect_args)

# SQLite: UI reads run alongside recalculation passes
if settings.database_url.startswith("sqlite"):
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=30000")
        cursor.close()
SessionLocal = sessionmaker(bind=engine, autoflush=False)


class Base(DeclarativeBase):
    pass


def get_db() -> Session:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def alembic_config(database_url: str | None = None) -> Config:
    project_root = Path(__file__).resolve().parents[2]
    if not (project_root / "alembic").exists():
        # pip install in Docker: __file__ is in site-packages, fallback to WORKDIR
        project_root = Path("/app")
    cfg = Config(str(project_root / "alembic.ini"))
    cfg.set_main_option("script_location", str(project_root / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url)
    return cfg


def run_migrations(database_url: str | None = None) -> None:
    """Run Alembic migrations to bring the database up to date."""
    command.upgrade(alembic_config(database_url), "head")

"""
Database engine and session handling.

The URL is chosen in this order:

1. MySQL through an SSH tunnel when ``USE_SSH`` is set
2. ``DATABASE_URL``
3. direct MySQL when ``DB_HOST`` and ``DB_USER`` are set
4. a local SQLite file
"""
import logging
from typing import Optional

from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from taskboard.core.config import settings

logger = logging.getLogger("taskboard.db")

# Kept open for the life of the process once started
_tunnel = None


def _mysql_url(host: str, port: int) -> str:
    return f"mysql+pymysql://{settings.DB_USER}:{settings.DB_PASSWORD}@{host}:{port}/{settings.DB_NAME}"


def _tunnelled_url() -> str:
    global _tunnel
    from sshtunnel import SSHTunnelForwarder

    if _tunnel is None:
        _tunnel = SSHTunnelForwarder(
            (settings.SSH_HOST, 22),
            ssh_username=settings.SSH_USER,
            ssh_password=settings.SSH_PASSWORD,
            remote_bind_address=(settings.DB_HOST, 3306),
            set_keepalive=60,
        )
        _tunnel.start()
        logger.info(f"SSH tunnel to {settings.SSH_HOST} listening on port {_tunnel.local_bind_port}")
    return _mysql_url("127.0.0.1", _tunnel.local_bind_port)


def database_url() -> str:
    if settings.USE_SSH:
        return _tunnelled_url()
    if settings.DATABASE_URL:
        return settings.DATABASE_URL
    if settings.DB_HOST and settings.DB_USER:
        return _mysql_url(settings.DB_HOST, 3306)
    return "sqlite:///./taskboard.db"


def build_engine(url: Optional[str] = None) -> Engine:
    url = url or database_url()
    if url.startswith("sqlite"):
        # Request handlers run in a thread pool
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True)


engine = build_engine()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create the projects and teams tables if they do not exist."""
    # Registers the tables on the metadata
    import taskboard.models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)


def get_db():
    with Session(engine) as session:
        yield session

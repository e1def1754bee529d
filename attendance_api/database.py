import logging
import re

from fastapi import Request
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool


logger = logging.getLogger(__name__)

Base = declarative_base()

IN_MEMORY_SQLITE_URLS = {"sqlite://", "sqlite:///:memory:"}

CONNECTION_HINTS = [
    (
        "connection refused",
        [
            "Database unreachable. Check the host and port in DATABASE_URL.",
            "A hosted database needs its remote host, not localhost:5432.",
        ],
    ),
    (
        "could not translate host name",
        ["Host not found. Check the domain in DATABASE_URL."],
    ),
    (
        "password authentication failed",
        [
            "Wrong username or password.",
            "Make sure the value in .env has no surrounding quotes.",
        ],
    ),
    (
        "channel_binding",
        ["Try removing ?channel_binding=require from DATABASE_URL."],
    ),
    (
        "ssl",
        ["SSL error. Ensure ?sslmode=require is in DATABASE_URL."],
    ),
]


def build_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url in IN_MEMORY_SQLITE_URLS:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=echo,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False}, echo=echo)
    return create_engine(database_url, pool_pre_ping=True, echo=echo)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=engine,
    )


def mask_database_url(database_url: str) -> str:
    try:
        return make_url(database_url).render_as_string(hide_password=True)
    except ArgumentError:
        return re.sub(r":[^:@/]*@", ":***@", database_url)


def diagnose_connection_error(exc: Exception) -> list[str]:
    message = str(exc).lower()
    for needle, hints in CONNECTION_HINTS:
        if needle in message:
            return hints
    return ["Check DATABASE_URL and the database server status."]


def initialize_database(engine: Engine) -> None:
    # Table metadata lives on the model modules; import them so create_all sees every table.
    import attendance_api.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))


def connect_or_explain(engine: Engine, database_url: str) -> None:
    logger.info("Connecting to database at %s", mask_database_url(database_url))
    try:
        initialize_database(engine)
    except SQLAlchemyError as exc:
        logger.error("Database connection failed: %s", exc)
        for hint in diagnose_connection_error(exc):
            logger.error("  -> %s", hint)
        raise
    logger.info("Database connection established")


def get_db(request: Request):
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

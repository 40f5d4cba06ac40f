"""
=============================================================================
DATABASE.PY — Database configuration
=============================================================================
Connection to the database that holds the state snapshots.

In development: SQLite (a local .db file)
In production: PostgreSQL (whatever DATABASE_URL points to)

How is the backend chosen?
→ If the DATABASE_URL environment variable exists, it is used.
→ Otherwise a local SQLite file is created next to the app.
"""

import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# ─────────────────────────────────────────────────────────────────────────────
# CONNECTION
# ─────────────────────────────────────────────────────────────────────────────

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./habitduel.db")

# Hosted providers hand out "postgres://" but SQLAlchemy wants "postgresql://",
# and we drive it with psycopg v3 → "postgresql+psycopg://"
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql+psycopg://", 1)
elif DATABASE_URL.startswith("postgresql://"):
    DATABASE_URL = DATABASE_URL.replace("postgresql://", "postgresql+psycopg://", 1)


# ─────────────────────────────────────────────────────────────────────────────
# ENGINE
# ─────────────────────────────────────────────────────────────────────────────

def build_engine(database_url: str = DATABASE_URL, echo: bool = False):
    """
    Creates a SQLAlchemy engine for the given URL.

    SQLite needs check_same_thread=False because FastAPI may serve a request
    from a different thread than the one that opened the connection.
    An in-memory SQLite database lives inside a single connection, so it
    gets a StaticPool (every session sees the same data).
    """
    engine_args = {}
    if database_url.startswith("sqlite"):
        engine_args["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            engine_args["poolclass"] = StaticPool
    return create_engine(database_url, echo=echo, **engine_args)


def build_session_factory(engine):
    """Session factory bound to an engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


engine = build_engine()

SessionLocal = build_session_factory(engine)

# ─────────────────────────────────────────────────────────────────────────────
# BASE
# ─────────────────────────────────────────────────────────────────────────────

Base = declarative_base()


def init_db(bind=None):
    """
    Creates every table if it does not exist yet.
    Called once at startup (and by the tests with their own engine).
    """
    # models registers its tables on Base.metadata
    import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool
from fastapi import Request


def create_db_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            # One shared connection so every session sees the same in-memory database
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    # Configure connection pooling to prevent connection exhaustion
    # under concurrent requests from many tenants
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=10,  # Number of connections to maintain persistently
        max_overflow=20,  # Maximum number of connections to create beyond pool_size
        pool_timeout=30,  # Seconds to wait before giving up on getting a connection
        pool_pre_ping=True,  # Verify connections before using them (handles stale connections)
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=False,
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db(request: Request):
    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from fridgy.core.config import settings


def _engine_kwargs(url: str) -> dict:
    # In-memory SQLite has to share one connection across threads
    if url.startswith("sqlite"):
        kwargs: dict = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return kwargs
    return {"pool_pre_ping": True}


engine = create_engine(
    settings.SQLALCHEMY_DATABASE_URI, **_engine_kwargs(settings.SQLALCHEMY_DATABASE_URI)
)


def init_db() -> None:
    # Tables should be created with migrations in deployments with real data.
    # Importing the models registers them on SQLModel.metadata.
    from fridgy import models  # noqa: F401

    SQLModel.metadata.create_all(engine)

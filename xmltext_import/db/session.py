from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from xmltext_import.core.config import get_settings


def build_engine(database_url: str | None = None) -> Engine:
    return create_engine(database_url or get_settings().database_url, pool_pre_ping=True)


def build_session_factory(database_url: str | None = None) -> sessionmaker:
    return sessionmaker(bind=build_engine(database_url), autoflush=False, expire_on_commit=False)

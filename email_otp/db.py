from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base

from shared.runtime_config import normalize_database_url

Base = declarative_base()


def get_engine(database_url: str):
    return create_engine(normalize_database_url(database_url))

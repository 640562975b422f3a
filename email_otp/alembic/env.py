from __future__ import annotations

from alembic import context

from email_otp.core import models  # noqa: F401  registers otp_verifications
from email_otp.db import Base, get_engine
from email_otp.runtime_config import database_url

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    url = database_url()
    if not url:
        raise RuntimeError("DATABASE_URL is required to run migrations")
    engine = get_engine(url)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

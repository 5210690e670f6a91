from logging.config import fileConfig

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

import os
import sys

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    cfg_path = config.config_file_name

    # `flask db` passes migrations/alembic.ini; plain `alembic -c` may run from elsewhere
    if not os.path.isabs(cfg_path) and not os.path.exists(cfg_path):
        candidate = os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini")
        if os.path.exists(candidate):
            cfg_path = candidate

    fileConfig(cfg_path)

# --- billdesk: SQLAlchemy metadata for autogenerate ---
ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from billdesk.extensions import db  # noqa: E402
import billdesk.models  # noqa: F401,E402  (register all models)

target_metadata = db.metadata


def _get_migration_db_url(section: dict | None = None) -> str:
    """Resolve the database URL Alembic should use.

    Priority:
      1) DATABASE_URL (same variable the app reads)
      2) alembic.ini / config values
    """
    section = section or {}

    url = (
        os.environ.get("DATABASE_URL")
        or section.get("sqlalchemy.url")
        or config.get_main_option("sqlalchemy.url")
    )

    if not url:
        raise RuntimeError("DATABASE_URL (or sqlalchemy.url) is not set for Alembic migrations")

    if url.startswith("postgresql+psycopg2://"):
        url = "postgresql://" + url[len("postgresql+psycopg2://") :]

    return url


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode (emit SQL without a DBAPI connection)."""
    url = _get_migration_db_url()

    context.configure(
        url=url,
        target_metadata=target_metadata,
        compare_type=True,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=url.startswith("sqlite"),
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode against a live connection."""
    section = config.get_section(config.config_ini_section, {}) or {}

    url = _get_migration_db_url(section)
    section["sqlalchemy.url"] = url

    connectable = engine_from_config(
        section,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            # SQLite cannot ALTER columns in place
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

import sys
from logging.config import fileConfig
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import engine_from_config, pool

from alembic import context

ROOT_PATH = Path(__file__).parent.parent
sys.path.append(str(ROOT_PATH))
_ = load_dotenv(dotenv_path=ROOT_PATH / ".env")

from skillswap.models import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def get_url():
    from skillswap.config import settings

    db_url = settings.DATABASE_URL

    # Migrations run on the sync drivers.
    if db_url.startswith("sqlite+aiosqlite:"):
        return db_url.replace("sqlite+aiosqlite:", "sqlite:")

    if db_url.startswith("postgresql+asyncpg:"):
        return db_url.replace("postgresql+asyncpg:", "postgresql+psycopg2:")

    return db_url


def run_migrations_offline() -> None:
    context.configure(
        url=get_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = get_url()

    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

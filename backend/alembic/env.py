from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from gleba.core.settings import settings
from gleba.db.base import Base
import gleba.models  # noqa: F401  (enregistre toutes les tables dans Base.metadata)

"""
Environnement Alembic.

Rôle (fonctionnel) :
- Lit l’URL sync (psycopg) depuis les settings, pas depuis alembic.ini.
- Expose Base.metadata pour l’autogénération des migrations.
- Supporte les modes offline (SQL généré) et online (connexion directe).
"""

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

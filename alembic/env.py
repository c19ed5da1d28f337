"""
Environnement Alembic pour les migrations du store de contenus SQL.

L'URL de connexion est celle de l'application (`DATABASE_URL` via `Settings`), avec une base
SQLite locale par défaut pour générer ou rejouer les migrations en développement.
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[attr-defined]

# Permet d'importer `backend` depuis la CLI Alembic
_root = Path(__file__).resolve().parent.parent
for p in (_root, Path.cwd()):
    if str(p) not in sys.path:
        sys.path.append(str(p))

from backend.core.settings import get_settings  # noqa: E402
from backend.infra.repo.models import Base  # noqa: E402

DEFAULT_URL = "sqlite:///./content.db"

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return get_settings().DATABASE_URL or DEFAULT_URL


def run_migrations_offline() -> None:
    """Génère le SQL des migrations sans connexion (bindings littéraux)."""
    context.configure(url=_database_url(), target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Applique les migrations sur une connexion active."""
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

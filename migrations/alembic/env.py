"""Alembic environment for the per-domain databases.

Each domain (blobs, chats, llms, metrics, workspace) is migrated against
its own database URL, resolved through chatsync settings, and keeps its
own alembic_version table. Revision files define upgrade_<domain>() and
downgrade_<domain>() for every domain.

Select domains with: alembic -x domains=chats,llms upgrade head
"""

import re
from logging.config import fileConfig

from alembic import context

from chatsync.config import Domain, get_settings
from chatsync.db.engine import create_db_engine
from chatsync.db.models import DOMAIN_METADATA

config = context.config

if config.config_file_name is not None and config.attributes.get("configure_logger", True):
    fileConfig(config.config_file_name)


def selected_domains() -> list[Domain]:
    """Domains named by -x domains=..., else the ini's domain list."""
    x_args = context.get_x_argument(as_dictionary=True)
    names = x_args.get("domains") or config.get_main_option("domains")
    return [Domain(name) for name in re.split(r",\s*", names.strip()) if name]


def run_migrations_offline() -> None:
    """Emit SQL per domain without connecting."""
    settings = get_settings()
    for domain in selected_domains():
        context.configure(
            url=settings.database_url_for(domain),
            target_metadata=DOMAIN_METADATA[domain],
            literal_binds=True,
            dialect_opts={"paramstyle": "named"},
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations(engine_name=domain.value)


def run_migrations_online() -> None:
    """Connect to each domain database in turn and migrate it."""
    settings = get_settings()
    for domain in selected_domains():
        engine = create_db_engine(settings.database_url_for(domain))
        try:
            with engine.connect() as connection:
                context.configure(
                    connection=connection,
                    target_metadata=DOMAIN_METADATA[domain],
                    upgrade_token=f"{domain.value}_upgrades",
                    downgrade_token=f"{domain.value}_downgrades",
                    render_as_batch=True,
                )
                with context.begin_transaction():
                    context.run_migrations(engine_name=domain.value)
        finally:
            engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

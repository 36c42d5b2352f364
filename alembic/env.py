from logging.config import fileConfig
from alembic import context
from sqlalchemy import engine_from_config, pool
import os
from archive_search.db.session import Base

# import models
from archive_search.models.user import User
from archive_search.models.tag import Tag
from archive_search.models.note import Note, NoteTag
from archive_search.models.archive_document import ArchiveDocument, ArchiveDocumentTag
from archive_search.models.signature_component import SignatureComponent
from archive_search.models.signature_element import SignatureElement, SignatureElementParent
from archive_search.models.log_entry import LogEntry

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name, disable_existing_loggers=False)
target_metadata = Base.metadata

def get_url():
    return config.attributes.get("database_url") or os.getenv("DATABASE_URL") or config.get_main_option("sqlalchemy.url")

def run_migrations_offline():
    context.configure(url=get_url(), target_metadata=target_metadata, literal_binds=True, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    cfg = config.get_section(config.config_ini_section)
    cfg["sqlalchemy.url"] = get_url()
    connectable = engine_from_config(cfg, prefix="sqlalchemy.", poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()

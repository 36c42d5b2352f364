import os
import unittest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "test-secret")

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from archive_search.db.session import Base
from archive_search.models.archive_document import ArchiveDocument, ArchiveDocumentTag
from archive_search.models.log_entry import LogEntry
from archive_search.models.note import Note, NoteTag
from archive_search.models.signature_component import SignatureComponent
from archive_search.models.signature_element import SignatureElement, SignatureElementParent
from archive_search.models.tag import Tag
from archive_search.models.user import User


class ArchiveDbTestCase(unittest.TestCase):
    """Fresh in-memory archive per test class; tests seed what they need in ``seed``."""

    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        Base.metadata.create_all(bind=cls.engine)
        with cls.SessionLocal() as db:
            cls.seed(db)
            db.commit()

    @classmethod
    def tearDownClass(cls):
        Base.metadata.drop_all(bind=cls.engine)
        cls.engine.dispose()

    @classmethod
    def seed(cls, db):
        pass

    def setUp(self):
        self.db = self.SessionLocal()

    def tearDown(self):
        self.db.close()


def seed_users(db):
    db.add_all(
        [
            User(user_id=1, login="admin", role="admin"),
            User(user_id=2, login="alice", role="regular_user"),
            User(user_id=3, login="bob", role="regular_user"),
        ]
    )


def seed_tags(db, *tag_ids):
    db.add_all([Tag(tag_id=tag_id, name=f"tag-{tag_id}") for tag_id in tag_ids])


__all__ = [
    "ArchiveDbTestCase",
    "ArchiveDocument",
    "ArchiveDocumentTag",
    "LogEntry",
    "Note",
    "NoteTag",
    "SignatureComponent",
    "SignatureElement",
    "SignatureElementParent",
    "Tag",
    "User",
    "seed_tags",
    "seed_users",
]

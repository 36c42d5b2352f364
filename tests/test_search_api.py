import unittest
from datetime import timedelta

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tests.base import *  # noqa: F401,F403

from archive_search.core.security import create_jwt
from archive_search.db.session import get_db
from archive_search.main import app


def _auth(user_id, role):
    token = create_jwt({"sub": str(user_id), "role": role}, timedelta(minutes=5))
    return {"Authorization": f"Bearer {token}"}


ADMIN = _auth(1, "admin")
ALICE = _auth(2, "regular_user")
BOB = _auth(3, "regular_user")


class SearchApiTests(ArchiveDbTestCase):
    @classmethod
    def seed(cls, db):
        seed_users(db)
        seed_tags(db, 1, 2)
        db.add(SignatureComponent(signature_component_id=1, name="Fonds"))
        db.flush()
        db.add_all(
            [
                Note(note_id=1, title="alice private", owner_user_id=2),
                Note(note_id=2, title="alice shared", shared=True, owner_user_id=2),
                Note(note_id=3, title="bob private", owner_user_id=3),
                ArchiveDocument(
                    archive_document_id=1,
                    owner_user_id=2,
                    title="Charter",
                    active=True,
                    descriptive_signature_element_ids="[[1,2]]",
                ),
                ArchiveDocument(archive_document_id=2, owner_user_id=2, title="Old charter", active=False),
                ArchiveDocument(archive_document_id=3, owner_user_id=3, title="Ledger", active=True),
                SignatureElement(signature_element_id=1, signature_component_id=1, name="Root"),
                SignatureElement(signature_element_id=2, signature_component_id=1, name="Child"),
                LogEntry(id=1, level="error", message="disk full", category="system"),
                LogEntry(id=2, level="info", message="started", category="system"),
            ]
        )
        db.flush()
        db.add_all(
            [
                NoteTag(note_id=2, tag_id=1),
                NoteTag(note_id=3, tag_id=1),
                ArchiveDocumentTag(archive_document_id=1, tag_id=1),
                ArchiveDocumentTag(archive_document_id=1, tag_id=2),
                SignatureElementParent(child_element_id=2, parent_element_id=1),
            ]
        )

    def setUp(self):
        super().setUp()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()
        super().tearDown()

    def _search(self, entity, headers, query=(), page=1, page_size=10):
        return self.client.post(
            f"/api/{entity}/search",
            json={"query": list(query), "page": page, "pageSize": page_size},
            headers=headers,
        )

    def test_requires_token(self):
        self.assertEqual(self._search("notes", {}).status_code, 401)
        self.assertEqual(self._search("notes", {"Authorization": "Bearer garbage"}).status_code, 401)

    def test_logs_are_admin_only(self):
        self.assertEqual(self._search("logs", ALICE).status_code, 403)
        response = self._search("logs", ADMIN, [{"field": "level", "condition": "EQ", "value": "error"}])
        self.assertEqual(response.status_code, 200)
        self.assertEqual([row["message"] for row in response.json()["data"]], ["disk full"])

    def test_response_shape(self):
        response = self._search("logs", ADMIN, page_size=1)
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(set(body), {"data", "page", "pageSize", "totalSize", "totalPages"})
        self.assertEqual((body["page"], body["pageSize"], body["totalSize"], body["totalPages"]), (1, 1, 2, 2))

    def test_notes_visibility_for_regular_user(self):
        body = self._search("notes", BOB).json()
        self.assertEqual([row["note_id"] for row in body["data"]], [3, 2])
        self.assertEqual(body["totalSize"], 2)

    def test_notes_visibility_is_anded_with_criteria(self):
        body = self._search("notes", BOB, [{"field": "title", "condition": "FRAGMENT", "value": "alice"}]).json()
        self.assertEqual([row["note_id"] for row in body["data"]], [2])

    def test_admin_sees_all_notes_with_owner_and_tags(self):
        body = self._search("notes", ADMIN).json()
        self.assertEqual(body["totalSize"], 3)
        by_id = {row["note_id"]: row for row in body["data"]}
        self.assertEqual(by_id[3]["owner_login"], "bob")
        self.assertEqual([tag["tag_id"] for tag in by_id[2]["tags"]], [1])
        self.assertEqual(by_id[1]["tags"], [])

    def test_notes_by_tag_and_owner_login(self):
        body = self._search(
            "notes",
            ADMIN,
            [
                {"field": "tags", "condition": "ANY_OF", "value": [1]},
                {"field": "owner_login", "condition": "EQ", "value": "alice"},
            ],
        ).json()
        self.assertEqual([row["note_id"] for row in body["data"]], [2])

    def test_malformed_filter_is_ignored(self):
        response = self._search("notes", ADMIN, [{"field": "title", "condition": "FRAGMENT", "value": 12}])
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["totalSize"], 3)

    def test_documents_hide_inactive_by_default(self):
        body = self._search("documents", ALICE).json()
        self.assertEqual([row["archive_document_id"] for row in body["data"]], [3, 1])
        charter = body["data"][1]
        self.assertEqual(sorted(tag["tag_id"] for tag in charter["tags"]), [1, 2])

    def test_regular_user_cannot_lift_active_filter(self):
        body = self._search("documents", ALICE, [{"field": "active", "condition": "EQ", "value": False}]).json()
        self.assertEqual(sorted(row["archive_document_id"] for row in body["data"]), [1, 3])

    def test_admin_can_search_inactive_documents(self):
        body = self._search("documents", ADMIN, [{"field": "active", "condition": "EQ", "value": False}]).json()
        self.assertEqual([row["archive_document_id"] for row in body["data"]], [2])

    def test_documents_by_tag(self):
        body = self._search("documents", ALICE, [{"field": "tags", "condition": "ANY_OF", "value": [2]}]).json()
        self.assertEqual([row["archive_document_id"] for row in body["data"]], [1])

    def test_elements_carry_parent_ids(self):
        body = self._search("elements", ALICE, [{"field": "parent_ids", "condition": "ANY_OF", "value": [1]}]).json()
        self.assertEqual([(row["signature_element_id"], row["parent_ids"]) for row in body["data"]], [(2, [1])])
        body = self._search("elements", ALICE, [{"field": "has_parents", "condition": "EQ", "value": False}]).json()
        self.assertEqual([row["signature_element_id"] for row in body["data"]], [1])

    def test_elements_by_component_name(self):
        query = [{"field": "component_name", "condition": "FRAGMENT", "value": "fond"}]
        body = self._search("elements", ALICE, query).json()
        rows = [(row["signature_element_id"], row["component_name"]) for row in body["data"]]
        self.assertEqual(rows, [(2, "Fonds"), (1, "Fonds")])

    def test_documents_by_descriptive_signature(self):
        body = self._search(
            "documents", ALICE, [{"field": "descriptive_signature_prefix", "condition": "ANY_OF", "value": [[1]]}]
        ).json()
        self.assertEqual([row["archive_document_id"] for row in body["data"]], [1])
        self.assertEqual(body["data"][0]["descriptive_signature_element_ids"], [[1, 2]])
        body = self._search(
            "documents", ALICE, [{"field": "descriptive_signature_prefix", "condition": "EQ", "value": [1, 2]}]
        ).json()
        self.assertEqual([row["archive_document_id"] for row in body["data"]], [1])

    def test_out_of_range_integer_is_a_generic_500(self):
        with self.assertLogs("archive_search.api", level="ERROR"):
            response = self._search("logs", ADMIN, [{"field": "id", "condition": "EQ", "value": 10**30}])
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Search failed"})

    def test_zero_page_size_reports_default(self):
        body = self._search("notes", ADMIN, page_size=0).json()
        self.assertEqual(body["pageSize"], 10)
        self.assertEqual(body["totalPages"], 1)

    def test_request_id_header_is_echoed(self):
        response = self.client.get("/health", headers={"X-Request-ID": "search-check-1"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get("x-request-id"), "search-check-1")
        self.assertEqual(response.headers.get("x-content-type-options"), "nosniff")


class SearchFailureApiTests(unittest.TestCase):
    def test_store_failure_is_a_generic_500(self):
        # A database without the archive tables: every search fails in the store.
        engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        EmptySession = sessionmaker(bind=engine)

        def broken_db():
            db = EmptySession()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = broken_db
        try:
            with TestClient(app) as client:
                response = client.post("/api/logs/search", json={"query": []}, headers=ADMIN)
        finally:
            app.dependency_overrides.clear()
            engine.dispose()
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"detail": "Search failed"})


if __name__ == "__main__":
    unittest.main()

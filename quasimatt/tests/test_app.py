import unittest

from fastapi.testclient import TestClient

from quasimatt.app import create_app
from quasimatt.config import Settings
from quasimatt.db import InMemoryDbClient, PostgresDbClient


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, use_in_memory_backends=True, **overrides)


class QuestionsApiTests(unittest.TestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.client = TestClient(create_app(settings=_settings(), db=self.db))
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def test_post_question_then_list_returns_it_first(self):
        self.client.post("/api/questions", json={"text": "First?"})
        response = self.client.post("/api/questions", json={"text": "Why?"})
        self.assertEqual(response.status_code, 201)
        created = response.json()
        self.assertEqual(created["text"], "Why?")
        self.assertIn("id", created)
        self.assertIn("timestamp", created)

        listed = self.client.get("/api/questions")
        self.assertEqual(listed.status_code, 200)
        payload = listed.json()
        self.assertEqual(len(payload), 2)
        self.assertEqual(payload[0], created)
        self.assertEqual(payload[1]["text"], "First?")

    def test_list_questions_empty(self):
        response = self.client.get("/api/questions")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_post_question_without_text_is_rejected(self):
        response = self.client.post("/api/questions", json={})
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())
        self.assertEqual(self.db.questions, {})

    def test_post_question_without_body_is_rejected(self):
        response = self.client.post("/api/questions")
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())

    def test_responses_are_listed_oldest_first(self):
        question = self.client.post("/api/questions", json={"text": "Why?"}).json()
        url = f"/api/questions/{question['id']}/responses"

        first = self.client.post(url, json={"text": "Because."})
        second = self.client.post(url, json={"text": "Why not?"})
        self.assertEqual(first.status_code, 201)
        self.assertEqual(second.status_code, 201)
        self.assertEqual(first.json()["question_id"], question["id"])

        listed = self.client.get(url)
        self.assertEqual(listed.status_code, 200)
        self.assertEqual(
            [r["text"] for r in listed.json()], ["Because.", "Why not?"]
        )

    def test_responses_for_question_without_any(self):
        question = self.client.post("/api/questions", json={"text": "Hello?"}).json()
        response = self.client.get(f"/api/questions/{question['id']}/responses")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_responses_for_unknown_question_is_empty_list(self):
        response = self.client.get("/api/questions/999/responses")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), [])

    def test_response_to_unknown_question_is_rejected(self):
        response = self.client.post(
            "/api/questions/999/responses", json={"text": "Orphan"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())
        self.assertEqual(self.db.responses, {})

    def test_non_integer_question_id_is_rejected(self):
        response = self.client.post(
            "/api/questions/abc/responses", json={"text": "Hi"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertIn("message", response.json())

    def test_non_integer_question_id_on_read_is_server_error(self):
        response = self.client.get("/api/questions/abc/responses")
        self.assertEqual(response.status_code, 500)
        self.assertIn("question_id", response.json()["message"])

    def test_read_failure_maps_to_500(self):
        def broken():
            from quasimatt.db import StoreError

            raise StoreError("connection refused")

        self.db.list_questions = broken
        response = self.client.get("/api/questions")
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "connection refused"})


class SqlBackedApiTests(unittest.TestCase):
    def setUp(self):
        self.db = PostgresDbClient("sqlite+pysqlite:///:memory:")
        self.client = TestClient(create_app(settings=_settings(), db=self.db))
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def test_end_to_end_question_and_response(self):
        created = self.client.post("/api/questions", json={"text": "Why?"})
        self.assertEqual(created.status_code, 201)
        question = created.json()
        self.assertIsInstance(question["id"], int)

        listed = self.client.get("/api/questions").json()
        self.assertEqual(listed[0]["id"], question["id"])
        self.assertEqual(listed[0]["text"], "Why?")

        url = f"/api/questions/{question['id']}/responses"
        reply = self.client.post(url, json={"text": "Because."})
        self.assertEqual(reply.status_code, 201)
        self.assertEqual(self.client.get(url).json()[0]["text"], "Because.")

    def test_foreign_key_violation_is_rejected(self):
        response = self.client.post(
            "/api/questions/42/responses", json={"text": "Orphan"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.db.list_responses(42), [])


class ShellTests(unittest.TestCase):
    def setUp(self):
        settings = _settings(sw_strategy="network-first", sw_enable_push=False)
        self.client = TestClient(create_app(settings=settings, db=InMemoryDbClient()))

    def test_index_page(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("Ask quasimatt", response.text)
        self.assertIn("/service-worker.js", response.text)

    def test_service_worker_uses_configured_strategy(self):
        response = self.client.get("/service-worker.js")
        self.assertEqual(response.status_code, 200)
        self.assertIn("javascript", response.headers["content-type"])
        self.assertIn("network-first", response.text)
        self.assertNotIn("notificationclick", response.text)

    def test_pwa_assets(self):
        self.assertEqual(self.client.get("/manifest.json").status_code, 200)
        self.assertEqual(self.client.get("/style.css").status_code, 200)
        self.assertEqual(self.client.get("/static/app.js").status_code, 200)
        self.assertEqual(self.client.get("/icon.svg").status_code, 200)

    def test_index_page_carries_api_prefix(self):
        client = TestClient(
            create_app(settings=_settings(api_prefix="/qa"), db=InMemoryDbClient())
        )
        response = client.get("/")
        self.assertIn('data-api-prefix="/qa"', response.text)
        self.assertEqual(client.get("/qa/questions").json(), [])


if __name__ == "__main__":
    unittest.main()

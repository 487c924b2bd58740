"""
Tests for the FastAPI surface.
"""
import os
import sys
import unittest
from unittest.mock import AsyncMock
import logging

import httpx
from fastapi.testclient import TestClient

# Add parent directory to path to allow imports
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from api.main import app, get_orchestrator
from models.entities import Suggestion
from services.cache_service import RequestCache
from services.search_service import SearchOrchestrator

# Disable logging during tests
logging.disable(logging.CRITICAL)

PATH_BLOCK = (
    "START_ID:nm0000158\n"
    "END_ID:nm0000102\n"
    "Tom Hanks -> Kevin Bacon\n"
    "ACTOR_IDS:nm0000158,nm0000102,\n"
    "MOVIE_IDS:tt0112384,\n"
    "MOVIE_TITLES:Apollo 13,"
)

class TestConnectionApi(unittest.TestCase):
    """Tests for the HTTP endpoints with a mocked backend."""

    def setUp(self):
        self.api = AsyncMock()

        async def search(query):
            if query.lower().startswith("tom"):
                return [
                    Suggestion(id="nm0000158", display_name="Tom Hanks"),
                    Suggestion(id="nm0000245", display_name="Tom Cruise"),
                ]
            if query.lower().startswith("kevin"):
                return [Suggestion(id="nm0000102", display_name="Kevin Bacon")]
            return []

        self.api.search_entities.side_effect = search
        self.api.shortest_path.return_value = [PATH_BLOCK]
        self.api.graph_status.return_value = {"building": False, "status": "Graph ready"}

        self.orchestrator = SearchOrchestrator(
            api_client=self.api,
            cache=RequestCache(),
            config={"debounce_seconds": 0.01},
            persist_path="",
            fetch_photos=False
        )
        app.dependency_overrides[get_orchestrator] = lambda: self.orchestrator
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.clear()

    def test_root(self):
        response = self.client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"message": "Connection Finder API"})

    def test_connection_found(self):
        response = self.client.post("/api/connection", json={"first": "Tom Hanks", "second": "Kevin Bacon"})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertIsNone(data["error"])
        self.assertEqual(data["first_id"], "nm0000158")
        self.assertEqual(data["chains"], ["Tom Hanks -[Apollo 13]-> Kevin Bacon"])
        self.assertEqual(data["rendered"][0][1]["url"], "https://www.imdb.com/title/tt0112384/")
        self.assertNotIn("paths", data)

    def test_connection_invalid_input(self):
        response = self.client.post("/api/connection", json={"first": "Tom Hanks", "second": ""})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["error"], "INPUT_INVALID")
        self.assertEqual(data["chains"], [])

    def test_suggestions_then_selection(self):
        response = self.client.get("/api/suggestions", params={"slot": "first", "q": "Tom"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual([s["id"] for s in response.json()], ["nm0000158", "nm0000245"])

        response = self.client.post(
            "/api/selection",
            json={"slot": "first", "id": "nm0000245", "display_name": "Tom Cruise"}
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["state"], "SELECTED")
        self.assertEqual(self.orchestrator.first.selected_id, "nm0000245")
        self.assertEqual(self.orchestrator.first.text, "Tom Cruise")

    def test_selection_must_be_a_current_suggestion(self):
        response = self.client.post(
            "/api/selection",
            json={"slot": "second", "id": "nm0000102", "display_name": "Kevin Bacon"}
        )
        self.assertEqual(response.status_code, 400)

    def test_suggestions_rejects_unknown_slot(self):
        response = self.client.get("/api/suggestions", params={"slot": "third", "q": "Tom"})
        self.assertEqual(response.status_code, 422)

    def test_selection_then_connection_keeps_selection(self):
        self.client.get("/api/suggestions", params={"slot": "first", "q": "Tom"})
        self.client.post("/api/selection", json={"slot": "first", "id": "nm0000158", "display_name": "Tom Hanks"})
        self.api.search_entities.reset_mock()

        response = self.client.post("/api/connection", json={"second": "nm0000102"})

        self.assertIsNone(response.json()["error"])
        self.api.search_entities.assert_not_awaited()
        self.api.shortest_path.assert_awaited_once_with("nm0000158", "nm0000102", 5)

    def test_health(self):
        self.client.post("/api/connection", json={"first": "Tom Hanks", "second": "Kevin Bacon"})

        response = self.client.get("/api/health")

        data = response.json()
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["submissions_processed"], 1)
        self.assertEqual(data["backend"]["status"], "Graph ready")
        self.assertGreater(data["cache_entries"], 0)

    def test_health_degraded_when_backend_down(self):
        self.api.graph_status.side_effect = httpx.ConnectError("down")

        data = self.client.get("/api/health").json()

        self.assertEqual(data["status"], "degraded")
        self.assertIsNone(data["backend"])

class TestServiceNotReady(unittest.TestCase):
    """Without a started orchestrator the endpoints report unavailability."""

    def test_503_before_startup(self):
        client = TestClient(app)
        response = client.get("/api/health")
        self.assertEqual(response.status_code, 503)

if __name__ == "__main__":
    unittest.main()

"""
HTTP tests for the FastAPI application. The LLM ranker is replaced by fakes.
"""

import logging
import unittest
from pathlib import Path

from fastapi.testclient import TestClient

from app import create_app
from catalog import Catalog, CatalogUnavailable
from matching.llm_ranker import ConfigurationError, RankerTimeout
from models import InternshipMatch, Settings
from storage import MemStorage

DATA_DIR = Path(__file__).resolve().parents[1] / "data"

FINANCE_CANDIDATE = {
    "fullName": "Priya Sharma",
    "email": "priya@example.com",
    "education": "undergraduate",
    "skills": ["Python", "Excel"],
    "sectors": ["Finance"],
    "locations": ["Any Location"],
    "language": "en",
}


class UnavailableRanker:
    """Always times out, forcing the rule-based fallback."""

    def __init__(self):
        self.calls = 0

    async def rank_internships(self, candidate, internships):
        self.calls += 1
        raise RankerTimeout("simulated timeout")


class ReversingRanker:
    """Returns the shortlist reversed with a fixed score."""

    async def rank_internships(self, candidate, internships):
        return [
            InternshipMatch(internship=i, match_percentage=75, ai_explanation="Ranked by model")
            for i in reversed(internships)
        ]


class BrokenStorage(MemStorage):
    def get_all_internships(self):
        raise CatalogUnavailable("catalog store offline")


class DisconnectedStorage(MemStorage):
    def create_match_result(self, *args, **kwargs):
        raise OSError("connection reset")


def settings():
    return Settings(openai_api_key=None, data_dir=DATA_DIR)


class TestCatalogEndpoints(unittest.TestCase):

    def setUp(self):
        self.app = create_app(settings=settings(), ranker=UnavailableRanker())

    def test_root(self):
        with TestClient(self.app) as client:
            response = client.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["status"], "ok")

    def test_skills(self):
        with TestClient(self.app) as client:
            skills = client.get("/api/skills").json()["skills"]
        self.assertIn("Excel", skills)
        self.assertEqual(len(skills), len(set(skills)))

    def test_locations(self):
        with TestClient(self.app) as client:
            locations = client.get("/api/locations").json()["locations"]
        self.assertIn("Remote", locations)
        self.assertIn("Bengaluru", locations)
        self.assertEqual(len(locations), len(set(locations)))


class TestMatchEndpoints(unittest.TestCase):

    def test_financial_analyst_returned_without_llm(self):
        ranker = UnavailableRanker()
        app = create_app(settings=settings(), ranker=ranker)

        with TestClient(app) as client:
            response = client.post("/api/matches", json=FINANCE_CANDIDATE)

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertIn("candidateId", body)
        matches = body["matches"]
        self.assertLessEqual(len(matches), 10)
        self.assertEqual(ranker.calls, 1)

        top = matches[0]
        self.assertEqual(top["internship"]["title"], "Financial Analyst Trainee")
        self.assertEqual(top["matchPercentage"], 80)
        self.assertIn("aiExplanation", top)
        self.assertIn("applyLink", top["internship"])

        percentages = [m["matchPercentage"] for m in matches]
        self.assertEqual(percentages, sorted(percentages, reverse=True))

    def test_history_round_trip(self):
        app = create_app(settings=settings(), ranker=ReversingRanker())

        with TestClient(app) as client:
            created = client.post("/api/matches", json=FINANCE_CANDIDATE).json()
            history = client.get(f"/api/matches/{created['candidateId']}").json()

        self.assertEqual(
            sorted(m["internship"]["id"] for m in history["matches"]),
            sorted(m["internship"]["id"] for m in created["matches"]),
        )
        self.assertTrue(all(m["aiExplanation"] == "Ranked by model" for m in history["matches"]))

    def test_history_unknown_candidate(self):
        app = create_app(settings=settings(), ranker=UnavailableRanker())
        with TestClient(app) as client:
            response = client.get("/api/matches/does-not-exist")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"matches": []})

    def test_history_drops_removed_internships(self):
        storage = MemStorage()
        app = create_app(settings=settings(), storage=storage, ranker=UnavailableRanker())

        with TestClient(app) as client:
            created = client.post("/api/matches", json=FINANCE_CANDIDATE).json()
            removed_id = created["matches"][0]["internship"]["id"]
            del storage._internships[removed_id]
            history = client.get(f"/api/matches/{created['candidateId']}").json()

        ids = [m["internship"]["id"] for m in history["matches"]]
        self.assertNotIn(removed_id, ids)
        self.assertEqual(len(ids), len(created["matches"]) - 1)

    def test_remote_only_without_remote_internships(self):
        storage = MemStorage()
        records = [
            {"title": "Data Analyst Intern", "company": "DataTech", "location": "Pune",
             "skills": ["Python", "Excel"], "sector": "IT"},
        ]
        for record in records:
            storage.create_internship(record)
        app = create_app(
            settings=settings(),
            storage=storage,
            catalog=Catalog(records, [], []),
            ranker=UnavailableRanker(),
        )

        with TestClient(app) as client:
            response = client.post("/api/matches", json={**FINANCE_CANDIDATE, "locations": ["Remote"]})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["matches"], [])

    def test_invalid_payload_is_400(self):
        app = create_app(settings=settings(), ranker=UnavailableRanker())
        invalid = [
            {**FINANCE_CANDIDATE, "skills": []},
            {**FINANCE_CANDIDATE, "education": "doctorate"},
            {k: v for k, v in FINANCE_CANDIDATE.items() if k != "locations"},
        ]
        with TestClient(app) as client:
            for payload in invalid:
                response = client.post("/api/matches", json=payload)
                self.assertEqual(response.status_code, 400)
                self.assertIn("message", response.json())

    def test_internal_error_is_500(self):
        app = create_app(
            settings=settings(),
            storage=BrokenStorage(),
            catalog=Catalog([], [], []),
            ranker=UnavailableRanker(),
        )
        with TestClient(app) as client:
            response = client.post("/api/matches", json=FINANCE_CANDIDATE)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"message": "Failed to generate matches"})

    def test_store_write_error_still_returns_matches(self):
        app = create_app(settings=settings(), storage=DisconnectedStorage(), ranker=UnavailableRanker())
        with TestClient(app) as client:
            response = client.post("/api/matches", json=FINANCE_CANDIDATE)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["matches"][0]["matchPercentage"], 80)


class TestStartup(unittest.TestCase):

    def test_missing_api_key_fails_startup(self):
        app = create_app(settings=settings())
        with self.assertRaises(ConfigurationError):
            with TestClient(app):
                pass

    def test_log_level_from_settings(self):
        root = logging.getLogger()
        previous = root.level
        try:
            create_app(settings=Settings(openai_api_key=None, data_dir=DATA_DIR, log_level="debug"))
            self.assertEqual(root.level, logging.DEBUG)
        finally:
            root.setLevel(previous)


if __name__ == "__main__":
    unittest.main()

"""Tests for the FastAPI API endpoints."""

import pytest
from fastapi.testclient import TestClient

from rotation_engine.api.app import create_app
from rotation_engine.models import RecommendationConfig
from rotation_engine.selector.engine import RecommendationEngine


@pytest.fixture
def client():
    """Create a test client with a fresh engine."""
    config = RecommendationConfig(history_chunk_ms=1000)
    app = create_app(engine=RecommendationEngine(config))
    return TestClient(app)


def _person(entity_id, location="unassigned"):
    return {"id": entity_id, "type": "person", "location": location}


class TestPairingEndpoint:
    def test_pairs_unassigned_people(self, client):
        response = client.post("/recommendations/pairing", json={
            "board": {
                "entities": [_person("p1"), _person("p2")],
                "lanes": [],
            },
        })
        assert response.status_code == 200
        data = response.json()
        assert data["no_solution"] is None
        assert len(data["moves"]) == 1
        assert data["moves"][0]["lane"] == "new-lane"
        assert sorted(data["moves"][0]["entities"]) == ["p1", "p2"]

    def test_uses_history(self, client):
        response = client.post("/recommendations/pairing", json={
            "board": {"entities": [_person("p1"), _person("p2"), _person("p3")]},
            "history": [
                {"id": "10", "entities": [_person("p1", "l1"), _person("p2", "l1")]},
                {"id": "11", "entities": {
                    "p1": {"type": "person", "location": "l1"},
                    "p3": {"type": "person", "location": "l1"},
                }},
            ],
        })
        assert response.status_code == 200
        groups = sorted(sorted(m["entities"]) for m in response.json()["moves"])
        assert groups == [["p1"], ["p2", "p3"]]

    def test_accepts_current_time(self, client):
        response = client.post("/recommendations/pairing", json={
            "board": {"entities": [_person("p1"), _person("p2")]},
            "history": [{"id": "1", "entities": [_person("p1", "l1"), _person("p2", "l1")]}],
            "now": "2024-05-01T12:00:00Z",
        })
        assert response.status_code == 200
        assert len(response.json()["moves"]) == 1

    def test_no_solution(self, client):
        response = client.post("/recommendations/pairing", json={
            "board": {
                "entities": [_person("p1", "l1")],
                "lanes": [{"id": "l1"}, {"id": "l2"}, {"id": "l3"}],
            },
        })
        assert response.status_code == 200
        data = response.json()
        assert data["moves"] is None
        assert data["no_solution"]["reason"]

    def test_ignores_records_without_ids(self, client):
        response = client.post("/recommendations/pairing", json={
            "board": {
                "entities": [{"type": "person"}, _person("p1"), _person("p2")],
                "lanes": [{"locked": True}],
            },
        })
        assert response.status_code == 200
        moves = response.json()["moves"]
        assert len(moves) == 1
        assert sorted(moves[0]["entities"]) == ["p1", "p2"]

    def test_rejects_malformed_board(self, client):
        response = client.post("/recommendations/pairing", json={"board": {"entities": "p1"}})
        assert response.status_code == 422


class TestAssignmentEndpoint:
    def test_assigns_roles(self, client):
        response = client.post("/recommendations/assignment", json={
            "primary_type": "person",
            "secondary_type": "role",
            "board": {
                "entities": [_person("p1", "l1"), {"id": "r1", "type": "role"}],
                "lanes": [{"id": "l1"}],
            },
        })
        assert response.status_code == 200
        assert response.json()["moves"] == [{"lane": "l1", "entities": ["r1"]}]

    def test_missing_types(self, client):
        response = client.post("/recommendations/assignment", json={"board": {}})
        assert response.status_code == 422


class TestCandidatesEndpoint:
    def test_lists_candidates(self, client):
        response = client.post("/recommendations/candidates", json={
            "board": {"entities": [_person("p1"), _person("p2"), _person("p3"), _person("p4")]},
        })
        assert response.status_code == 200
        data = response.json()
        assert data["feasible"] is True
        assert data["truncated"] is False
        assert len(data["candidates"]) == 3

    def test_truncates(self, client):
        response = client.post("/recommendations/candidates", json={
            "board": {"entities": [_person("p1"), _person("p2"), _person("p3"), _person("p4")]},
            "limit": 2,
        })
        data = response.json()
        assert data["truncated"] is True
        assert len(data["candidates"]) == 2

    def test_reports_infeasible_boards(self, client):
        response = client.post("/recommendations/candidates", json={
            "board": {"entities": [], "lanes": [{"id": "l1"}]},
        })
        assert response.json()["feasible"] is False


class TestHistoryBucketEndpoint:
    def test_bucket_for_timestamp(self, client):
        response = client.get("/history/bucket", params={"timestamp_ms": 12_345})
        assert response.status_code == 200
        assert response.json() == {"bucket": 12}

    def test_bucket_for_now(self, client):
        response = client.get("/history/bucket")
        assert response.status_code == 200
        assert response.json()["bucket"] > 1_600_000_000

    def test_invalid_timestamp(self, client):
        response = client.get("/history/bucket", params={"timestamp_ms": "inf"})
        assert response.status_code == 400

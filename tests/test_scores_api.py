"""Tests for the score and leaderboard endpoints."""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.database import get_match_store
from app.main import app
from app.services.errors import TransientPersistenceError

SCORES = "/api/v1/scores/"
LEADERBOARD = "/api/v1/leaderboard/"


def submission(**overrides):
    body = {
        "playerName": "alice",
        "age": 30,
        "country": "NZ",
        "score": 1200,
        "kills": 12,
        "deaths": 1,
        "accuracy": 41.5,
        "rank": None,
        "matchDate": "2024-05-01T10:00:00Z",
        "mapName": "Training Grounds",
    }
    body.update(overrides)
    return body


class TestSubmitScore:
    """Tests for POST /scores."""

    def test_submit(self, client):
        """Test a valid submission is saved and acknowledged."""
        response = client.post(SCORES, json=submission())

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Score saved successfully"
        assert data["playerId"] > 0
        assert data["matchId"] > 0

    def test_missing_player_name(self, client):
        """Test a submission without a name is rejected with 400."""
        body = submission()
        del body["playerName"]
        response = client.post(SCORES, json=body)
        assert response.status_code == 400

        response = client.post(SCORES, json=submission(playerName="   "))
        assert response.status_code == 400

        assert client.get(SCORES).json() == []

    def test_invalid_match_date(self, client):
        """Test an unparseable match date is rejected with 400."""
        response = client.post(SCORES, json=submission(matchDate="yesterday"))
        assert response.status_code == 400

    def test_loose_values_coerced(self, client):
        """Test non-numeric statistics fall back instead of failing."""
        response = client.post(SCORES, json=submission(
            score="lots", kills=None, accuracy="n/a", rank="first", age=-5, mapName=None,
        ))
        assert response.status_code == 200

        row = client.get(SCORES).json()[0]
        assert row["score"] == 0
        assert row["kills"] == 0
        assert row["accuracy"] is None
        assert row["rank"] is None
        assert row["mapName"] == "Unknown"

    def test_store_failure(self, client):
        """Test a persistence failure answers 500."""
        class BrokenStore:
            async def submit(self, result):
                raise TransientPersistenceError("database is down")

        app.dependency_overrides[get_match_store] = lambda: BrokenStore()
        response = client.post(SCORES, json=submission())

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to save score"


class TestListScores:
    """Tests for GET /scores."""

    def test_list_shape(self, client):
        """Test rows use the camelCase wire names."""
        client.post(SCORES, json=submission())
        rows = client.get(SCORES).json()

        assert len(rows) == 1
        row = rows[0]
        assert row["playerName"] == "alice"
        assert row["score"] == 1200
        assert row["accuracy"] == 41.5
        assert row["matchDate"] == "2024-05-01"
        assert row["mapName"] == "Training Grounds"
        assert {"playerId", "matchId", "kills", "deaths", "rank"} <= set(row)

    def test_limit(self, client):
        """Test the limit query parameter caps rows."""
        for score in (100, 200, 300):
            client.post(SCORES, json=submission(score=score))
        rows = client.get(SCORES, params={"limit": 2}).json()
        assert [r["score"] for r in rows] == [300, 200]

        assert client.get(SCORES, params={"limit": 0}).status_code == 422

    def test_player_scores(self, client):
        """Test one player's history."""
        client.post(SCORES, json=submission(playerName="alice", score=100))
        client.post(SCORES, json=submission(playerName="bob", score=900))

        rows = client.get(f"{SCORES}player/alice").json()
        assert [r["playerName"] for r in rows] == ["alice"]
        assert client.get(f"{SCORES}player/nobody").json() == []


class TestLeaderboard:
    """Tests for GET /leaderboard."""

    def test_aggregates(self, client):
        """Test one row per player with totals."""
        client.post(SCORES, json=submission(score=1000, accuracy=40))
        client.post(SCORES, json=submission(score=500, accuracy=60, rank=2))
        client.post(SCORES, json=submission(playerName="bob", score=200))

        rows = client.get(LEADERBOARD).json()
        assert [r["playerName"] for r in rows] == ["alice", "bob"]
        alice = rows[0]
        assert alice["gamesPlayed"] == 2
        assert alice["totalScore"] == 1500
        assert alice["averageAccuracy"] == 50.0
        assert alice["bestRank"] == 2
        assert alice["bestScore"] == 1000
        assert alice["totalKills"] == 24


class TestServiceEndpoints:
    """Tests for root and health."""

    def test_health(self, client):
        """Test the health endpoint."""
        assert client.get("/health").json() == {"status": "healthy"}

    def test_root(self, client):
        """Test the root endpoint names the service."""
        assert client.get("/").json()["name"] == "Dead Zone Arena"

"""Tests for the simulation session endpoints."""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.api.routes import simulations as simulation_routes

SIMULATIONS = "/api/v1/simulations/"


def start(client, **body):
    payload = {"player_name": "alice"}
    payload.update(body)
    response = client.post(SIMULATIONS, json=payload)
    assert response.status_code == 200
    return response.json()


class TestSessions:
    """Tests for session lifecycle."""

    def test_start(self, client):
        """Test a new session starts a running match with the SMG."""
        state = start(client, age=30, country="NZ")

        assert state["running"]
        assert state["health"] == 100
        assert state["map_name"] == "Training Grounds"
        assert state["weapon"]["weapon_id"] == "smg"
        assert state["adversaries"] == []

    def test_start_requires_name(self, client):
        """Test a blank name is rejected by validation."""
        response = client.post(SIMULATIONS, json={"player_name": ""})
        assert response.status_code == 422

    def test_unknown_session(self, client):
        """Test unknown ids answer 404."""
        assert client.get(f"{SIMULATIONS}missing").status_code == 404
        assert client.post(f"{SIMULATIONS}missing/fire").status_code == 404

    def test_delete(self, client):
        """Test deleting a session removes it without reporting a result."""
        state = start(client)
        session_id = state["session_id"]

        response = client.delete(f"{SIMULATIONS}{session_id}")
        assert response.json()["status"] == "deleted"
        assert client.get(f"{SIMULATIONS}{session_id}").status_code == 404
        assert client.get("/api/v1/scores/").json() == []

    def test_tick(self, client):
        """Test ticking advances the clock and spawns the first adversary."""
        session_id = start(client)["session_id"]
        state = client.post(f"{SIMULATIONS}{session_id}/tick", params={"ticks": 10}).json()

        assert state["now_ms"] == 160
        assert len(state["adversaries"]) == 1


class TestCommands:
    """Tests for player commands over HTTP."""

    def test_fire_at_adversary(self, client):
        """Test a rifle headshot kills and scores."""
        session_id = start(client)["session_id"]
        state = client.post(f"{SIMULATIONS}{session_id}/tick").json()
        head = state["adversaries"][0]["head_surface"]

        client.post(f"{SIMULATIONS}{session_id}/switch/rifle")
        state = client.post(
            f"{SIMULATIONS}{session_id}/fire", json={"aim": {"surface_id": head}}
        ).json()

        assert state["last_shot"]["fired"]
        assert state["last_shot"]["headshot"]
        assert state["last_shot"]["killed"]
        assert state["score"] == 100
        assert state["kills"] == 1
        assert state["adversaries"] == []

    def test_fire_blocked(self, client):
        """Test a shot inside the fire interval is reported as not fired."""
        session_id = start(client)["session_id"]
        client.post(f"{SIMULATIONS}{session_id}/switch/1")
        client.post(f"{SIMULATIONS}{session_id}/fire")
        state = client.post(f"{SIMULATIONS}{session_id}/fire").json()

        assert state["last_shot"] == {
            "fired": False, "hit": False, "adversary_id": None,
            "headshot": False, "damage": 0.0, "killed": False,
        }
        assert state["weapon"]["magazine"] == 11

    def test_trigger_and_reload(self, client):
        """Test held fire, release and reload."""
        session_id = start(client)["session_id"]
        state = client.post(f"{SIMULATIONS}{session_id}/trigger/down").json()
        assert state["weapon"]["sustained_fire"]

        state = client.post(f"{SIMULATIONS}{session_id}/tick", params={"ticks": 7}).json()
        assert state["weapon"]["magazine"] == 38

        state = client.post(f"{SIMULATIONS}{session_id}/trigger/up").json()
        assert not state["weapon"]["sustained_fire"]

        state = client.post(f"{SIMULATIONS}{session_id}/reload").json()
        assert state["weapon"]["reloading"]

    def test_switch_unknown_weapon(self, client):
        """Test an unknown weapon answers 404."""
        session_id = start(client)["session_id"]
        response = client.post(f"{SIMULATIONS}{session_id}/switch/railgun")
        assert response.status_code == 404

    def test_move_and_aim(self, client):
        """Test movement and clearing the aim."""
        session_id = start(client)["session_id"]
        state = client.post(f"{SIMULATIONS}{session_id}/move", json={"dx": 2.0, "dz": -1.0}).json()
        assert state["player_position"] == [2.0, -1.0]

        response = client.post(f"{SIMULATIONS}{session_id}/aim", json={"aim": None})
        assert response.status_code == 200


class TestMatchEnd:
    """Tests for death and background reporting."""

    def test_death_reports_score(self, client):
        """Test a finished match is stored in the background and its session released."""
        session_id = start(client, age=30)["session_id"]
        session = simulation_routes._sessions[session_id]
        adversary = session.simulation.spawn_adversary()
        adversary.x, adversary.z = 1.0, 0.0
        session.simulation.context.health = 10

        state = client.post(f"{SIMULATIONS}{session_id}/tick").json()
        assert not state["running"]
        assert state["health"] == 0
        assert state["result"]["deaths"] == 1
        assert session_id not in simulation_routes._sessions
        assert client.get(f"{SIMULATIONS}{session_id}").status_code == 404

        client.portal.call(session.reporter.drain)
        rows = client.get("/api/v1/scores/player/alice").json()
        assert len(rows) == 1
        assert rows[0]["deaths"] == 1
        assert rows[0]["mapName"] == "Training Grounds"

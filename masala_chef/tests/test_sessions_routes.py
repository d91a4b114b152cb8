"""
Tests for the cooking session and recipe API routes.
"""
import threading

from masala_chef.engine.recipes import ALOO_BHUJIA


def create(client, **body):
    response = client.post("/api/sessions", json=body)
    assert response.status_code == 201
    return response.json()


def play_step(client, session_id, step_id, option=None):
    step = ALOO_BHUJIA.get_step(step_id)
    validation = client.post(
        f"/api/sessions/{session_id}/validate",
        json={"action": step.action.value, "target_item": step.target_item, "step_id": step_id},
    )
    assert validation.status_code == 200
    assert validation.json()["legal"] is True
    return client.post(
        f"/api/sessions/{session_id}/steps/{step_id}/complete",
        json={"chosen_option": option or step.preferred_option},
    )


class TestRecipeRoutes:

    def test_list_recipes(self, client):
        response = client.get("/api/recipes")

        assert response.status_code == 200
        assert [r["key"] for r in response.json()] == ["aloo_bhujia"]

    def test_get_recipe(self, client):
        response = client.get("/api/recipes/aloo_bhujia")

        assert response.status_code == 200
        data = response.json()
        assert len(data["steps"]) == 13
        assert data["steps"][6]["target_item"] == "container-big"


class TestSessionLifecycle:

    def test_create_session(self, client):
        data = create(client)

        assert data["recipe_key"] == "aloo_bhujia"
        assert data["phase"] == "in_progress"
        assert data["score"] == 0
        assert data["current_step"]["id"] == 1
        assert data["progress"] == {"total": 13, "completed": 0, "percentage": 0.0}

    def test_create_unknown_recipe(self, client):
        response = client.post("/api/sessions", json={"recipe_key": "biryani"})

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "RECIPE_NOT_FOUND"

    def test_session_limit(self, client):
        """The test registry holds three sessions."""
        for _ in range(3):
            create(client)

        response = client.post("/api/sessions", json={})

        assert response.status_code == 429
        assert response.json()["detail"]["error_code"] == "SESSION_LIMIT_EXCEEDED"

    def test_finished_sessions_do_not_count_toward_limit(self, client):
        """Finalizing three sessions leaves room for a fourth."""
        for _ in range(3):
            session_id = create(client)["session_id"]
            assert client.post(f"/api/sessions/{session_id}/finalize").status_code == 200

        response = client.post("/api/sessions", json={})

        assert response.status_code == 201
        assert client.get("/health").json()["active_sessions"] == 1

    def test_select_then_get(self, client):
        session_id = create(client)["session_id"]

        response = client.post(f"/api/sessions/{session_id}/select")
        assert response.status_code == 200
        assert response.json()["milestones"]["potato_selected"] is True

        data = client.get(f"/api/sessions/{session_id}").json()
        assert [step["id"] for step in data["next_steps"]] == [1, 4]
        assert data["hints"] == ["Wash the potato", "Or place the pan on the stove"]

    def test_delete(self, client):
        session_id = create(client)["session_id"]

        assert client.delete(f"/api/sessions/{session_id}").status_code == 204
        assert client.get(f"/api/sessions/{session_id}").status_code == 404
        assert client.delete(f"/api/sessions/{session_id}").status_code == 404

    def test_reset(self, client):
        session_id = create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/select")
        play_step(client, session_id, 1)

        data = client.post(f"/api/sessions/{session_id}/reset").json()

        assert data["phase"] == "in_progress"
        assert data["progress"]["completed"] == 0
        assert data["milestones"]["potato_selected"] is False


class TestValidateAndComplete:

    def test_illegal_attempt_is_200(self, client):
        """Illegal attempts are a normal outcome, not an HTTP error."""
        session_id = create(client)["session_id"]

        response = client.post(
            f"/api/sessions/{session_id}/validate",
            json={"action": "wash", "target_item": "potato"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["legal"] is False
        assert data["code"] == "missing_prerequisite"
        assert data["reason"] == "Select a potato first!"

    def test_complete_without_validation(self, client):
        session_id = create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/select")

        response = client.post(f"/api/sessions/{session_id}/steps/1/complete", json={})

        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "STEP_NOT_VALIDATED"
        assert client.get(f"/api/sessions/{session_id}").json()["score"] == 0

    def test_invalid_option(self, client):
        session_id = create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/select")
        for step_id in (1, 2, 3, 4):
            play_step(client, session_id, step_id)

        response = play_step(client, session_id, 5, option="volcanic")

        assert response.status_code == 409
        assert response.json()["detail"]["error_code"] == "STEP_INVALID_OPTION"

    def test_unknown_step(self, client):
        session_id = create(client)["session_id"]

        response = client.post(f"/api/sessions/{session_id}/steps/42/complete", json={})

        assert response.status_code == 404
        assert response.json()["detail"]["error_code"] == "STEP_NOT_FOUND"

    def test_full_play_through(self, client):
        session_id = create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/select")

        for step_id in range(1, 13):
            response = play_step(client, session_id, step_id)
            assert response.status_code == 200
            assert response.json()["session_complete"] is False

        final = play_step(client, session_id, 13).json()

        assert final["session_complete"] is True
        # The test clock never moves: full 5-minute time bonus
        assert final["summary"]["score"] == 165 + 25
        assert final["summary"]["fully_completed"] is True

        summary = client.post(f"/api/sessions/{session_id}/finalize").json()
        assert summary == final["summary"]

    def test_finalize_early(self, client):
        session_id = create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/select")
        play_step(client, session_id, 1)

        response = client.post(f"/api/sessions/{session_id}/finalize")

        assert response.status_code == 200
        data = response.json()
        assert data["fully_completed"] is False
        assert data["missing_ingredients"] == ["oil", "zeera", "turmeric", "salt", "red_chilli"]
        # 10 points + 25 time bonus - 5 x 10 missing, clamped
        assert data["raw_score"] == -15
        assert data["score"] == 0

    def test_concurrent_complete_commits_once(self, client):
        """Two simultaneous commits of one validated step: one wins, one is rejected."""
        session_id = create(client)["session_id"]
        client.post(f"/api/sessions/{session_id}/select")
        client.post(
            f"/api/sessions/{session_id}/validate",
            json={"action": "wash", "target_item": "potato"},
        )
        results = []

        def complete():
            response = client.post(f"/api/sessions/{session_id}/steps/1/complete", json={})
            results.append(response.status_code)

        threads = [threading.Thread(target=complete) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(results) == [200, 409]
        data = client.get(f"/api/sessions/{session_id}").json()
        assert data["progress"]["completed"] == 1
        assert data["score"] == 10


class TestHealth:

    def test_root(self, client):
        data = client.get("/").json()

        assert data["name"] == "Masala Chef Engine"
        assert data["status"] == "running"

    def test_health(self, client):
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["recipes"] == 1
        assert "active_sessions" in data

    def test_cors_allows_configured_origin(self, client):
        response = client.options(
            "/api/sessions",
            headers={"Origin": "http://localhost:3000", "Access-Control-Request-Method": "POST"},
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"

    def test_cors_ignores_other_origins(self, client):
        response = client.get("/api/recipes", headers={"Origin": "http://elsewhere.example"})

        assert response.status_code == 200
        assert "access-control-allow-origin" not in response.headers

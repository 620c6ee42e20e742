import uuid
from unittest.mock import AsyncMock, patch

import pytest

from main import app
from services.personality_engine.scoring import ScoringConfig
from src.routers.assessments import get_scoring_config


@pytest.mark.asyncio
async def test_root_health(api_client):
    response = await api_client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_db_health(api_client):
    response = await api_client.get("/health/db")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "db_check": 1}


@pytest.mark.asyncio
async def test_cache_health_without_redis(api_client):
    with patch("main.get_redis", new=AsyncMock(return_value=None)):
        response = await api_client.get("/health/cache")
    assert response.status_code == 503


@pytest.mark.asyncio
async def test_list_assessments(api_client, assessment):
    response = await api_client.get("/api/v1/assessments")
    assert response.status_code == 200
    body = response.json()
    assert [a["id"] for a in body] == [str(assessment.id)]
    assert body[0]["title"] == "MBTI Personality Assessment"


@pytest.mark.asyncio
async def test_read_assessment(api_client, assessment):
    response = await api_client.get(f"/api/v1/assessments/{assessment.id}")
    assert response.status_code == 200
    body = response.json()
    assert len(body["questions"]) == 32
    assert body["questions"][0]["options"][0]["value"] == "E"
    assert body["dimension_counts"] == {"EI": 8, "SN": 8, "TF": 8, "JP": 8}


@pytest.mark.asyncio
async def test_read_unknown_assessment(api_client):
    response = await api_client.get(f"/api/v1/assessments/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_guest_submission(api_client, assessment, build_answers):
    payload = {"answers": build_answers(lambda i, q: 1), "time_taken": 240}
    response = await api_client.post(f"/api/v1/assessments/{assessment.id}/submit", json=payload)

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["personality_type"] == "INFP"
    assert body["alternative_types"] == []
    assert body["scores"]["introvert"] == 100
    assert body["scores"]["extrovert"] == 0
    assert body["guest_id"].startswith("guest_")
    assert body["user_id"] is None
    assert body["points_awarded"] == 0

    stored = await api_client.get(f"/api/v1/results/{body['result_id']}")
    assert stored.status_code == 200
    assert stored.json()["personality_type"] == "INFP"
    assert stored.json()["time_taken"] == 240


@pytest.mark.asyncio
async def test_guest_history_and_active(api_client, assessment, build_answers):
    url = f"/api/v1/assessments/{assessment.id}/submit"
    first = (await api_client.post(url, json={"answers": build_answers(lambda i, q: 0), "guest_id": "guest_api"})).json()
    second = (await api_client.post(url, json={"answers": build_answers(lambda i, q: 1), "guest_id": "guest_api"})).json()

    active = await api_client.get("/api/v1/results/active", params={"guest_id": "guest_api"})
    assert active.status_code == 200
    assert active.json()["id"] == second["result_id"]
    assert active.json()["is_active"] is True

    history = await api_client.get("/api/v1/results/history", params={"guest_id": "guest_api"})
    assert history.status_code == 200
    ids = {r["id"] for r in history.json()}
    assert ids == {first["result_id"], second["result_id"]}


@pytest.mark.asyncio
async def test_results_owner_query_is_required(api_client):
    assert (await api_client.get("/api/v1/results/active")).status_code == 422
    both = await api_client.get("/api/v1/results/history", params={"guest_id": "g", "user_id": str(uuid.uuid4())})
    assert both.status_code == 422


@pytest.mark.asyncio
async def test_no_active_result(api_client):
    response = await api_client.get("/api/v1/results/active", params={"guest_id": "guest_nobody"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unknown_result(api_client):
    response = await api_client.get(f"/api/v1/results/{uuid.uuid4()}")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_submission_with_wrong_answer_count(api_client, assessment):
    response = await api_client.post(f"/api/v1/assessments/{assessment.id}/submit", json={"answers": ["E", "I"]})
    assert response.status_code == 422
    assert "Expected 32 answers" in response.json()["detail"]


@pytest.mark.asyncio
async def test_submission_with_both_owners(api_client, assessment, build_answers):
    payload = {"answers": build_answers(lambda i, q: 0), "guest_id": "g", "user_id": str(uuid.uuid4())}
    response = await api_client.post(f"/api/v1/assessments/{assessment.id}/submit", json=payload)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submission_to_unknown_assessment(api_client, build_answers):
    response = await api_client.post(f"/api/v1/assessments/{uuid.uuid4()}/submit",
                                     json={"answers": build_answers(lambda i, q: 0)})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_submission_for_unknown_user(api_client, assessment, build_answers):
    payload = {"answers": build_answers(lambda i, q: 0), "user_id": str(uuid.uuid4())}
    response = await api_client.post(f"/api/v1/assessments/{assessment.id}/submit", json=payload)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_unscorable_submission(api_client, assessment):
    response = await api_client.post(f"/api/v1/assessments/{assessment.id}/submit", json={"answers": ["X"] * 32})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_scoring_config_override(api_client, assessment, build_answers):
    # 5 of 8 E gives a 26 point gap: close only with a wider threshold.
    answers = build_answers(lambda i, q: 0 if q.group != "EI" or i < 5 else 1)
    url = f"/api/v1/assessments/{assessment.id}/submit"

    default = (await api_client.post(url, json={"answers": answers})).json()
    assert default["alternative_types"] == []

    app.dependency_overrides[get_scoring_config] = lambda: ScoringConfig(closeness_threshold=30)
    wide = (await api_client.post(url, json={"answers": answers})).json()
    assert wide["personality_type"] == "ESTJ"
    assert wide["alternative_types"] == ["ISTJ"]


@pytest.mark.asyncio
async def test_registered_user_submission(api_client, assessment, build_answers):
    register = await api_client.post("/api/v1/users/register",
                                     json={"email": "taker@example.com", "name": "Taker", "password": "secret1"})
    user_id = register.json()["user"]["id"]

    response = await api_client.post(f"/api/v1/assessments/{assessment.id}/submit",
                                     json={"answers": build_answers(lambda i, q: 0), "user_id": user_id})
    assert response.status_code == 200
    assert response.json()["points_awarded"] == 600
    assert response.json()["guest_id"] is None

    user = (await api_client.get(f"/api/v1/users/{user_id}")).json()
    assert user["personality_type"] == "ESTJ"
    assert user["points"] == 800

    active = await api_client.get("/api/v1/results/active", params={"user_id": user_id})
    assert active.json()["id"] == response.json()["result_id"]

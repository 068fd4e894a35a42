from __future__ import annotations

import random
from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest
from httpx import AsyncClient

from greenhouse_hub.errors import AuthorizationError, NotFoundError
from greenhouse_hub.models.enums import RecommendationLevelEnum
from greenhouse_hub.models.roadmap import FarmProfile
from greenhouse_hub.services.roadmap_scoring import (
    DEFAULT_IMPROVEMENT,
    DEFAULT_STRENGTH,
    AssessmentAnswer,
    calculate_farm_profile,
    generate_recommendations,
    score_answer,
)
from greenhouse_hub.schemas.roadmap import TrainingDataCreate, TrainingDataUpdate
from greenhouse_hub.services.roadmap_service import RoadmapResult, RoadmapService, TrainingDataService


def _answer(question_id: str, value: object, category: str) -> dict[str, object]:
    return {"questionId": question_id, "value": value, "category": category}


MIXED_RESPONSES = {
    "fd-1": _answer("fd-1", "Yes", "farm-design"),
    "fd-2": _answer("fd-2", "Hydroponic", "farm-design"),
    "tech-1": _answer("tech-1", "No", "technology"),
    "tech-2": _answer("tech-2", "None", "technology"),
    "proc-1": _answer("proc-1", 3, "processes"),
}

WEAK_RESPONSES = {
    "fd-1": _answer("fd-1", "No", "farm-design"),
    "tech-1": _answer("tech-1", "No", "technology"),
}


def test_answer_scoring_rules() -> None:
    assert score_answer(AssessmentAnswer("x-1", 4, "crops")) == 4.0
    assert score_answer(AssessmentAnswer("x-1", "Yes", "crops")) == 5.0
    assert score_answer(AssessmentAnswer("x-1", "No", "crops")) == 1.0
    assert score_answer(AssessmentAnswer("proc-2", "Chemical treatments only", "processes")) == 2.0
    assert score_answer(AssessmentAnswer("proc-2", "Something new", "processes")) == 3.0
    assert score_answer(AssessmentAnswer("org-9", "Wholesale", "organization")) == 3.0


def test_profile_averages_per_category() -> None:
    profile = calculate_farm_profile(MIXED_RESPONSES)

    assert profile.scores == {"farm-design": 5.0, "technology": 1.0, "processes": 3.0}
    assert profile.overall_score == pytest.approx(3.0)
    assert profile.strengths == ["Strong farm design"]
    assert profile.improvement_areas == ["Technology optimization needed"]


def test_profile_falls_back_to_default_lists() -> None:
    profile = calculate_farm_profile({"proc-1": _answer("proc-1", 3, "processes")})

    assert profile.strengths == [DEFAULT_STRENGTH]
    assert profile.improvement_areas == [DEFAULT_IMPROVEMENT]


def test_recommendations_for_mixed_profile() -> None:
    profile = calculate_farm_profile(MIXED_RESPONSES)
    titles = [item.title for item in generate_recommendations(profile, MIXED_RESPONSES)]

    assert titles == [
        "Implement Climate Control Automation",
        "Add Environmental Monitoring Systems",
        "Develop Standard Operating Procedures",
    ]


def test_weak_profile_adds_improvement_plan_and_orders_by_priority_then_impact() -> None:
    profile = calculate_farm_profile(WEAK_RESPONSES)
    recommendations = generate_recommendations(profile, WEAK_RESPONSES)

    assert profile.overall_score == pytest.approx(1.0)
    assert [item.title for item in recommendations] == [
        "Implement Climate Control Automation",
        "Develop a Comprehensive Improvement Plan",
        "Optimize Growing Space Layout",
        "Add Environmental Monitoring Systems",
    ]
    layout = recommendations[2]
    assert layout.priority == RecommendationLevelEnum.high
    assert layout.estimated_impact == RecommendationLevelEnum.medium


def test_strong_profile_has_no_recommendations() -> None:
    responses = {
        "crop-1": _answer("crop-1", "Yes", "crops"),
        "yield-1": _answer("yield-1", 5, "yields"),
    }
    profile = calculate_farm_profile(responses)

    assert generate_recommendations(profile, responses) == []
    assert profile.improvement_areas == [DEFAULT_IMPROVEMENT]


def test_scoring_is_independent_of_response_order() -> None:
    items = list(MIXED_RESPONSES.items()) + list(
        {"org-2": _answer("org-2", "CSA", "organization"), "crop-2": _answer("crop-2", "Profit margins", "crops")}.items()
    )
    baseline = calculate_farm_profile(dict(items))
    baseline_recs = generate_recommendations(baseline, dict(items))

    shuffler = random.Random(7)
    for _ in range(5):
        shuffler.shuffle(items)
        shuffled = dict(items)
        profile = calculate_farm_profile(shuffled)
        assert list(profile.scores.items()) == list(baseline.scores.items())
        assert profile.strengths == baseline.strengths
        assert generate_recommendations(profile, shuffled) == baseline_recs


@pytest.mark.asyncio
async def test_submit_persists_profile_with_ranked_recommendations(fake_db_session) -> None:
    from greenhouse_hub.schemas.roadmap import RoadmapSubmit

    user_id = uuid4()
    payload = RoadmapSubmit.model_validate({"responses": WEAK_RESPONSES})

    result = await RoadmapService(fake_db_session).submit(user_id, payload)

    assessment, profile = fake_db_session.added
    assert assessment.responses["fd-1"] == {"questionId": "fd-1", "value": "No", "category": "farm-design"}
    assert isinstance(profile, FarmProfile)
    assert profile.overall_score == pytest.approx(1.0)
    assert [item.position for item in result.recommendations] == [0, 1, 2, 3]
    assert [item.priority for item in result.recommendations] == [3, 3, 3, 2]


@pytest.mark.asyncio
async def test_latest_without_submission_is_not_found(fake_db_session) -> None:
    with pytest.raises(NotFoundError):
        await RoadmapService(fake_db_session).latest(uuid4())


@pytest.mark.asyncio
async def test_recompute_rejects_other_members(fake_db_session, fake_result) -> None:
    assessment = SimpleNamespace(id=uuid4(), user_id=uuid4(), responses=WEAK_RESPONSES)
    fake_db_session.execute.return_value = fake_result(scalar=assessment)

    with pytest.raises(AuthorizationError):
        await RoadmapService(fake_db_session).recompute(uuid4(), assessment.id)


@pytest.mark.asyncio
async def test_recompute_replaces_existing_profile(fake_db_session, fake_result) -> None:
    owner = uuid4()
    assessment = SimpleNamespace(id=uuid4(), user_id=owner, responses=MIXED_RESPONSES)
    stale = SimpleNamespace(id=uuid4(), assessment_id=assessment.id)
    fake_db_session.execute.side_effect = [fake_result(scalar=assessment), fake_result(scalar=stale)]

    result = await RoadmapService(fake_db_session).recompute(owner, assessment.id)

    assert fake_db_session.deleted == [stale]
    assert result.profile.assessment_id == assessment.id
    assert result.profile.scores == {"farm-design": 5.0, "technology": 1.0, "processes": 3.0}


@pytest.mark.asyncio
async def test_submit_rejects_mismatched_question_keys(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/farm-roadmap/submit",
        json={"responses": {"fd-1": _answer("fd-9", "Yes", "farm-design")}},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_rejects_unknown_category(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/farm-roadmap/submit",
        json={"responses": {"fd-1": _answer("fd-1", "Yes", "marketing")}},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_submit_endpoint_returns_roadmap(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    now = datetime.now(UTC)
    assessment_id = uuid4()
    profile_id = uuid4()

    async def fake_submit(self: RoadmapService, user_id: object, payload: object) -> RoadmapResult:
        return RoadmapResult(
            assessment=SimpleNamespace(id=assessment_id, user_id=uuid4(), responses=WEAK_RESPONSES, created_at=now),
            profile=SimpleNamespace(
                id=profile_id,
                assessment_id=assessment_id,
                scores={"farm-design": 1.0, "technology": 1.0},
                overall_score=1.0,
                strengths=[DEFAULT_STRENGTH],
                improvement_areas=["Farm Design optimization needed"],
                created_at=now,
            ),
            recommendations=[
                SimpleNamespace(
                    id=uuid4(),
                    title="Implement Climate Control Automation",
                    description="Upgrade.",
                    category="technology",
                    priority_level="High",
                    priority=3,
                    estimated_impact="High",
                    timeframe="Short-term",
                    position=0,
                )
            ],
        )

    monkeypatch.setattr(RoadmapService, "submit", fake_submit)

    response = await client.post("/api/v1/farm-roadmap/submit", json={"responses": WEAK_RESPONSES})

    assert response.status_code == 201
    body = response.json()
    assert body["profile"]["overall_score"] == 1.0
    assert body["recommendations"][0]["priority_level"] == "High"
    assert body["assessment"]["id"] == str(assessment_id)


def _training_item(**overrides: object) -> SimpleNamespace:
    now = datetime.now(UTC)
    fields: dict[str, object] = {
        "id": uuid4(),
        "title": "Humidity control basics",
        "content": "Keep relative humidity between 60 and 80 percent for most leafy greens.",
        "tags": ["humidity", "climate"],
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def test_training_payload_strips_blank_tags() -> None:
    payload = TrainingDataCreate(title="Lighting", content="Supplemental LEDs", tags=[" lighting ", "", "  "])
    assert payload.tags == ["lighting"]


@pytest.mark.asyncio
async def test_training_create_persists_row(fake_db_session) -> None:
    item = await TrainingDataService(fake_db_session).create(
        TrainingDataCreate(title="Irrigation", content="Drip beats overhead", tags=["water"])
    )

    assert fake_db_session.added == [item]
    assert item.title == "Irrigation"
    assert item.tags == ["water"]


@pytest.mark.asyncio
async def test_training_update_skips_null_fields(fake_db_session, fake_result) -> None:
    item = _training_item()
    fake_db_session.execute.return_value = fake_result(scalar=item)

    await TrainingDataService(fake_db_session).update(
        item.id, TrainingDataUpdate(title=None, tags=["humidity", "vpd"])
    )

    assert item.title == "Humidity control basics"
    assert item.tags == ["humidity", "vpd"]


@pytest.mark.asyncio
async def test_training_delete_missing_row_is_not_found(fake_db_session) -> None:
    with pytest.raises(NotFoundError):
        await TrainingDataService(fake_db_session).delete(uuid4())
    assert fake_db_session.deleted == []


@pytest.mark.asyncio
async def test_training_endpoints_require_admin(client: AsyncClient) -> None:
    listed = await client.get("/api/v1/admin/assessment-training")
    created = await client.post(
        "/api/v1/admin/assessment-training", json={"title": "Pests", "content": "Scout weekly"}
    )

    assert listed.status_code == 403
    assert created.status_code == 403


@pytest.mark.asyncio
async def test_admin_lists_training_data_newest_first(admin_client: AsyncClient, fake_db_session, fake_result) -> None:
    newer, older = _training_item(title="Newer"), _training_item(title="Older")
    fake_db_session.execute.return_value = fake_result(rows=[newer, older])

    response = await admin_client.get("/api/v1/admin/assessment-training")

    assert response.status_code == 200
    assert [item["title"] for item in response.json()] == ["Newer", "Older"]
    statement = fake_db_session.execute.call_args.args[0]
    assert "ORDER BY assessment_training_data.created_at DESC" in str(statement)


@pytest.mark.asyncio
async def test_admin_creates_training_data(admin_client: AsyncClient, fake_db_session) -> None:
    async def _refresh(item: object) -> None:
        now = datetime.now(UTC)
        item.id = uuid4()  # type: ignore[attr-defined]
        item.created_at = now  # type: ignore[attr-defined]
        item.updated_at = now  # type: ignore[attr-defined]

    fake_db_session.refresh.side_effect = _refresh

    response = await admin_client.post(
        "/api/v1/admin/assessment-training",
        json={"title": "Heating", "content": "Use thermal screens at night", "tags": ["energy"]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["title"] == "Heating"
    assert body["tags"] == ["energy"]


@pytest.mark.asyncio
async def test_admin_updates_and_deletes_training_data(
    admin_client: AsyncClient, fake_db_session, fake_result
) -> None:
    item = _training_item()
    fake_db_session.execute.return_value = fake_result(scalar=item)

    updated = await admin_client.put(
        f"/api/v1/admin/assessment-training/{item.id}", json={"content": "Target 70 percent RH"}
    )
    deleted = await admin_client.delete(f"/api/v1/admin/assessment-training/{item.id}")

    assert updated.status_code == 200
    assert updated.json()["content"] == "Target 70 percent RH"
    assert deleted.status_code == 204
    assert fake_db_session.deleted == [item]


@pytest.mark.asyncio
async def test_admin_update_unknown_training_data_returns_404(admin_client: AsyncClient) -> None:
    response = await admin_client.put(
        f"/api/v1/admin/assessment-training/{uuid4()}", json={"title": "Anything"}
    )
    assert response.status_code == 404

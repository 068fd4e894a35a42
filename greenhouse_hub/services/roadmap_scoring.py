"""Farm roadmap scoring — pure functions from assessment responses to a profile.

Nothing here touches the database, the clock or randomness: the same
responses always produce the same profile and the same recommendation
list.  Categories are processed in a fixed canonical order rather than
response order, so a profile recomputed from stored JSONB (whose key order
is not preserved) matches the one computed at submission.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from greenhouse_hub.models.enums import (
	RecommendationLevelEnum,
	RecommendationTimeframeEnum,
	RoadmapCategoryEnum,
)

YES_SCORE = 5.0
NO_SCORE = 1.0
DEFAULT_CHOICE_SCORE = 3.0
STRENGTH_THRESHOLD = 4.0
IMPROVEMENT_THRESHOLD = 2.5
RECOMMENDATION_THRESHOLD = 3.0
CRITICAL_THRESHOLD = 2.0
OVERALL_PLAN_THRESHOLD = 2.5

DEFAULT_STRENGTH = "Good foundation to build upon"
DEFAULT_IMPROVEMENT = "Continuous improvement opportunities"

LEVEL_RANK: dict[RecommendationLevelEnum, int] = {
	RecommendationLevelEnum.high: 3,
	RecommendationLevelEnum.medium: 2,
	RecommendationLevelEnum.low: 1,
}

CATEGORY_ORDER: tuple[str, ...] = tuple(category.value for category in RoadmapCategoryEnum)

CATEGORY_DISPLAY_NAMES: dict[str, str] = {
	"farm-design": "Farm Design",
	"technology": "Technology",
	"processes": "Processes",
	"organization": "Organization",
	"yields": "Yields",
	"crops": "Crops",
}

# Per-question scores for multiple-choice answers; unmapped answers score 3.
MULTIPLE_CHOICE_SCORES: dict[str, dict[str, float]] = {
	"fd-2": {
		"Hydroponic": 5,
		"Aeroponic": 5,
		"Aquaponic": 4,
		"Mixed systems": 4,
		"Soil-based": 3,
	},
	"tech-2": {
		"None": 1,
		"Temperature sensors": 3,
		"Humidity monitors": 3,
		"pH meters": 4,
		"EC/TDS meters": 4,
		"Cameras": 4,
	},
	"proc-2": {
		"Integrated Pest Management (IPM)": 5,
		"Biological controls": 4,
		"Preventive measures only": 3,
		"Chemical treatments only": 2,
		"No formal approach": 1,
	},
	"org-2": {
		"Mixed sales channels": 5,
		"Direct-to-consumer": 4,
		"Farmers markets": 4,
		"CSA": 3,
		"Wholesale": 3,
	},
	"yield-2": {
		"Market demand": 2,
		"Capital investment": 3,
		"Labor availability": 3,
		"Climate control": 4,
		"Space constraints": 4,
	},
	"crop-2": {
		"Profit margins": 5,
		"Market demand": 4,
		"Climate suitability": 4,
		"Customer requests": 3,
		"Personal preference": 2,
	},
}


@dataclass(frozen=True, slots=True)
class AssessmentAnswer:
	question_id: str
	value: str | int | float
	category: str


@dataclass(frozen=True, slots=True)
class FarmProfileData:
	scores: dict[str, float]
	strengths: list[str]
	improvement_areas: list[str]
	overall_score: float


@dataclass(frozen=True, slots=True)
class RecommendationData:
	title: str
	description: str
	category: RoadmapCategoryEnum
	priority: RecommendationLevelEnum
	estimated_impact: RecommendationLevelEnum
	timeframe: RecommendationTimeframeEnum
	position: int = field(default=0, compare=False)

	@property
	def priority_rank(self) -> int:
		return LEVEL_RANK[self.priority]


def _coerce_answer(question_id: str, raw: AssessmentAnswer | Mapping[str, Any]) -> AssessmentAnswer:
	if isinstance(raw, AssessmentAnswer):
		return raw
	return AssessmentAnswer(
		question_id=str(raw.get("questionId") or raw.get("question_id") or question_id),
		value=raw.get("value"),  # type: ignore[arg-type]
		category=str(raw.get("category")),
	)


def score_answer(answer: AssessmentAnswer) -> float:
	"""Numbers score as themselves, Yes/No as 5/1, anything else via the choice table."""
	value = answer.value
	if isinstance(value, (int, float)) and not isinstance(value, bool):
		return float(value)
	if value == "Yes":
		return YES_SCORE
	if value == "No":
		return NO_SCORE
	choices = MULTIPLE_CHOICE_SCORES.get(answer.question_id, {})
	return float(choices.get(str(value), DEFAULT_CHOICE_SCORE))


def _category_sort_key(category: str) -> tuple[int, str]:
	if category in CATEGORY_ORDER:
		return (CATEGORY_ORDER.index(category), category)
	return (len(CATEGORY_ORDER), category)


def display_name(category: str) -> str:
	return CATEGORY_DISPLAY_NAMES.get(category, category)


def calculate_farm_profile(
	responses: Mapping[str, AssessmentAnswer | Mapping[str, Any]],
) -> FarmProfileData:
	grouped: dict[str, list[float]] = {}
	for question_id in sorted(responses):
		answer = _coerce_answer(question_id, responses[question_id])
		grouped.setdefault(answer.category, []).append(score_answer(answer))

	scores = {
		category: sum(grouped[category]) / len(grouped[category])
		for category in sorted(grouped, key=_category_sort_key)
	}
	overall = sum(scores.values()) / len(scores) if scores else 0.0

	strengths: list[str] = []
	improvement_areas: list[str] = []
	for category, score in scores.items():
		name = display_name(category)
		if score >= STRENGTH_THRESHOLD:
			strengths.append(f"Strong {name.lower()}")
		elif score <= IMPROVEMENT_THRESHOLD:
			improvement_areas.append(f"{name} optimization needed")

	return FarmProfileData(
		scores=scores,
		strengths=strengths or [DEFAULT_STRENGTH],
		improvement_areas=improvement_areas or [DEFAULT_IMPROVEMENT],
		overall_score=overall,
	)


def _recommendation(
	title: str,
	description: str,
	category: RoadmapCategoryEnum,
	priority: RecommendationLevelEnum,
	impact: RecommendationLevelEnum,
	timeframe: RecommendationTimeframeEnum,
) -> RecommendationData:
	return RecommendationData(
		title=title,
		description=description,
		category=category,
		priority=priority,
		estimated_impact=impact,
		timeframe=timeframe,
	)


def _category_recommendations(category: str, score: float) -> list[RecommendationData]:
	high = RecommendationLevelEnum.high
	medium = RecommendationLevelEnum.medium
	timeframe = RecommendationTimeframeEnum

	if category == RoadmapCategoryEnum.farm_design:
		return [
			_recommendation(
				"Optimize Growing Space Layout",
				"Redesign growing areas to maximize space utilization and improve workflow efficiency.",
				RoadmapCategoryEnum.farm_design,
				high if score <= CRITICAL_THRESHOLD else medium,
				medium,
				timeframe.long_term,
			)
		]
	if category == RoadmapCategoryEnum.technology:
		items = [
			_recommendation(
				"Implement Climate Control Automation",
				"Upgrade to automated climate control systems to improve consistency and reduce labor.",
				RoadmapCategoryEnum.technology,
				high,
				high,
				timeframe.short_term,
			)
		]
		if score <= CRITICAL_THRESHOLD:
			items.append(
				_recommendation(
					"Add Environmental Monitoring Systems",
					"Install sensors for temperature, humidity, and other key environmental factors.",
					RoadmapCategoryEnum.technology,
					medium,
					medium,
					timeframe.immediate,
				)
			)
		return items
	if category == RoadmapCategoryEnum.processes:
		return [
			_recommendation(
				"Develop Standard Operating Procedures",
				"Create documented procedures for key growing and maintenance activities.",
				RoadmapCategoryEnum.processes,
				medium,
				medium,
				timeframe.short_term,
			)
		]
	if category == RoadmapCategoryEnum.organization:
		return [
			_recommendation(
				"Implement Farm Management Software",
				"Digitize record-keeping and production tracking for better decision-making.",
				RoadmapCategoryEnum.organization,
				medium,
				medium,
				timeframe.immediate,
			)
		]
	if category == RoadmapCategoryEnum.yields:
		return [
			_recommendation(
				"Analyze and Optimize Production Metrics",
				"Track yield data and identify factors limiting production efficiency.",
				RoadmapCategoryEnum.yields,
				high,
				high,
				timeframe.short_term,
			)
		]
	if category == RoadmapCategoryEnum.crops:
		return [
			_recommendation(
				"Diversify Crop Portfolio",
				"Evaluate and introduce complementary crops to reduce risk and increase profitability.",
				RoadmapCategoryEnum.crops,
				medium,
				medium,
				timeframe.long_term,
			)
		]
	return []


def sort_recommendations(items: list[RecommendationData]) -> list[RecommendationData]:
	"""Priority then impact, descending; equal items keep generation order."""
	return sorted(
		items,
		key=lambda item: (
			-LEVEL_RANK[item.priority],
			-LEVEL_RANK[item.estimated_impact],
			item.position,
		),
	)


def generate_recommendations(
	profile: FarmProfileData,
	responses: Mapping[str, AssessmentAnswer | Mapping[str, Any]],
) -> list[RecommendationData]:
	"""Recommendations for every category scoring 3.0 or below, plus a plan when overall is weak.

	``responses`` is accepted for parity with the scoring input; the current
	rules depend on category scores only.
	"""
	generated: list[RecommendationData] = []
	for category, score in profile.scores.items():
		if score <= RECOMMENDATION_THRESHOLD:
			generated.extend(_category_recommendations(category, score))

	if profile.overall_score <= OVERALL_PLAN_THRESHOLD:
		generated.append(
			_recommendation(
				"Develop a Comprehensive Improvement Plan",
				"Create a structured plan to address multiple areas for systematic improvement.",
				RoadmapCategoryEnum.organization,
				RecommendationLevelEnum.high,
				RecommendationLevelEnum.high,
				RecommendationTimeframeEnum.immediate,
			)
		)

	numbered = [
		RecommendationData(
			title=item.title,
			description=item.description,
			category=item.category,
			priority=item.priority,
			estimated_impact=item.estimated_impact,
			timeframe=item.timeframe,
			position=index,
		)
		for index, item in enumerate(generated)
	]
	return sort_recommendations(numbered)

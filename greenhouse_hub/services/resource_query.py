"""Resource library query engine — facet filters, sorting, keyset pagination.

The engine turns a ``ResourceQuery`` into two statements that share one
predicate list: a ``COUNT(*)`` for ``total`` and a page query that adds the
keyset condition, the ordering and ``LIMIT n + 1``.  Fetching one extra row
is how the engine knows whether a ``nextCursor`` exists.

Type-specific attributes live in ``resources.data`` (JSONB).  They are read
through guarded accessors: numeric and date casts only happen when the text
matches a strict pattern, so a malformed payload yields NULL instead of a
query error, and a missing key behaves like an absent value.

Every user-supplied value reaches the database as a bound parameter.
"""

from __future__ import annotations

import base64
import binascii
import json
import uuid
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy import (
	Date,
	Numeric,
	Select,
	Text,
	and_,
	case,
	cast,
	func,
	literal,
	or_,
	select,
)
from sqlalchemy.dialects.postgresql import JSONB, array
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import InvalidCursorError, ValidationError
from greenhouse_hub.models.enums import ResourceSortEnum, ResourceTypeEnum
from greenhouse_hub.models.resources import Resource

_NUMERIC_PATTERN = r"^\s*-?[0-9]+(\.[0-9]+)?\s*$"
_DATE_PATTERN = r"^[0-9]{4}-(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])"

# Grants in one of these states stay visible after their due date.
ROLLING_STATUSES = ("rolling", "recurring", "ongoing", "continuous")
ALL_REGIONS = "ALL"

_TRUE_STRINGS = frozenset({"true", "1", "yes", "on"})
_FALSE_STRINGS = frozenset({"false", "0", "no", "off"})
_IGNORED_VALUES = frozenset({"", "all", "any"})

_FAR_FUTURE = date(9999, 12, 31)
_COST_SENTINEL = Decimal("1000000000000")

Predicate = ColumnElement[bool]


# ═══════════════════════════════════════════════════════════════════════════
# JSON payload accessors
# ═══════════════════════════════════════════════════════════════════════════


def data_text(key: str) -> ColumnElement[str]:
	"""``data->>key``; NULL when the key is missing."""
	return Resource.data[key].astext


def data_numeric(key: str) -> ColumnElement[Decimal]:
	raw = data_text(key)
	return case(
		(raw.op("~")(_NUMERIC_PATTERN), cast(func.trim(raw), Numeric)),
		else_=None,
	)


def data_date(key: str) -> ColumnElement[date]:
	raw = data_text(key)
	return case(
		(raw.op("~")(_DATE_PATTERN), cast(func.substr(raw, 1, 10), Date)),
		else_=None,
	)


# ═══════════════════════════════════════════════════════════════════════════
# Filter value coercion
# ═══════════════════════════════════════════════════════════════════════════


def _as_values(raw: Any) -> list[str]:
	"""Normalise a filter value into a list of non-empty strings.

	Strings are comma separated; lists are taken element-wise.  Placeholder
	values such as ``all`` are dropped so the filter becomes a no-op.
	"""
	if raw is None:
		return []
	items: Sequence[Any]
	if isinstance(raw, str):
		items = raw.split(",")
	elif isinstance(raw, (list, tuple)):
		items = raw
	else:
		items = [raw]
	values: list[str] = []
	for item in items:
		if item is None or isinstance(item, (dict, list)):
			continue
		text_value = str(item).strip()
		if text_value.lower() in _IGNORED_VALUES:
			continue
		values.append(text_value)
	return values


def _as_number(name: str, raw: Any) -> Decimal | None:
	if raw is None or (isinstance(raw, str) and not raw.strip()):
		return None
	if isinstance(raw, bool):
		raise ValidationError(f"Filter '{name}' must be a number")
	try:
		value = Decimal(str(raw).strip())
	except InvalidOperation as exc:
		raise ValidationError(f"Filter '{name}' must be a number") from exc
	if not value.is_finite():
		raise ValidationError(f"Filter '{name}' must be a number")
	return value


def _as_flag(name: str, raw: Any) -> bool | None:
	if raw is None:
		return None
	if isinstance(raw, bool):
		return raw
	token = str(raw).strip().lower()
	if not token:
		return None
	if token in _TRUE_STRINGS:
		return True
	if token in _FALSE_STRINGS:
		return False
	raise ValidationError(f"Filter '{name}' must be true or false")


# ═══════════════════════════════════════════════════════════════════════════
# Facet filter builders
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class TextIn:
	"""``data->>key`` equals one of the comma-separated values (case-insensitive)."""

	key: str

	def __call__(self, name: str, raw: Any, today: date) -> Predicate | None:
		values = _as_values(raw)
		if not values:
			return None
		return func.lower(data_text(self.key)).in_([value.lower() for value in values])


@dataclass(frozen=True, slots=True)
class ArrayAny:
	"""JSON array at ``data->key`` contains any of the values (case-insensitive).

	The stored array is lowercased as JSON text and re-read as JSONB so the
	match still uses ``?|``.  With ``wildcard`` set, a payload listing the
	wildcard matches every value.
	"""

	key: str
	wildcard: str | None = None

	def __call__(self, name: str, raw: Any, today: date) -> Predicate | None:
		values = _as_values(raw)
		if not values:
			return None
		lowered = [value.lower() for value in values]
		if self.wildcard is not None:
			lowered.append(self.wildcard.lower())
		stored = cast(func.lower(cast(Resource.data[self.key], Text)), JSONB)
		return stored.has_any(array(lowered))


@dataclass(frozen=True, slots=True)
class NumberAtLeast:
	key: str

	def __call__(self, name: str, raw: Any, today: date) -> Predicate | None:
		value = _as_number(name, raw)
		if value is None:
			return None
		return data_numeric(self.key) >= value


@dataclass(frozen=True, slots=True)
class NumberAtMost:
	key: str

	def __call__(self, name: str, raw: Any, today: date) -> Predicate | None:
		value = _as_number(name, raw)
		if value is None:
			return None
		return data_numeric(self.key) <= value


@dataclass(frozen=True, slots=True)
class HideExpired:
	"""Drop resources whose due date is before ``today``.

	A resource with no parseable due date, or with a rolling status, is
	always current.
	"""

	due_key: str = "due_date"
	status_key: str = "status"

	def __call__(self, name: str, raw: Any, today: date) -> Predicate | None:
		if not _as_flag(name, raw):
			return None
		due = data_date(self.due_key)
		return or_(
			due.is_(None),
			due >= today,
			func.lower(func.coalesce(data_text(self.status_key), "")).in_(ROLLING_STATUSES),
		)


def _tags_filter(name: str, raw: Any, today: date) -> Predicate | None:
	values = _as_values(raw)
	if not values:
		return None
	return Resource.tags.overlap(values)


def _verified_filter(name: str, raw: Any, today: date) -> Predicate | None:
	flag = _as_flag(name, raw)
	if flag is None:
		return None
	return Resource.verified.is_(flag)


FilterBuilder = Callable[[str, Any, date], "Predicate | None"]

SHARED_FILTERS: dict[str, FilterBuilder] = {
	"tags": _tags_filter,
	"verified": _verified_filter,
}

_CATALOG_FILTERS: dict[str, FilterBuilder] = {
	"category": TextIn("category"),
	"costType": TextIn("costType"),
	"provider": TextIn("provider"),
}

_PERIODICAL_FILTERS: dict[str, FilterBuilder] = {
	"frequency": TextIn("frequency"),
	"source": TextIn("source"),
	"topic": TextIn("topic"),
}

FACET_FILTERS: dict[ResourceTypeEnum, dict[str, FilterBuilder]] = {
	ResourceTypeEnum.grants: {
		"amountMin": NumberAtLeast("award_max"),
		"amountMax": NumberAtMost("award_min"),
		"focusAreas": ArrayAny("focusAreas"),
		"orgTypes": ArrayAny("orgTypes"),
		"regions": ArrayAny("regions", wildcard=ALL_REGIONS),
		"hideExpired": HideExpired(),
	},
	ResourceTypeEnum.organizations: {
		"orgType": TextIn("orgType"),
		"region": TextIn("region"),
		"focusArea": ArrayAny("focusAreas"),
	},
	ResourceTypeEnum.universities: {
		"state": TextIn("state"),
		"region": TextIn("region"),
	},
	ResourceTypeEnum.learning: {
		"category": TextIn("category"),
		"costType": TextIn("costType"),
		"level": TextIn("level"),
		"format": TextIn("format"),
		"language": TextIn("language"),
	},
	ResourceTypeEnum.tools: _CATALOG_FILTERS,
	ResourceTypeEnum.templates: _CATALOG_FILTERS,
	ResourceTypeEnum.bulletins: _PERIODICAL_FILTERS,
	ResourceTypeEnum.industry_news: _PERIODICAL_FILTERS,
}


def filters_for(resource_type: ResourceTypeEnum | None) -> dict[str, FilterBuilder]:
	"""Filters accepted for a type; cross-type searches only get the shared ones."""
	if resource_type is None:
		return dict(SHARED_FILTERS)
	return {**SHARED_FILTERS, **FACET_FILTERS.get(resource_type, {})}


# ═══════════════════════════════════════════════════════════════════════════
# Query model
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class ResourceQuery:
	today: date
	resource_type: ResourceTypeEnum | None = None
	q: str | None = None
	filters: Mapping[str, Any] = field(default_factory=dict)
	sort: ResourceSortEnum = ResourceSortEnum.relevance
	cursor: str | None = None
	limit: int | None = None

	@property
	def search_text(self) -> str | None:
		if self.q is None:
			return None
		stripped = self.q.strip()
		return stripped or None


@dataclass(slots=True)
class ResourcePageResult:
	items: list[Resource]
	total: int
	next_cursor: str | None


def _like_pattern(text_value: str) -> str:
	escaped = text_value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
	return f"%{escaped}%"


def build_predicates(query: ResourceQuery) -> list[Predicate]:
	"""Filter conditions shared by the count and the page statement.

	Unknown filter keys are skipped.  The cursor never contributes here.
	"""
	predicates: list[Predicate] = []
	if query.resource_type is not None:
		predicates.append(Resource.type == query.resource_type)

	search = query.search_text
	if search is not None:
		pattern = _like_pattern(search)
		predicates.append(
			or_(
				Resource.title.ilike(pattern, escape="\\"),
				func.coalesce(Resource.summary, "").ilike(pattern, escape="\\"),
				func.array_to_string(Resource.tags, " ").ilike(pattern, escape="\\"),
			)
		)

	registry = filters_for(query.resource_type)
	for name, raw in query.filters.items():
		builder = registry.get(name)
		if builder is None:
			continue
		predicate = builder(name, raw, query.today)
		if predicate is not None:
			predicates.append(predicate)
	return predicates


# ═══════════════════════════════════════════════════════════════════════════
# Sorting
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class SortSpec:
	"""A never-NULL scalar sort expression plus its direction and value kind."""

	expression: ColumnElement[Any]
	descending: bool
	kind: str  # int | decimal | text | date | datetime


def _text_key(key: str) -> ColumnElement[str]:
	return func.coalesce(func.lower(data_text(key)), "")


def sort_spec(sort: ResourceSortEnum, search_text: str | None = None) -> SortSpec:
	if sort == ResourceSortEnum.relevance:
		quality = func.coalesce(Resource.quality_score, 0)
		if search_text is None:
			return SortSpec(quality, True, "int")
		bonus = case(
			(Resource.title.ilike(_like_pattern(search_text), escape="\\"), 100),
			else_=0,
		)
		return SortSpec(bonus + quality, True, "int")
	if sort == ResourceSortEnum.title:
		return SortSpec(func.lower(Resource.title), False, "text")
	if sort == ResourceSortEnum.newest:
		return SortSpec(Resource.created_at, True, "datetime")
	if sort == ResourceSortEnum.quality:
		return SortSpec(func.coalesce(Resource.quality_score, -1), True, "int")
	if sort == ResourceSortEnum.dueDate:
		return SortSpec(func.coalesce(data_date("due_date"), _FAR_FUTURE), False, "date")
	if sort == ResourceSortEnum.agency:
		return SortSpec(_text_key("agency"), False, "text")
	if sort == ResourceSortEnum.amount:
		return SortSpec(
			func.coalesce(data_numeric("award_max"), Decimal("-1")), True, "decimal"
		)
	if sort == ResourceSortEnum.provider:
		return SortSpec(_text_key("provider"), False, "text")
	if sort == ResourceSortEnum.cost:
		return SortSpec(
			func.coalesce(data_numeric("priceTypical"), _COST_SENTINEL), False, "decimal"
		)
	raise ValidationError(f"Unsupported sort key: {sort}")


def _order_by(spec: SortSpec) -> list[ColumnElement[Any]]:
	primary = spec.expression.desc() if spec.descending else spec.expression.asc()
	return [primary, Resource.id.asc()]


# ═══════════════════════════════════════════════════════════════════════════
# Cursor codec
# ═══════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Cursor:
	sort: ResourceSortEnum
	value: Any
	last_id: uuid.UUID


def _encode_value(kind: str, value: Any) -> Any:
	if kind == "int":
		return int(value)
	if kind == "decimal":
		return str(value)
	if kind in {"date", "datetime"}:
		return value.isoformat()
	return str(value)


def _decode_value(kind: str, raw: Any) -> Any:
	if kind == "int":
		if isinstance(raw, bool) or not isinstance(raw, int):
			raise InvalidCursorError("Cursor value has the wrong type")
		return raw
	if not isinstance(raw, str):
		raise InvalidCursorError("Cursor value has the wrong type")
	try:
		if kind == "decimal":
			value = Decimal(raw)
			if not value.is_finite():
				raise InvalidCursorError("Cursor value has the wrong type")
			return value
		if kind == "date":
			return date.fromisoformat(raw)
		if kind == "datetime":
			return datetime.fromisoformat(raw)
	except (InvalidOperation, ValueError) as exc:
		raise InvalidCursorError("Cursor value has the wrong type") from exc
	return raw


def encode_cursor(sort: ResourceSortEnum, kind: str, value: Any, last_id: uuid.UUID) -> str:
	payload = {"s": str(sort), "v": _encode_value(kind, value), "id": str(last_id)}
	raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
	return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_cursor(token: str, sort: ResourceSortEnum, kind: str) -> Cursor:
	"""Parse an opaque cursor; anything malformed raises InvalidCursorError."""
	try:
		padded = token + "=" * (-len(token) % 4)
		payload = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
	except (binascii.Error, ValueError, UnicodeError) as exc:
		raise InvalidCursorError("Cursor is malformed") from exc

	if not isinstance(payload, dict) or set(payload) != {"s", "v", "id"}:
		raise InvalidCursorError("Cursor is malformed")
	if payload["s"] != str(sort):
		raise InvalidCursorError("Cursor was issued for a different sort order")
	try:
		last_id = uuid.UUID(str(payload["id"]))
	except ValueError as exc:
		raise InvalidCursorError("Cursor is malformed") from exc
	return Cursor(sort=sort, value=_decode_value(kind, payload["v"]), last_id=last_id)


def keyset_predicate(spec: SortSpec, cursor: Cursor) -> Predicate:
	"""Rows strictly after ``cursor`` in ``(expression, id ASC)`` order."""
	expression = spec.expression
	value = literal(cursor.value, type_=expression.type)
	beyond = expression < value if spec.descending else expression > value
	return or_(beyond, and_(expression == value, Resource.id > cursor.last_id))


# ═══════════════════════════════════════════════════════════════════════════
# Statements and execution
# ═══════════════════════════════════════════════════════════════════════════


def resolve_limit(limit: int | None) -> int:
	settings = get_settings()
	if limit is None:
		return settings.resource_page_size_default
	return max(1, min(limit, settings.resource_page_size_max))


def build_count_statement(predicates: Sequence[Predicate]) -> Select[Any]:
	return select(func.count()).select_from(Resource).where(*predicates)


def build_page_statement(
	predicates: Sequence[Predicate],
	spec: SortSpec,
	cursor: Cursor | None,
	limit: int,
) -> Select[Any]:
	conditions = list(predicates)
	if cursor is not None:
		conditions.append(keyset_predicate(spec, cursor))
	return (
		select(Resource, spec.expression.label("sort_value"))
		.where(*conditions)
		.order_by(*_order_by(spec))
		.limit(limit + 1)
	)


class ResourceQueryEngine:
	"""Runs a ResourceQuery against the resources table."""

	def __init__(self, db: AsyncSession) -> None:
		self.db = db

	async def search(self, query: ResourceQuery) -> ResourcePageResult:
		limit = resolve_limit(query.limit)
		spec = sort_spec(query.sort, query.search_text)
		cursor = (
			decode_cursor(query.cursor, query.sort, spec.kind)
			if query.cursor
			else None
		)
		predicates = build_predicates(query)

		total = int((await self.db.execute(build_count_statement(predicates))).scalar_one())
		rows = (
			await self.db.execute(build_page_statement(predicates, spec, cursor, limit))
		).all()

		has_more = len(rows) > limit
		page = rows[:limit]
		next_cursor = None
		if has_more and page:
			last_resource, last_value = page[-1]
			next_cursor = encode_cursor(query.sort, spec.kind, last_value, last_resource.id)
		return ResourcePageResult(
			items=[resource for resource, _ in page],
			total=total,
			next_cursor=next_cursor,
		)


def parse_filters(raw: str | None) -> dict[str, Any]:
	"""Decode the ``filters`` query parameter (a JSON object)."""
	if raw is None or not raw.strip():
		return {}
	try:
		parsed = json.loads(raw)
	except json.JSONDecodeError as exc:
		raise ValidationError("filters must be a JSON object") from exc
	if not isinstance(parsed, dict):
		raise ValidationError("filters must be a JSON object")
	return parsed


# devcamper/core/query.py
"""
Query-string DSL for list endpoints.

Turns parameters such as ``average_cost[lte]=10000&careers[in]=Business,UI/UX
&select=name,description&sort=-average_cost&page=2&limit=10`` into a typed
:class:`ListQuery`. Only an enumerated operator set is accepted and field
names are checked against the resource's queryable fields, so raw client
input never reaches the database as an operator or field path.
"""
import re
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple
from fastapi import status
from pydantic import BaseModel
from devcamper.core.errors import ErrorResponse
from devcamper.models.base import PageLink, Pagination

CONTROL_KEYS = ("select", "sort", "page", "limit")
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_IN_VALUES = 30

KEY_RE = re.compile(r"^(?P<field>[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*)(?:\[(?P<op>[A-Za-z]+)\])?$")
INT_RE = re.compile(r"^-?(0|[1-9]\d*)$")
FLOAT_RE = re.compile(r"^-?\d*\.\d+$")


class FilterOperator(str, Enum):
    eq = "eq"
    gt = "gt"
    gte = "gte"
    lt = "lt"
    lte = "lte"
    in_ = "in"


FIRESTORE_OPERATORS = {
    FilterOperator.eq: "==",
    FilterOperator.gt: ">",
    FilterOperator.gte: ">=",
    FilterOperator.lt: "<",
    FilterOperator.lte: "<=",
    FilterOperator.in_: "in",
}


class FilterClause(BaseModel):
    field: str
    operator: FilterOperator
    value: Any

    def firestore_operator(self, list_field: bool = False) -> str:
        # Membership on array fields uses Firestore's array operators
        if list_field and self.operator == FilterOperator.eq:
            return "array_contains"
        if list_field and self.operator == FilterOperator.in_:
            return "array_contains_any"
        return FIRESTORE_OPERATORS[self.operator]


class SortField(BaseModel):
    field: str
    descending: bool = False


class ListQuery(BaseModel):
    filters: List[FilterClause] = []
    select: Optional[List[str]] = None
    sort: List[SortField] = []
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def coerce_value(raw: str, kind: type = str) -> Any:
    """Convert a query-string value to the stored type of the field it filters.

    Firestore comparisons are type-strict, so a zipcode stored as a string
    must stay a string even when it looks like a number.
    """
    if kind is bool:
        lowered = raw.lower()
        if lowered not in ("true", "false"):
            raise ValueError(raw)
        return lowered == "true"
    if kind is int:
        if not INT_RE.match(raw):
            raise ValueError(raw)
        return int(raw)
    if kind is float:
        if not (INT_RE.match(raw) or FLOAT_RE.match(raw)):
            raise ValueError(raw)
        return float(raw)
    if kind is datetime:
        return datetime.fromisoformat(raw)
    return raw


def _check_field(field: str, allowed: Set[str], nested: Set[str]) -> str:
    root, _, rest = field.partition(".")
    if root not in allowed or (rest and root not in nested):
        raise ErrorResponse(f"Unknown field '{field}'", status.HTTP_400_BAD_REQUEST)
    return field


def _split(value: str) -> List[str]:
    return [part.strip() for part in value.split(",") if part.strip()]


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def parse_filter(
    key: str,
    raw: str,
    allowed: Set[str],
    nested: Set[str] = frozenset(),
    kinds: Optional[Dict[str, type]] = None,
) -> FilterClause:
    match = KEY_RE.match(key)
    if not match:
        raise ErrorResponse(f"Invalid filter parameter '{key}'", status.HTTP_400_BAD_REQUEST)

    field = _check_field(match.group("field"), allowed, nested)
    op = match.group("op") or FilterOperator.eq.value
    try:
        operator = FilterOperator(op)
    except ValueError:
        raise ErrorResponse(f"Unsupported filter operator '{op}'", status.HTTP_400_BAD_REQUEST)

    kind = (kinds or {}).get(field, str)

    def convert(value: str) -> Any:
        try:
            return coerce_value(value, kind)
        except ValueError:
            raise ErrorResponse(
                f"Invalid value '{value}' for field '{field}', expected {kind.__name__}",
                status.HTTP_400_BAD_REQUEST,
            )

    if operator == FilterOperator.in_:
        values = [convert(v) for v in _split(raw)]
        if not values or len(values) > MAX_IN_VALUES:
            raise ErrorResponse(
                f"'{key}' takes between 1 and {MAX_IN_VALUES} comma separated values",
                status.HTTP_400_BAD_REQUEST,
            )
        return FilterClause(field=field, operator=operator, value=values)
    return FilterClause(field=field, operator=operator, value=convert(raw))


def parse_list_query(
    params: Iterable[Tuple[str, str]],
    allowed: Set[str],
    nested: Set[str] = frozenset(),
    default_sort: str = "-created_at",
    kinds: Optional[Dict[str, type]] = None,
) -> ListQuery:
    controls = {}
    filters = []
    for key, raw in params:
        if key in CONTROL_KEYS:
            controls[key] = raw
            continue
        filters.append(parse_filter(key, raw, allowed, nested, kinds))

    select = None
    if controls.get("select"):
        select = [_check_field(f, allowed, nested) for f in _split(controls["select"])]

    sort = []
    for item in _split(controls.get("sort") or default_sort):
        descending = item.startswith("-")
        field = _check_field(item.lstrip("-+"), allowed, nested)
        sort.append(SortField(field=field, descending=descending))

    return ListQuery(
        filters=filters,
        select=select or None,
        sort=sort,
        page=_positive_int(controls.get("page"), DEFAULT_PAGE),
        limit=_positive_int(controls.get("limit"), DEFAULT_LIMIT),
    )


def build_pagination(page: int, limit: int, total: int) -> Pagination:
    pagination = Pagination()
    if page * limit < total:
        pagination.next = PageLink(page=page + 1, limit=limit)
    if (page - 1) * limit > 0:
        pagination.prev = PageLink(page=page - 1, limit=limit)
    return pagination

"""
Generic list-query engine

Turns the raw query string of a listing request into a ListQuery plan
(filters, projection, sort, pagination) that any repository can run against
its table, and wraps the result in a Page that knows how to build the
listing envelope.

Query string conventions (shared by users, stores, products, orders and
categories):

    ?select=name,email            only these fields (plus id)
    ?sort=name,-created_at        ascending name, then newest first
    ?page=2&limit=10              second page of 10
    ?status=PENDING               equality
    ?price=gt:100                 comparison (gt, gte, lt, lte)
    ?price[gte]=10&price[lte]=20  bracket form, conditions are ANDed
    ?status=in:PENDING,PROCESSING membership

Field names, operators and operand types are validated against the
collection's ResourceSchema, so every identifier that reaches SQL comes from
the schema and every operand is a bound parameter.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple
from uuid import UUID

from storefront.core.errors import ClientError


RESERVED_PARAMS = ("select", "sort", "page", "limit")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 16

SQL_OPERATORS = {
    "eq": "=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}

# "gt:100", "in:a,b" - the operator must be a whole word followed by a colon
OPERATOR_VALUE = re.compile(r"^\b(gte|gt|lte|lt|in)\b:(.*)$", re.DOTALL)

# "price[gt]" - the form nested query-string keys take
BRACKET_KEY = re.compile(r"^([A-Za-z_][\w.]*)\[(eq|gte|gt|lte|lt|in)\]$")

TRUE_VALUES = {"true", "1", "yes", "on"}
FALSE_VALUES = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class FieldSpec:
    """
    How one public field maps onto the table

    Fields:
        type: text, integer, number, boolean, uuid or datetime
        column: top-level column holding the value (used for projection)
        expression: SQL expression for filtering/sorting when the value is
            nested inside a JSONB column; defaults to the column itself
        array: the column is a PostgreSQL array (membership semantics)
        filterable: false for JSON documents that can only be projected
        columns: several top-level columns making up one composite value;
            projected and sorted together, never filtered
    """
    type: str = "text"
    column: Optional[str] = None
    expression: Optional[str] = None
    array: bool = False
    filterable: bool = True
    columns: Tuple[str, ...] = ()

    def sql(self, name: str) -> str:
        return self.expression or self.column or name

    def projection(self, name: str) -> Tuple[str, ...]:
        return self.columns or (self.column or name,)

    def sort_terms(self, name: str) -> Tuple[str, ...]:
        if self.columns and not self.expression:
            return self.columns
        return (self.sql(name),)


@dataclass
class ResourceSchema:
    """Public fields of one collection and how to reach them in SQL"""
    table: str
    fields: Dict[str, FieldSpec]
    hidden: FrozenSet[str] = frozenset()
    default_sort: str = "-created_at"

    def get(self, name: str, param: str) -> FieldSpec:
        if name in self.hidden or name not in self.fields:
            raise ClientError(f"Unknown field '{name}' in query parameter '{param}'")
        return self.fields[name]

    def columns_of(self, name: str) -> Tuple[str, ...]:
        return self.fields[name].projection(name)

    @property
    def columns(self) -> List[str]:
        """Top-level columns returned when no projection is requested"""
        columns = []
        for name in self.fields:
            if name in self.hidden:
                continue
            for column in self.columns_of(name):
                if column not in columns:
                    columns.append(column)
        return columns


@dataclass
class Filter:
    field: str
    operator: str
    value: Any


def cast_value(raw: str, spec: FieldSpec, param: str) -> Any:
    """Cast a query-string operand to the field's type or raise ClientError"""
    value = raw.strip()
    try:
        if spec.type == "integer":
            return int(value)
        if spec.type == "number":
            number = Decimal(value)
            if not number.is_finite():
                raise ValueError(value)
            return number
        if spec.type == "boolean":
            lowered = value.lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
            raise ValueError(value)
        if spec.type == "uuid":
            return UUID(value)
        if spec.type == "datetime":
            return datetime.fromisoformat(value)
    except (ValueError, InvalidOperation):
        raise ClientError(f"Invalid value '{raw}' for query parameter '{param}'")
    return value


def parse_filter(key: str, raw: str, schema: ResourceSchema) -> Filter:
    """Build one filter from a query-string pair"""
    name, operator, operand = key, "eq", raw

    bracket = BRACKET_KEY.match(key)
    if bracket:
        name, operator = bracket.group(1), bracket.group(2)
    else:
        match = OPERATOR_VALUE.match(raw)
        if match:
            operator, operand = match.group(1), match.group(2)

    spec = schema.get(name, key)
    if not spec.filterable:
        raise ClientError(f"Field '{name}' cannot be used as a filter")

    if operator == "in":
        items = [item for item in operand.split(",") if item.strip()]
        if not items:
            raise ClientError(f"Query parameter '{key}' needs at least one value for 'in'")
        return Filter(name, operator, [cast_value(item, spec, key) for item in items])

    if spec.array and operator != "eq":
        raise ClientError(f"Operator '{operator}' is not supported for list field '{name}'")

    return Filter(name, operator, cast_value(operand, spec, key))


def positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass
class ListQuery:
    """Structured filter/sort/projection/pagination plan for one collection"""
    schema: ResourceSchema
    filters: List[Filter] = field(default_factory=list)
    fields: Optional[List[str]] = None
    sort: List[Tuple[str, bool]] = field(default_factory=list)
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        params: Iterable[Tuple[str, str]],
        schema: ResourceSchema,
        default_limit: int = DEFAULT_LIMIT
    ) -> "ListQuery":
        """
        Build a plan from raw query-string pairs

        Args:
            params: (key, value) pairs, repeated keys allowed
            schema: collection the plan targets
            default_limit: page size when ``limit`` is absent or invalid

        Raises:
            ClientError: unknown field or malformed operand
        """
        control: Dict[str, str] = {}
        filters: List[Filter] = []

        for key, value in params:
            if not key:
                continue
            if key in RESERVED_PARAMS:
                control[key] = value
                continue
            filters.append(parse_filter(key, value, schema))

        query = cls(
            schema=schema,
            filters=filters,
            page=positive_int(control.get("page"), DEFAULT_PAGE),
            limit=positive_int(control.get("limit"), default_limit),
        )
        query.fields = query._parse_select(control.get("select"))
        query.sort = query._parse_sort(control.get("sort") or schema.default_sort)
        return query

    def _parse_select(self, raw: Optional[str]) -> Optional[List[str]]:
        if not raw:
            return None
        columns = ["id"]
        for name in (part.strip() for part in raw.split(",")):
            if not name:
                continue
            self.schema.get(name, "select")
            for column in self.schema.columns_of(name):
                if column not in columns:
                    columns.append(column)
        return columns

    def _parse_sort(self, raw: str) -> List[Tuple[str, bool]]:
        sort = []
        for part in (p.strip() for p in raw.split(",")):
            if not part:
                continue
            descending = part.startswith("-")
            name = part.lstrip("-+")
            self.schema.get(name, "sort")
            sort.append((name, descending))
        return sort

    @property
    def start(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def end(self) -> int:
        return self.page * self.limit

    def where_clause(self, extra_conditions: List[str] = None, extra_params: List[Any] = None) -> Tuple[str, List[Any]]:
        """
        Compile filters into a SQL condition and its parameters

        Returns:
            Tuple of (condition string, parameter list); "1=1" when unfiltered
        """
        conditions = list(extra_conditions or [])
        params = list(extra_params or [])

        for f in self.filters:
            spec = self.schema.fields[f.field]
            expression = spec.sql(f.field)

            if spec.array:
                if f.operator == "in":
                    conditions.append(f"{expression} && %s")
                else:
                    conditions.append(f"%s = ANY({expression})")
            elif f.operator == "in":
                conditions.append(f"{expression} = ANY(%s)")
            else:
                conditions.append(f"{expression} {SQL_OPERATORS[f.operator]} %s")
            params.append(f.value)

        where = " AND ".join(conditions) if conditions else "1=1"
        return where, params

    def select_clause(self) -> str:
        return ", ".join(self.fields or self.schema.columns)

    def order_clause(self) -> str:
        parts = []
        for name, descending in self.sort:
            for expression in self.schema.fields[name].sort_terms(name):
                parts.append(f"{expression} {'DESC' if descending else 'ASC'}")
        return ", ".join(parts) if parts else "created_at DESC"


@dataclass
class Page:
    """One page of a filtered, sorted collection"""
    items: List[dict]
    total: int
    page: int
    limit: int

    @property
    def count(self) -> int:
        return len(self.items)

    @property
    def pagination(self) -> dict:
        start = (self.page - 1) * self.limit
        end = self.page * self.limit
        pagination = {}
        if end < self.total:
            pagination["next"] = {"page": self.page + 1, "limit": self.limit}
        if start > 0:
            pagination["prev"] = {"page": self.page - 1, "limit": self.limit}
        return pagination

    def to_response(self, message: str = None) -> dict:
        body = {
            "error": False,
            "count": self.count,
            "total": self.total,
            "pagination": self.pagination,
            "data": self.items,
        }
        if message:
            body["message"] = message
        return body

"""Pydantic models for parsed and resolved metrics.

metrics come in two flavours: what the parser produces from raw tokens (no
schema knowledge at all) and what the validator produces after checking each
field reference against one environment's schema. both are tagged unions on
``kind`` so every stage can dispatch the same way.
"""

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class AggregateFunction(str, Enum):
    """Aggregate functions accepted in ``<fn>:<field>`` tokens."""

    SUM = "sum"
    AVG = "avg"
    MIN = "min"
    MAX = "max"
    MEDIAN = "median"
    STDDEV = "stddev"
    VARIANCE = "variance"


class ValueType(str, Enum):
    """What kind of value a metric produces.

    dates can be displayed side by side but are never subtracted.
    """

    NUMBER = "number"
    DATE = "date"


# functions that only make sense over numbers. min/max also accept dates.
NUMERIC_FUNCTIONS = frozenset(
    {
        AggregateFunction.SUM,
        AggregateFunction.AVG,
        AggregateFunction.MEDIAN,
        AggregateFunction.STDDEV,
        AggregateFunction.VARIANCE,
    }
)


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# --- parsed metrics (parser output) ---


class CountMetric(_Frozen):
    """Row count."""

    kind: Literal["count"] = "count"


class FieldAggregateMetric(_Frozen):
    """A single aggregate function over one field."""

    kind: Literal["field_aggregate"] = "field_aggregate"
    function: AggregateFunction
    field: str


class CountDistinctMetric(_Frozen):
    kind: Literal["count_distinct"] = "count_distinct"
    field: str


class RatioMetric(_Frozen):
    """Quotient of two field aggregates, computed after both are fetched."""

    kind: Literal["ratio"] = "ratio"
    numerator: FieldAggregateMetric
    denominator: FieldAggregateMetric


class CountIfMetric(_Frozen):
    kind: Literal["count_if"] = "count_if"
    condition: str  # raw predicate text, case preserved


class SumIfMetric(_Frozen):
    kind: Literal["sum_if"] = "sum_if"
    field: str
    condition: str


ParsedMetric = Annotated[
    CountMetric
    | FieldAggregateMetric
    | CountDistinctMetric
    | RatioMetric
    | CountIfMetric
    | SumIfMetric,
    Field(discriminator="kind"),
]


# --- resolved metrics (validator output) ---


class ResolvedField(_Frozen):
    """Field metadata copied from the schema the metric was resolved against."""

    name: str  # canonical casing from the schema, not from the token
    type: str
    label: str


class ResolvedCount(_Frozen):
    kind: Literal["count"] = "count"
    value_type: ValueType = ValueType.NUMBER

    @property
    def display_name(self) -> str:
        return "COUNT(Id)"


class ResolvedFieldAggregate(_Frozen):
    kind: Literal["field_aggregate"] = "field_aggregate"
    function: AggregateFunction
    field: ResolvedField
    value_type: ValueType = ValueType.NUMBER

    @property
    def display_name(self) -> str:
        return f"{self.function.value.upper()}({self.field.name})"


class ResolvedCountDistinct(_Frozen):
    kind: Literal["count_distinct"] = "count_distinct"
    field: ResolvedField
    value_type: ValueType = ValueType.NUMBER

    @property
    def display_name(self) -> str:
        return f"COUNT_DISTINCT({self.field.name})"


class ResolvedRatio(_Frozen):
    kind: Literal["ratio"] = "ratio"
    numerator: ResolvedFieldAggregate
    denominator: ResolvedFieldAggregate
    value_type: ValueType = ValueType.NUMBER

    @property
    def display_name(self) -> str:
        return f"{self.numerator.display_name} / {self.denominator.display_name}"


class ResolvedCountIf(_Frozen):
    kind: Literal["count_if"] = "count_if"
    condition: str
    value_type: ValueType = ValueType.NUMBER

    @property
    def display_name(self) -> str:
        return f"COUNT_IF({self.condition})"


class ResolvedSumIf(_Frozen):
    kind: Literal["sum_if"] = "sum_if"
    field: ResolvedField
    condition: str
    value_type: ValueType = ValueType.NUMBER

    @property
    def display_name(self) -> str:
        return f"SUM_IF({self.field.name}|{self.condition})"


ResolvedMetric = Annotated[
    ResolvedCount
    | ResolvedFieldAggregate
    | ResolvedCountDistinct
    | ResolvedRatio
    | ResolvedCountIf
    | ResolvedSumIf,
    Field(discriminator="kind"),
]

"""Pydantic models for compiled aggregate plans.

a plan is built once from a reconciled metric list and handed straight to the
executor. everything is frozen and uses tuples so nothing downstream can
append to a plan after the builder returns it.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from metricrecon.models.metric import (
    ResolvedCount,
    ResolvedCountDistinct,
    ResolvedCountIf,
    ResolvedFieldAggregate,
    ResolvedRatio,
    ResolvedSumIf,
    ValueType,
)


class AggregateExpression(BaseModel):
    """One column of the shared aggregate query, e.g. ``SUM(Amount) sum__amount``."""

    model_config = ConfigDict(frozen=True)

    alias: str
    soql: str
    value_type: ValueType


class DirectMetricDefinition(BaseModel):
    """Metric whose value is read straight from one alias."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["direct"] = "direct"
    metric: Annotated[
        ResolvedCount
        | ResolvedFieldAggregate
        | ResolvedCountDistinct
        | ResolvedCountIf
        | ResolvedSumIf,
        Field(discriminator="kind"),
    ]
    alias: str


class RatioMetricDefinition(BaseModel):
    """Metric computed as numerator alias / denominator alias after execution."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ratio"] = "ratio"
    metric: ResolvedRatio
    alias: str
    numerator_alias: str
    denominator_alias: str


MetricDefinition = Annotated[
    DirectMetricDefinition | RatioMetricDefinition,
    Field(discriminator="kind"),
]


class ConditionalMetricPlan(BaseModel):
    """Standalone query for a count-if/sum-if metric.

    conditional metrics carry their own predicate so they can't be columns of
    the shared query - each one is its own round trip.
    """

    model_config = ConfigDict(frozen=True)

    alias: str
    soql: str  # the aggregate expression, COUNT(Id) or SUM(field)
    condition: str  # normalized predicate
    aggregate_query: str
    value_type: ValueType = ValueType.NUMBER


class AggregatePlan(BaseModel):
    """Everything the executor needs to evaluate one metric list."""

    model_config = ConfigDict(frozen=True)

    object_name: str
    where_clause: str | None = None
    aggregate_query: str | None = None  # absent when every metric is conditional
    expressions: tuple[AggregateExpression, ...] = ()
    metrics: tuple[MetricDefinition, ...] = ()
    conditional_metrics: tuple[ConditionalMetricPlan, ...] = ()
    sample_fields: tuple[str, ...] = ()

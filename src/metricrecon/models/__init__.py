"""Pydantic models for metricrecon."""

from metricrecon.models.comparison import (
    ComparisonFilters,
    ComparisonQueries,
    ComparisonReport,
    ComparisonResult,
    EnvironmentEvaluation,
    EnvironmentInfo,
    MetricComparisonRow,
    SampleData,
)
from metricrecon.models.metric import (
    AggregateFunction,
    CountDistinctMetric,
    CountIfMetric,
    CountMetric,
    FieldAggregateMetric,
    ParsedMetric,
    RatioMetric,
    ResolvedCount,
    ResolvedCountDistinct,
    ResolvedCountIf,
    ResolvedField,
    ResolvedFieldAggregate,
    ResolvedMetric,
    ResolvedRatio,
    ResolvedSumIf,
    SumIfMetric,
    ValueType,
)
from metricrecon.models.plan import (
    AggregateExpression,
    AggregatePlan,
    ConditionalMetricPlan,
    DirectMetricDefinition,
    MetricDefinition,
    RatioMetricDefinition,
)
from metricrecon.models.query import QueryResult
from metricrecon.models.schema import FieldMetadata, ObjectSchema

__all__ = [
    "AggregateExpression",
    "AggregateFunction",
    "AggregatePlan",
    "ComparisonFilters",
    "ComparisonQueries",
    "ComparisonReport",
    "ComparisonResult",
    "ConditionalMetricPlan",
    "CountDistinctMetric",
    "CountIfMetric",
    "CountMetric",
    "DirectMetricDefinition",
    "EnvironmentEvaluation",
    "EnvironmentInfo",
    "FieldAggregateMetric",
    "FieldMetadata",
    "MetricComparisonRow",
    "MetricDefinition",
    "ObjectSchema",
    "ParsedMetric",
    "QueryResult",
    "RatioMetric",
    "RatioMetricDefinition",
    "ResolvedCount",
    "ResolvedCountDistinct",
    "ResolvedCountIf",
    "ResolvedField",
    "ResolvedFieldAggregate",
    "ResolvedMetric",
    "ResolvedRatio",
    "ResolvedSumIf",
    "SampleData",
    "SumIfMetric",
    "ValueType",
]

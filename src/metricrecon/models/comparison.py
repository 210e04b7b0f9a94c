"""Pydantic models for comparison results and reports."""

from typing import Any

from pydantic import BaseModel, Field

from metricrecon.models.metric import ResolvedMetric

MetricValue = int | float | str | None


class MetricComparisonRow(BaseModel):
    """Source vs target value for one metric.

    difference is target - source, and only when both sides are numbers and
    the metric is number-typed.
    """

    metric: ResolvedMetric
    alias: str
    source_value: MetricValue = None
    target_value: MetricValue = None
    difference: int | float | None = None

    @property
    def label(self) -> str:
        return self.metric.display_name


class EnvironmentEvaluation(BaseModel):
    """Raw results from one environment, keyed by alias."""

    aggregates: dict[str, MetricValue] = Field(default_factory=dict)
    samples: list[dict[str, Any]] = Field(default_factory=list)


class SampleData(BaseModel):
    source: list[dict[str, Any]] = Field(default_factory=list)
    target: list[dict[str, Any]] = Field(default_factory=list)


class ComparisonResult(BaseModel):
    """Output of running a plan against both environments."""

    metrics: list[MetricComparisonRow]
    samples: SampleData
    source: EnvironmentEvaluation
    target: EnvironmentEvaluation


class EnvironmentInfo(BaseModel):
    name: str
    environment_id: str
    schema_version: str


class ComparisonFilters(BaseModel):
    where: str | None = None
    sample_size: int = 0


class ComparisonQueries(BaseModel):
    aggregate: str | None = None
    conditional: list[str] = Field(default_factory=list)
    sample: str | None = None


class ComparisonReport(BaseModel):
    """Everything a renderer or exporter needs about one comparison run."""

    object: str
    metrics: list[MetricComparisonRow]
    filters: ComparisonFilters
    source: EnvironmentInfo
    target: EnvironmentInfo
    queries: ComparisonQueries
    samples: SampleData = Field(default_factory=SampleData)
    metadata_cache_minutes: int = 0

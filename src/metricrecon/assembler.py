"""Turn raw per-environment aggregate values into comparison rows.

nothing in here raises on bad data: a missing alias, a non-numeric value or a
zero denominator all just become None in the output row.
"""

from collections.abc import Mapping
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any

from metricrecon.models.comparison import MetricComparisonRow, MetricValue
from metricrecon.models.metric import ResolvedMetric, ValueType
from metricrecon.models.plan import (
    AggregatePlan,
    DirectMetricDefinition,
    MetricDefinition,
    RatioMetricDefinition,
)


def assemble_rows(
    plan: AggregatePlan,
    source_raw: Mapping[str, MetricValue],
    target_raw: Mapping[str, MetricValue],
) -> list[MetricComparisonRow]:
    """Build one comparison row per metric definition, in plan order."""
    return [build_metric_row(definition, source_raw, target_raw) for definition in plan.metrics]


def build_metric_row(
    definition: MetricDefinition,
    source_raw: Mapping[str, MetricValue],
    target_raw: Mapping[str, MetricValue],
) -> MetricComparisonRow:
    if isinstance(definition, DirectMetricDefinition):
        source_value = source_raw.get(definition.alias)
        target_value = target_raw.get(definition.alias)
    elif isinstance(definition, RatioMetricDefinition):
        source_value = compute_ratio(
            source_raw.get(definition.numerator_alias),
            source_raw.get(definition.denominator_alias),
        )
        target_value = compute_ratio(
            target_raw.get(definition.numerator_alias),
            target_raw.get(definition.denominator_alias),
        )
    else:
        raise TypeError(f"Unsupported metric definition: {type(definition).__name__}")

    return MetricComparisonRow(
        metric=definition.metric,
        alias=definition.alias,
        source_value=source_value,
        target_value=target_value,
        difference=compute_difference(definition.metric, source_value, target_value),
    )


def is_number(value: Any) -> bool:
    # bool is an int subclass but "True - False" is not a meaningful delta
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def compute_ratio(numerator: MetricValue, denominator: MetricValue) -> float | None:
    if not is_number(numerator) or not is_number(denominator):
        return None
    numerator, denominator = _plain(numerator), _plain(denominator)
    if denominator == 0:
        return None
    return numerator / denominator


def compute_difference(
    metric: ResolvedMetric, source_value: MetricValue, target_value: MetricValue
) -> int | float | None:
    """target - source for number metrics with two numeric values, else None."""
    if metric.value_type != ValueType.NUMBER:
        return None
    if not is_number(source_value) or not is_number(target_value):
        return None
    return _plain(target_value) - _plain(source_value)


def _plain(value: int | float | Decimal) -> int | float:
    # Decimal does not mix with float arithmetic
    if isinstance(value, Decimal):
        return normalize_aggregate_value(ValueType.NUMBER, value)
    return value


def normalize_aggregate_value(value_type: ValueType, raw: Any) -> MetricValue:
    """Coerce a raw driver value into what the assembler expects.

    numbers come back as int/float (Decimal included, strings parsed when
    possible), dates as ISO-8601 strings.
    """
    if raw is None:
        return None

    if value_type == ValueType.NUMBER:
        if isinstance(raw, bool):
            return int(raw)
        if isinstance(raw, (int, float)):
            return raw
        if isinstance(raw, Decimal):
            return int(raw) if raw == raw.to_integral_value() else float(raw)
        try:
            return float(raw)
        except (TypeError, ValueError):
            return None

    if isinstance(raw, (datetime, date, time)):
        return raw.isoformat()
    return raw if isinstance(raw, str) else str(raw)

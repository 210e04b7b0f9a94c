"""Cross-check the metric lists resolved against source and target.

both lists come from the same tokens, so they should line up one-to-one. if
they don't, the two environments disagree about a field (renamed, retyped,
...) and the numbers wouldn't be comparable anyway - so we stop.
"""

import structlog

from metricrecon.errors import MetricValidationMismatchError
from metricrecon.models.metric import (
    ResolvedCount,
    ResolvedCountDistinct,
    ResolvedCountIf,
    ResolvedFieldAggregate,
    ResolvedMetric,
    ResolvedRatio,
    ResolvedSumIf,
)

logger = structlog.get_logger()


def reconcile_metrics(
    source: list[ResolvedMetric], target: list[ResolvedMetric]
) -> list[ResolvedMetric]:
    """Return the source list once every pair is structurally equivalent.

    equivalence is symmetric, so reconcile(a, b) fails exactly when
    reconcile(b, a) does.
    """
    if len(source) != len(target):
        # same tokens went into both validations, so this is a bug upstream
        raise MetricValidationMismatchError(
            "Metric validation returned inconsistent results between source and target "
            f"({len(source)} vs {len(target)} metrics)."
        )

    for position, (metric, other) in enumerate(zip(source, target)):
        _check_pair(metric, other, position)
        _warn_on_type_drift(metric, other, position)

    return list(source)


def _check_pair(metric: ResolvedMetric, other: ResolvedMetric, position: int) -> None:
    if metric.kind != other.kind:
        raise MetricValidationMismatchError(
            f"Metric #{position + 1} kinds differ between environments "
            f"({metric.kind} vs {other.kind}).",
            position,
        )

    if isinstance(metric, ResolvedCount):
        return
    elif isinstance(metric, ResolvedFieldAggregate):
        if not _same_aggregate(metric, other):
            _mismatch("field", metric, other, position)
    elif isinstance(metric, ResolvedCountDistinct):
        if metric.field.name != other.field.name:
            _mismatch("field", metric, other, position)
    elif isinstance(metric, ResolvedRatio):
        if not (
            _same_aggregate(metric.numerator, other.numerator)
            and _same_aggregate(metric.denominator, other.denominator)
        ):
            _mismatch("ratio", metric, other, position)
    elif isinstance(metric, ResolvedCountIf):
        if metric.condition != other.condition:
            _mismatch("conditional", metric, other, position)
    elif isinstance(metric, ResolvedSumIf):
        if metric.field.name != other.field.name or metric.condition != other.condition:
            _mismatch("conditional", metric, other, position)
    else:
        raise TypeError(f"Unsupported metric kind: {type(metric).__name__}")


def _same_aggregate(left: ResolvedFieldAggregate, right: ResolvedFieldAggregate) -> bool:
    return left.function == right.function and left.field.name == right.field.name


def _mismatch(what: str, metric: ResolvedMetric, other: ResolvedMetric, position: int) -> None:
    raise MetricValidationMismatchError(
        f"{what.capitalize()} metric validation differs between source and target: "
        f"{metric.display_name} vs {other.display_name}.",
        position,
    )


def _warn_on_type_drift(metric: ResolvedMetric, other: ResolvedMetric, position: int) -> None:
    # same field, different declared type - still comparable, but worth a note
    if metric.value_type != other.value_type:
        logger.warning(
            "metric_value_type_drift",
            position=position,
            metric=metric.display_name,
            source_value_type=metric.value_type.value,
            target_value_type=other.value_type.value,
        )

"""Resolve parsed metrics against one environment's object schema.

this knows nothing about source vs target - call it once per environment with
that environment's schema and reconcile the two results afterwards.
"""

import structlog

from metricrecon.errors import (
    FieldNotFoundError,
    NonAggregatableFieldError,
    UnsupportedFieldTypeError,
)
from metricrecon.models.metric import (
    NUMERIC_FUNCTIONS,
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
from metricrecon.models.schema import FieldMetadata, ObjectSchema

logger = structlog.get_logger()


def validate_metrics(
    metrics: list[ParsedMetric], schema: ObjectSchema, environment_label: str
) -> list[ResolvedMetric]:
    """Check every field reference and attach field metadata and value types.

    Args:
        metrics: Parser output.
        schema: Describe result for the object in this environment.
        environment_label: Human label used in error messages ("source", "target").

    Returns:
        Resolved metrics in input order.
    """
    validator = _SchemaValidator(schema, environment_label)
    resolved = [validator.resolve(metric) for metric in metrics]
    logger.debug(
        "metrics_validated",
        environment=environment_label,
        object=schema.name,
        metric_count=len(resolved),
    )
    return resolved


class _SchemaValidator:
    def __init__(self, schema: ObjectSchema, environment_label: str) -> None:
        self.schema = schema
        self.environment = environment_label

    def resolve(self, metric: ParsedMetric) -> ResolvedMetric:
        if isinstance(metric, CountMetric):
            return ResolvedCount()
        elif isinstance(metric, FieldAggregateMetric):
            return self._resolve_field_aggregate(metric)
        elif isinstance(metric, CountDistinctMetric):
            # any aggregatable field can be counted, no type gate
            field = self._aggregatable_field(metric.field, metric.kind)
            return ResolvedCountDistinct(field=_resolved_field(field))
        elif isinstance(metric, RatioMetric):
            return ResolvedRatio(
                numerator=self._resolve_field_aggregate(metric.numerator),
                denominator=self._resolve_field_aggregate(metric.denominator),
            )
        elif isinstance(metric, CountIfMetric):
            # conditions are free-form, nothing to look up
            return ResolvedCountIf(condition=metric.condition)
        elif isinstance(metric, SumIfMetric):
            field = self._aggregatable_field(metric.field, metric.kind)
            if not field.is_numeric:
                self._unsupported(field, metric.kind, "numeric")
            return ResolvedSumIf(field=_resolved_field(field), condition=metric.condition)
        else:
            raise TypeError(f"Unsupported metric kind: {type(metric).__name__}")

    def _resolve_field_aggregate(self, metric: FieldAggregateMetric) -> ResolvedFieldAggregate:
        kind = metric.function.value
        field = self._aggregatable_field(metric.field, kind)

        if metric.function in NUMERIC_FUNCTIONS and not field.is_numeric:
            self._unsupported(field, kind, "numeric")
        if metric.function in (AggregateFunction.MIN, AggregateFunction.MAX) and not (
            field.is_numeric or field.is_temporal
        ):
            self._unsupported(field, kind, "numeric or date/time")

        return ResolvedFieldAggregate(
            function=metric.function,
            field=_resolved_field(field),
            value_type=_value_type(metric.function, field),
        )

    def _aggregatable_field(self, field_name: str, metric_kind: str) -> FieldMetadata:
        field = self.schema.get_field(field_name)
        if field is None:
            raise FieldNotFoundError(self.schema.name, field_name.strip(), self.environment)
        if not field.aggregatable:
            raise NonAggregatableFieldError(
                self.schema.name, field.name, self.environment, metric_kind
            )
        return field

    def _unsupported(self, field: FieldMetadata, metric_kind: str, required: str) -> None:
        raise UnsupportedFieldTypeError(
            self.schema.name, field.name, field.type, self.environment, metric_kind, required
        )


def _resolved_field(field: FieldMetadata) -> ResolvedField:
    return ResolvedField(name=field.name, type=field.type, label=field.label or field.name)


def _value_type(function: AggregateFunction, field: FieldMetadata) -> ValueType:
    # only min/max can hand back a date - everything else is arithmetic
    if function in (AggregateFunction.MIN, AggregateFunction.MAX) and field.is_temporal:
        return ValueType.DATE
    return ValueType.NUMBER

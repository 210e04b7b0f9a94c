"""Compile resolved metrics into aggregate queries.

the basic flow:
  1. normalize the base filter (blank means no filter)
  2. walk the metrics in order; plain aggregates and ratio legs become
     columns of one shared query, deduplicated by their call signature
  3. count-if / sum-if get a standalone query each, since every one of them
     has its own WHERE clause
  4. emit the shared query only if something landed in it

the output strings follow the vendor query syntax
(`SELECT <expr> <alias>, ... FROM <object> WHERE ...`) because executors are
string based. translating to another dialect is the executor's job.
"""

import re

import structlog

from metricrecon.compiler.conditions import normalize_condition
from metricrecon.errors import EmptyMetricListError
from metricrecon.models.metric import (
    ResolvedCount,
    ResolvedCountDistinct,
    ResolvedCountIf,
    ResolvedFieldAggregate,
    ResolvedMetric,
    ResolvedRatio,
    ResolvedSumIf,
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

logger = structlog.get_logger()

_NON_ALIAS_CHARS = re.compile(r"[^a-z0-9_]")
_CONDITION_ALIAS_LENGTH = 40


def sanitize_alias(value: str) -> str:
    """Lowercase and replace anything that isn't [a-z0-9_] with an underscore."""
    return _NON_ALIAS_CHARS.sub("_", value.lower())


def unique_alias(base: str, existing: set[str]) -> str:
    """Return ``base`` or ``base_1``, ``base_2``... and record it in ``existing``."""
    candidate = base
    counter = 1
    while candidate in existing:
        candidate = f"{base}_{counter}"
        counter += 1
    existing.add(candidate)
    return candidate


def normalize_where(where: str | None) -> str | None:
    if where is None:
        return None
    trimmed = where.strip()
    return trimmed or None


class AggregateQueryBuilder:
    """Builds an AggregatePlan from a reconciled metric list.

    alias bookkeeping lives on the builder instance, one namespace per kind of
    alias: shared expressions, metric definitions (ratios need an alias of
    their own that mustn't collide with their legs) and conditional queries.
    a builder is single use - build() returns the same plan every time.
    """

    def __init__(
        self, object_name: str, metrics: list[ResolvedMetric], where: str | None = None
    ) -> None:
        self.object_name = object_name
        self.metrics = list(metrics)
        self.where = where
        self._plan: AggregatePlan | None = None

    def build(self) -> AggregatePlan:
        if self._plan is None:
            self._plan = self._compile()
        return self._plan

    def _compile(self) -> AggregatePlan:
        if not self.metrics:
            raise EmptyMetricListError(
                "At least one metric is required to build an aggregate query."
            )

        self._where_clause = normalize_where(self.where)
        self._expression_aliases: set[str] = set()
        self._metric_aliases: set[str] = set()
        self._conditional_aliases: set[str] = set()
        self._expressions: dict[str, AggregateExpression] = {}  # signature -> expression
        self._conditionals: dict[str, ConditionalMetricPlan] = {}
        self._sample_fields: dict[str, None] = {}  # ordered set

        definitions = [self._compile_metric(metric) for metric in self.metrics]

        expressions = tuple(self._expressions.values())
        aggregate_query = None
        if expressions:
            select = ", ".join(f"{expr.soql} {expr.alias}" for expr in expressions)
            aggregate_query = self._select(select, self._where_clause)

        plan = AggregatePlan(
            object_name=self.object_name,
            where_clause=self._where_clause,
            aggregate_query=aggregate_query,
            expressions=expressions,
            metrics=tuple(definitions),
            conditional_metrics=tuple(self._conditionals.values()),
            sample_fields=tuple(self._sample_fields),
        )
        logger.debug(
            "plan_compiled",
            object=self.object_name,
            metrics=len(definitions),
            shared_expressions=len(expressions),
            conditional_queries=len(plan.conditional_metrics),
        )
        return plan

    def _compile_metric(self, metric: ResolvedMetric) -> MetricDefinition:
        if isinstance(metric, ResolvedRatio):
            numerator_alias = self._field_aggregate(metric.numerator)
            denominator_alias = self._field_aggregate(metric.denominator)
            alias = unique_alias(
                sanitize_alias(
                    f"ratio__{metric.numerator.function.value}_{metric.numerator.field.name}"
                    f"_{metric.denominator.function.value}_{metric.denominator.field.name}"
                ),
                self._metric_aliases,
            )
            return RatioMetricDefinition(
                metric=metric,
                alias=alias,
                numerator_alias=numerator_alias,
                denominator_alias=denominator_alias,
            )

        if isinstance(metric, ResolvedCount):
            alias = self._shared_expression("COUNT()", "COUNT(Id)", "count__all", metric.value_type)
        elif isinstance(metric, ResolvedFieldAggregate):
            alias = self._field_aggregate(metric)
        elif isinstance(metric, ResolvedCountDistinct):
            field = metric.field.name
            self._sample_fields[field] = None
            alias = self._shared_expression(
                f"COUNT_DISTINCT({field})",
                f"COUNT_DISTINCT({field})",
                sanitize_alias(f"count_distinct__{field}"),
                metric.value_type,
            )
        elif isinstance(metric, ResolvedCountIf):
            alias = self._conditional(
                f"count_if:[{metric.condition}]",
                "COUNT(Id)",
                metric.condition,
                "count_if__",
            )
        elif isinstance(metric, ResolvedSumIf):
            field = metric.field.name
            self._sample_fields[field] = None
            alias = self._conditional(
                f"sum_if:{field}:[{metric.condition}]",
                f"SUM({field})",
                metric.condition,
                f"sum_if__{field}_",
            )
        else:
            raise TypeError(f"Unsupported metric kind: {type(metric).__name__}")

        # direct metrics read their expression's alias; two identical metrics
        # legitimately share it, so this namespace only records it
        self._metric_aliases.add(alias)
        return DirectMetricDefinition(metric=metric, alias=alias)

    def _field_aggregate(self, metric: ResolvedFieldAggregate) -> str:
        field = metric.field.name
        function = metric.function.value
        self._sample_fields[field] = None
        return self._shared_expression(
            f"{function}({field})",
            f"{function.upper()}({field})",
            sanitize_alias(f"{function}__{field}"),
            metric.value_type,
        )

    def _shared_expression(
        self, signature: str, soql: str, base_alias: str, value_type: ValueType
    ) -> str:
        cached = self._expressions.get(signature)
        if cached is not None:
            return cached.alias

        alias = unique_alias(base_alias, self._expression_aliases)
        self._expressions[signature] = AggregateExpression(
            alias=alias, soql=soql, value_type=value_type
        )
        return alias

    def _conditional(self, signature: str, soql: str, condition: str, alias_prefix: str) -> str:
        cached = self._conditionals.get(signature)
        if cached is not None:
            return cached.alias

        normalized = normalize_condition(condition)
        condition_part = sanitize_alias(normalized)[:_CONDITION_ALIAS_LENGTH] or "expr"
        alias = unique_alias(
            sanitize_alias(f"{alias_prefix}{condition_part}"), self._conditional_aliases
        )

        if self._where_clause:
            where = f"({self._where_clause}) AND ({normalized})"
        else:
            where = normalized

        self._conditionals[signature] = ConditionalMetricPlan(
            alias=alias,
            soql=soql,
            condition=normalized,
            aggregate_query=self._select(f"{soql} {alias}", where),
        )
        return alias

    def _select(self, select: str, where: str | None) -> str:
        query = f"SELECT {select} FROM {self.object_name}"
        if where:
            query += f" WHERE {where}"
        return query


def compile_plan(
    object_name: str, metrics: list[ResolvedMetric], where: str | None = None
) -> AggregatePlan:
    """Shortcut for ``AggregateQueryBuilder(...).build()``."""
    return AggregateQueryBuilder(object_name, metrics, where).build()


def build_sample_query(plan: AggregatePlan, sample_size: int) -> str | None:
    """Build the row-sampling query, or None when sampling is off.

    rows are ordered by Id so both environments return comparable slices.
    """
    if sample_size <= 0:
        return None

    fields = list(dict.fromkeys(["Id", *plan.sample_fields]))
    query = f"SELECT {', '.join(fields)} FROM {plan.object_name}"
    if plan.where_clause:
        query += f" WHERE {plan.where_clause}"
    return f"{query} ORDER BY Id LIMIT {sample_size}"

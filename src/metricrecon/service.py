"""Main DataComparisonService interface for metricrecon."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

import structlog

from metricrecon.compiler.aggregate_builder import AggregateQueryBuilder, build_sample_query
from metricrecon.comparison import compare_data
from metricrecon.executor.base import Environment
from metricrecon.metadata.cache import MetadataCache
from metricrecon.metadata.discovery import MetadataDiscovery
from metricrecon.models.comparison import (
    ComparisonFilters,
    ComparisonQueries,
    ComparisonReport,
    EnvironmentInfo,
)
from metricrecon.models.metric import ResolvedMetric
from metricrecon.models.plan import AggregatePlan
from metricrecon.models.schema import ObjectSchema
from metricrecon.parser.tokens import parse_metric_tokens
from metricrecon.validator.reconcile import reconcile_metrics
from metricrecon.validator.schema import validate_metrics

logger = structlog.get_logger()


@dataclass(frozen=True)
class ComparisonPlan:
    """A validated, compiled comparison that hasn't been executed yet."""

    object_name: str
    metrics: list[ResolvedMetric]
    plan: AggregatePlan
    sample_query: str | None
    source_schema: ObjectSchema
    target_schema: ObjectSchema


class DataComparisonService:
    """Compare aggregate metrics for one object across two environments."""

    def __init__(
        self,
        source: Environment,
        target: Environment,
        cache: MetadataCache,
        timeout_seconds: float | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            source: Source environment backend.
            target: Target environment backend.
            cache: Describe cache shared by both environments.
            timeout_seconds: Limit for query execution in both environments.
        """
        self.source = source
        self.target = target
        self.cache = cache
        self.timeout_seconds = timeout_seconds

    def plan(
        self,
        object_name: str,
        metric_tokens: list[str] | None = None,
        where: str | None = None,
        sample_size: int = 0,
    ) -> ComparisonPlan:
        """Parse, validate in both environments, reconcile and compile.

        nothing is executed beyond the two describes.
        """
        parsed = parse_metric_tokens(metric_tokens)

        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="metricrecon-describe") as pool:
            source_future = pool.submit(
                MetadataDiscovery(self.source, self.cache).describe_object, object_name
            )
            target_future = pool.submit(
                MetadataDiscovery(self.target, self.cache).describe_object, object_name
            )
            source_schema = source_future.result()
            target_schema = target_future.result()

        metrics = reconcile_metrics(
            validate_metrics(parsed, source_schema, "source"),
            validate_metrics(parsed, target_schema, "target"),
        )

        plan = AggregateQueryBuilder(source_schema.name, metrics, where).build()
        sample_query = build_sample_query(plan, sample_size)

        logger.info(
            "comparison_planned",
            object=source_schema.name,
            metrics=len(metrics),
            conditional_queries=len(plan.conditional_metrics),
            sampling=sample_query is not None,
        )
        return ComparisonPlan(
            object_name=source_schema.name,
            metrics=metrics,
            plan=plan,
            sample_query=sample_query,
            source_schema=source_schema,
            target_schema=target_schema,
        )

    def compare(
        self,
        object_name: str,
        metric_tokens: list[str] | None = None,
        where: str | None = None,
        sample_size: int = 0,
    ) -> ComparisonReport:
        """Run the full comparison and return a report.

        Args:
            object_name: Object (table) to compare.
            metric_tokens: Raw metric tokens; None or empty means COUNT.
            where: Optional base filter applied to every query.
            sample_size: Rows to sample per environment, 0 to skip.

        Returns:
            ComparisonReport with one row per metric.
        """
        planned = self.plan(object_name, metric_tokens, where, sample_size)

        result = compare_data(
            self.source,
            self.target,
            planned.plan,
            sample_query=planned.sample_query,
            timeout=self.timeout_seconds,
        )

        return ComparisonReport(
            object=planned.object_name,
            metrics=result.metrics,
            filters=ComparisonFilters(where=planned.plan.where_clause, sample_size=sample_size),
            source=_environment_info(self.source),
            target=_environment_info(self.target),
            queries=ComparisonQueries(
                aggregate=planned.plan.aggregate_query,
                conditional=[c.aggregate_query for c in planned.plan.conditional_metrics],
                sample=planned.sample_query,
            ),
            samples=result.samples,
            metadata_cache_minutes=0 if self.cache.disabled else self.cache.ttl_seconds // 60,
        )


def _environment_info(environment: Environment) -> EnvironmentInfo:
    return EnvironmentInfo(
        name=environment.name,
        environment_id=environment.environment_id,
        schema_version=environment.schema_version,
    )

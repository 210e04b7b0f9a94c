"""Run a compiled plan against source and target and compare the results.

the two environments are evaluated at the same time (they share nothing), but
within one environment the queries go one after another: shared query, then
each conditional query, then the optional sample query.
"""

from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait

import structlog

from metricrecon.assembler import assemble_rows, normalize_aggregate_value
from metricrecon.errors import ComparisonTimeoutError
from metricrecon.executor.base import QueryExecutor
from metricrecon.models.comparison import ComparisonResult, EnvironmentEvaluation, SampleData
from metricrecon.models.plan import AggregatePlan

logger = structlog.get_logger()


def evaluate_environment(
    executor: QueryExecutor, plan: AggregatePlan, sample_query: str | None = None
) -> EnvironmentEvaluation:
    """Execute every query in the plan against one environment.

    backend errors are not caught here - they go straight to the caller.
    """
    aggregates = {}

    if plan.aggregate_query:
        record = executor.run_aggregate_query(plan.aggregate_query)
        for expression in plan.expressions:
            aggregates[expression.alias] = normalize_aggregate_value(
                expression.value_type, record.get(expression.alias)
            )

    for conditional in plan.conditional_metrics:
        record = executor.run_aggregate_query(conditional.aggregate_query)
        aggregates[conditional.alias] = normalize_aggregate_value(
            conditional.value_type, record.get(conditional.alias)
        )

    samples = executor.run_sample_query(sample_query) if sample_query else []

    return EnvironmentEvaluation(aggregates=aggregates, samples=samples)


def compare_data(
    source: QueryExecutor,
    target: QueryExecutor,
    plan: AggregatePlan,
    sample_query: str | None = None,
    timeout: float | None = None,
) -> ComparisonResult:
    """Evaluate the plan in both environments concurrently and build the rows.

    Args:
        source: Executor for the source environment.
        target: Executor for the target environment.
        plan: Compiled aggregate plan.
        sample_query: Optional row-sampling query, run in both environments.
        timeout: Seconds to wait for both environments, None for no limit.
    """
    pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="metricrecon")
    try:
        source_future = pool.submit(evaluate_environment, source, plan, sample_query)
        target_future = pool.submit(evaluate_environment, target, plan, sample_query)
        # one deadline for both environments
        done, pending = wait(
            [source_future, target_future], timeout=timeout, return_when=FIRST_EXCEPTION
        )
        for future in done:
            if future.exception() is not None:
                raise future.exception()
        if pending:
            raise ComparisonTimeoutError(f"Comparison did not finish within {timeout:g} seconds.")
        source_eval = source_future.result()
        target_eval = target_future.result()
    finally:
        # don't block on a hung backend after a timeout
        pool.shutdown(wait=False, cancel_futures=True)

    logger.info(
        "environments_evaluated",
        object=plan.object_name,
        source_aggregates=len(source_eval.aggregates),
        target_aggregates=len(target_eval.aggregates),
        source_samples=len(source_eval.samples),
        target_samples=len(target_eval.samples),
    )

    return ComparisonResult(
        metrics=assemble_rows(plan, source_eval.aggregates, target_eval.aggregates),
        samples=SampleData(source=source_eval.samples, target=target_eval.samples),
        source=source_eval,
        target=target_eval,
    )

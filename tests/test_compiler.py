"""Tests for aggregate query compilation."""

import pytest

from metricrecon.compiler.aggregate_builder import (
    AggregateQueryBuilder,
    build_sample_query,
    compile_plan,
    normalize_where,
    sanitize_alias,
    unique_alias,
)
from metricrecon.errors import EmptyMetricListError
from metricrecon.models.metric import ValueType
from metricrecon.models.plan import DirectMetricDefinition, RatioMetricDefinition
from metricrecon.models.schema import ObjectSchema
from metricrecon.parser.tokens import parse_metric_tokens
from metricrecon.validator.schema import validate_metrics


@pytest.fixture
def resolve(opportunity_schema: ObjectSchema):
    """Parse and validate tokens against the Opportunity schema."""

    def _resolve(*tokens: str):
        return validate_metrics(parse_metric_tokens(list(tokens)), opportunity_schema, "source")

    return _resolve


class TestAliasHelpers:
    def test_sanitize_alias(self):
        """Aliases are lowercase with anything else replaced by underscores."""
        assert sanitize_alias("sum__Amount") == "sum__amount"
        assert sanitize_alias("count_distinct__Account.Name") == "count_distinct__account_name"

    def test_unique_alias_suffixes(self):
        """Colliding aliases get a numeric suffix."""
        existing: set[str] = set()
        assert unique_alias("a", existing) == "a"
        assert unique_alias("a", existing) == "a_1"
        assert unique_alias("a", existing) == "a_2"
        assert existing == {"a", "a_1", "a_2"}

    def test_normalize_where(self):
        """Blank filters are treated as no filter."""
        assert normalize_where(None) is None
        assert normalize_where("   ") is None
        assert normalize_where("  Amount > 0 ") == "Amount > 0"


class TestAggregateQueryBuilder:
    def test_count_and_sum(self, resolve):
        """COUNT and SUM share one query."""
        plan = compile_plan("Opportunity", resolve("count", "sum:Amount"))
        assert plan.aggregate_query == (
            "SELECT COUNT(Id) count__all, SUM(Amount) sum__amount FROM Opportunity"
        )
        assert [d.alias for d in plan.metrics] == ["count__all", "sum__amount"]
        assert plan.conditional_metrics == ()

    def test_where_clause(self, resolve):
        """The base filter is appended to the shared query."""
        plan = compile_plan("Opportunity", resolve("count"), where="  IsWon = true ")
        assert plan.where_clause == "IsWon = true"
        assert plan.aggregate_query == "SELECT COUNT(Id) count__all FROM Opportunity WHERE IsWon = true"

    def test_duplicate_metrics_share_expression(self, resolve):
        """The same aggregate requested twice compiles to one expression."""
        plan = compile_plan("Opportunity", resolve("sum:Amount", "sum:amount", "count", "count"))
        assert [e.alias for e in plan.expressions] == ["sum__amount", "count__all"]
        assert [d.alias for d in plan.metrics] == [
            "sum__amount",
            "sum__amount",
            "count__all",
            "count__all",
        ]

    def test_count_distinct(self, resolve):
        """COUNT_DISTINCT uses the vendor function name."""
        plan = compile_plan("Opportunity", resolve("count-distinct:stagename"))
        assert plan.aggregate_query == (
            "SELECT COUNT_DISTINCT(StageName) count_distinct__stagename FROM Opportunity"
        )

    def test_date_valued_expression(self, resolve):
        """MIN over a date field is a date-typed expression."""
        plan = compile_plan("Opportunity", resolve("min:CloseDate"))
        (expression,) = plan.expressions
        assert expression.alias == "min__closedate"
        assert expression.soql == "MIN(CloseDate)"
        assert expression.value_type == ValueType.DATE

    def test_ratio(self, resolve):
        """Ratios contribute their legs to the shared query and get their own alias."""
        plan = compile_plan("Opportunity", resolve("ratio:sum:Amount/avg:Amount"))
        assert plan.aggregate_query == (
            "SELECT SUM(Amount) sum__amount, AVG(Amount) avg__amount FROM Opportunity"
        )
        (definition,) = plan.metrics
        assert isinstance(definition, RatioMetricDefinition)
        assert definition.alias == "ratio__sum_amount_avg_amount"
        assert definition.numerator_alias == "sum__amount"
        assert definition.denominator_alias == "avg__amount"

    def test_ratio_reuses_existing_expressions(self, resolve):
        """A ratio leg already requested as a metric is not added twice."""
        plan = compile_plan(
            "Opportunity", resolve("sum:Amount", "ratio:sum:Amount/max:Amount", "ratio:sum:Amount/max:Amount")
        )
        assert [e.alias for e in plan.expressions] == ["sum__amount", "max__amount"]
        ratio_aliases = [d.alias for d in plan.metrics if isinstance(d, RatioMetricDefinition)]
        assert ratio_aliases == ["ratio__sum_amount_max_amount", "ratio__sum_amount_max_amount_1"]

    def test_count_if(self, resolve):
        """COUNT_IF gets its own query with the condition quoted."""
        plan = compile_plan("Opportunity", resolve("count-if:StageName = Closed Won"))
        assert plan.aggregate_query is None
        assert plan.expressions == ()
        (conditional,) = plan.conditional_metrics
        assert conditional.alias == "count_if__stagename____closed_won_"
        assert conditional.condition == "StageName = 'Closed Won'"
        assert conditional.aggregate_query == (
            "SELECT COUNT(Id) count_if__stagename____closed_won_ FROM Opportunity "
            "WHERE StageName = 'Closed Won'"
        )

    def test_count_if_with_where(self, resolve):
        """Conditional queries AND their predicate with the base filter."""
        plan = compile_plan("Opportunity", resolve("count", "count-if:IsWon = true"), where="Amount > 0")
        (conditional,) = plan.conditional_metrics
        assert conditional.aggregate_query == (
            "SELECT COUNT(Id) count_if__iswon___true FROM Opportunity "
            "WHERE (Amount > 0) AND (IsWon = true)"
        )
        assert plan.aggregate_query == "SELECT COUNT(Id) count__all FROM Opportunity WHERE Amount > 0"

    def test_sum_if(self, resolve):
        """SUM_IF aggregates the field under its own condition."""
        plan = compile_plan("Opportunity", resolve("sum-if:amount:IsWon = true"))
        (conditional,) = plan.conditional_metrics
        assert conditional.alias == "sum_if__amount_iswon___true"
        assert conditional.soql == "SUM(Amount)"
        assert conditional.aggregate_query == (
            "SELECT SUM(Amount) sum_if__amount_iswon___true FROM Opportunity WHERE IsWon = true"
        )

    def test_identical_conditionals_share_query(self, resolve):
        """The same conditional metric twice runs once."""
        plan = compile_plan("Opportunity", resolve("count-if:IsWon = true", "count-if:IsWon = true"))
        assert len(plan.conditional_metrics) == 1
        assert [d.alias for d in plan.metrics] == ["count_if__iswon___true"] * 2

    def test_conditional_alias_collisions(self, resolve):
        """Different conditions that sanitize the same get distinct aliases."""
        plan = compile_plan("Opportunity", resolve("count-if:IsWon = true", "count-if:IsWon < true"))
        aliases = [c.alias for c in plan.conditional_metrics]
        assert aliases == ["count_if__iswon___true", "count_if__iswon___true_1"]

    def test_long_condition_alias_is_truncated(self, resolve):
        """The condition part of an alias is capped at 40 characters."""
        condition = "Name = " + "x" * 80
        plan = compile_plan("Opportunity", resolve(f"count-if:{condition}"))
        (conditional,) = plan.conditional_metrics
        assert conditional.alias == "count_if__" + sanitize_alias(f"name = '{'x' * 80}'")[:40]

    def test_aliases_unique_within_plan(self, resolve):
        """No two expressions or conditional queries share an alias."""
        plan = compile_plan(
            "Opportunity",
            resolve(
                "count",
                "sum:Amount",
                "avg:Amount",
                "count-distinct:Name",
                "ratio:sum:Amount/avg:Amount",
                "count-if:IsWon = true",
                "sum-if:Amount:IsWon = true",
            ),
        )
        aliases = [e.alias for e in plan.expressions] + [c.alias for c in plan.conditional_metrics]
        assert len(aliases) == len(set(aliases))

    def test_definitions_follow_input_order(self, resolve):
        """Metric definitions line up with the input metrics."""
        metrics = resolve("count-if:IsWon = true", "count", "ratio:sum:Amount/avg:Amount")
        plan = compile_plan("Opportunity", metrics)
        assert [d.metric for d in plan.metrics] == metrics
        assert isinstance(plan.metrics[0], DirectMetricDefinition)

    def test_build_is_idempotent(self, resolve):
        """Calling build twice returns the same plan."""
        builder = AggregateQueryBuilder("Opportunity", resolve("count", "sum:Amount"))
        assert builder.build() is builder.build()

    def test_empty_metric_list(self):
        """Compiling nothing is an error."""
        with pytest.raises(EmptyMetricListError):
            compile_plan("Opportunity", [])


class TestSampleQuery:
    def test_disabled_when_zero(self, resolve):
        """Sample size 0 means no sample query."""
        plan = compile_plan("Opportunity", resolve("sum:Amount"))
        assert build_sample_query(plan, 0) is None

    def test_sample_fields(self, resolve):
        """Sample query selects Id plus referenced fields, not count metrics."""
        plan = compile_plan(
            "Opportunity",
            resolve("count", "sum:Amount", "count-distinct:StageName", "count-if:IsWon = true", "max:Amount"),
            where="Amount > 0",
        )
        assert plan.sample_fields == ("Amount", "StageName")
        assert build_sample_query(plan, 5) == (
            "SELECT Id, Amount, StageName FROM Opportunity WHERE Amount > 0 ORDER BY Id LIMIT 5"
        )

    def test_count_only(self, resolve):
        """Only Id is sampled when no field is referenced."""
        plan = compile_plan("Opportunity", resolve("count"))
        assert build_sample_query(plan, 3) == "SELECT Id FROM Opportunity ORDER BY Id LIMIT 3"

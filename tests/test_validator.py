"""Tests for schema validation of parsed metrics."""

import pytest

from metricrecon.errors import (
    FieldNotFoundError,
    NonAggregatableFieldError,
    UnsupportedFieldTypeError,
)
from metricrecon.models.metric import (
    ResolvedCount,
    ResolvedCountDistinct,
    ResolvedCountIf,
    ResolvedFieldAggregate,
    ResolvedRatio,
    ResolvedSumIf,
    ValueType,
)
from metricrecon.models.schema import ObjectSchema
from metricrecon.parser.tokens import parse_metric_tokens
from metricrecon.validator.schema import validate_metrics


def _validate(tokens: list[str], schema: ObjectSchema, label: str = "source"):
    return validate_metrics(parse_metric_tokens(tokens), schema, label)


class TestValidateMetrics:
    def test_count_needs_no_fields(self, opportunity_schema: ObjectSchema):
        """COUNT resolves without looking at the schema."""
        assert _validate(["count"], opportunity_schema) == [ResolvedCount()]

    def test_field_lookup_is_case_insensitive(self, opportunity_schema: ObjectSchema):
        """Field names match ignoring case and resolve to the schema's casing."""
        (metric,) = _validate(["sum:aMoUnT"], opportunity_schema)
        assert isinstance(metric, ResolvedFieldAggregate)
        assert metric.field.name == "Amount"
        assert metric.field.type == "currency"
        assert metric.value_type == ValueType.NUMBER

    def test_label_falls_back_to_name(self, opportunity_schema: ObjectSchema):
        """Resolved fields without a label use the field name."""
        (metric,) = _validate(["avg:Probability"], opportunity_schema)
        assert metric.field.label == "Probability"

    def test_missing_field(self, opportunity_schema: ObjectSchema):
        """Unknown fields raise FieldNotFound naming the environment."""
        with pytest.raises(FieldNotFoundError) as exc_info:
            _validate(["sum:Revenue"], opportunity_schema, "target")
        assert str(exc_info.value) == 'Field "Revenue" not found on object Opportunity in target.'
        assert exc_info.value.code == "FieldNotFound"

    def test_non_aggregatable_field(self, opportunity_schema: ObjectSchema):
        """Fields flagged non-aggregatable are rejected."""
        with pytest.raises(NonAggregatableFieldError):
            _validate(["count-distinct:Description"], opportunity_schema)

    @pytest.mark.parametrize("function", ["sum", "avg", "median", "stddev", "variance"])
    def test_numeric_functions_reject_non_numeric(
        self, opportunity_schema: ObjectSchema, function: str
    ):
        """Arithmetic aggregates need a numeric field."""
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            _validate([f"{function}:StageName"], opportunity_schema)
        assert exc_info.value.required == "numeric"
        assert f"for {function.upper()} metric" in str(exc_info.value)

    @pytest.mark.parametrize("function", ["sum", "avg", "median"])
    def test_numeric_functions_reject_dates(self, opportunity_schema: ObjectSchema, function: str):
        """Dates are not numeric."""
        with pytest.raises(UnsupportedFieldTypeError):
            _validate([f"{function}:CloseDate"], opportunity_schema)

    def test_min_max_on_dates_are_date_typed(self, opportunity_schema: ObjectSchema):
        """MIN/MAX over a date field produce date values."""
        low, high = _validate(["min:CloseDate", "max:CloseDate"], opportunity_schema)
        assert low.value_type == ValueType.DATE
        assert high.value_type == ValueType.DATE

    def test_min_max_on_numbers_are_number_typed(self, opportunity_schema: ObjectSchema):
        """MIN/MAX over a numeric field produce numbers."""
        (metric,) = _validate(["max:Amount"], opportunity_schema)
        assert metric.value_type == ValueType.NUMBER

    def test_min_max_reject_text(self, opportunity_schema: ObjectSchema):
        """MIN/MAX need numeric or temporal fields."""
        with pytest.raises(UnsupportedFieldTypeError) as exc_info:
            _validate(["min:StageName"], opportunity_schema)
        assert exc_info.value.required == "numeric or date/time"

    def test_count_distinct_accepts_any_type(self, opportunity_schema: ObjectSchema):
        """COUNT_DISTINCT only needs the field to be aggregatable."""
        (metric,) = _validate(["count-distinct:stagename"], opportunity_schema)
        assert isinstance(metric, ResolvedCountDistinct)
        assert metric.field.name == "StageName"

    def test_ratio_validates_both_legs(self, opportunity_schema: ObjectSchema):
        """Each side of a ratio is validated like a field aggregate."""
        (metric,) = _validate(["ratio:sum:Amount/avg:Probability"], opportunity_schema)
        assert isinstance(metric, ResolvedRatio)
        assert metric.numerator.field.name == "Amount"
        assert metric.denominator.field.name == "Probability"

        with pytest.raises(UnsupportedFieldTypeError):
            _validate(["ratio:sum:Amount/avg:StageName"], opportunity_schema)

    def test_count_if_condition_is_not_checked(self, opportunity_schema: ObjectSchema):
        """COUNT_IF conditions are free-form."""
        (metric,) = _validate(["count-if:NoSuchField = 1"], opportunity_schema)
        assert metric == ResolvedCountIf(condition="NoSuchField = 1")

    def test_sum_if_requires_numeric_field(self, opportunity_schema: ObjectSchema):
        """SUM_IF needs a numeric, aggregatable field."""
        (metric,) = _validate(["sum-if:amount:IsWon = true"], opportunity_schema)
        assert isinstance(metric, ResolvedSumIf)
        assert metric.field.name == "Amount"

        with pytest.raises(UnsupportedFieldTypeError):
            _validate(["sum-if:CloseDate:IsWon = true"], opportunity_schema)
        with pytest.raises(FieldNotFoundError):
            _validate(["sum-if:Nope:IsWon = true"], opportunity_schema)

    def test_preserves_order(self, opportunity_schema: ObjectSchema):
        """Resolved metrics are in input order."""
        kinds = [m.kind for m in _validate(["sum:Amount", "count", "count-if:x=1"], opportunity_schema)]
        assert kinds == ["field_aggregate", "count", "count_if"]

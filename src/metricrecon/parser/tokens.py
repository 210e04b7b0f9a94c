"""Parser for the metric token language.

tokens look like ``count``, ``sum:Amount``, ``ratio:sum:Amount/avg:Amount``,
``count-if:StageName = 'Closed Won'`` or ``sum-if:Amount:IsWon = true``.
keywords are case-insensitive, field names and conditions are kept verbatim.

parsing is all-or-nothing: the first bad token raises and nothing is returned.
"""

from collections.abc import Iterable

from metricrecon.errors import InvalidMetricError
from metricrecon.models.metric import (
    AggregateFunction,
    CountDistinctMetric,
    CountIfMetric,
    CountMetric,
    FieldAggregateMetric,
    ParsedMetric,
    RatioMetric,
    SumIfMetric,
)

_FUNCTIONS = {fn.value: fn for fn in AggregateFunction}


def flatten_tokens(tokens: Iterable[str] | None) -> list[str]:
    """Split repeated/comma-joined flag values into individual tokens.

    `-m count -m sum:Amount` and `-m count,sum:Amount` end up the same.
    note this means a condition can't contain a literal comma.
    """
    if not tokens:
        return []
    flat = []
    for token in tokens:
        for part in token.split(","):
            part = part.strip()
            if part:
                flat.append(part)
    return flat


def parse_metric_tokens(tokens: Iterable[str] | None) -> list[ParsedMetric]:
    """Parse raw metric tokens into metric models.

    an empty input defaults to a single COUNT - there's always something to
    compare.
    """
    flat = flatten_tokens(tokens)
    if not flat:
        return [CountMetric()]
    return [parse_metric_token(token) for token in flat]


def parse_metric_token(token: str) -> ParsedMetric:
    """Parse a single, already-trimmed token."""
    head, sep, rest = token.partition(":")
    keyword = head.strip().lower()

    if not sep:
        if keyword == "count":
            return CountMetric()
        raise InvalidMetricError(f'Unsupported metric token "{token}".', token)

    if keyword == "count-distinct":
        field = _require(rest.strip(), token, "COUNT-DISTINCT metric requires a field name")
        return CountDistinctMetric(field=field)

    if keyword in _FUNCTIONS:
        return _parse_field_aggregate(token, token)

    if keyword == "ratio":
        numerator, slash, denominator = rest.partition("/")
        if not slash:
            raise InvalidMetricError(
                f'Ratio metric "{token}" must look like ratio:<fn>:<field>/<fn>:<field>.',
                token,
            )
        return RatioMetric(
            numerator=_parse_field_aggregate(numerator.strip(), token),
            denominator=_parse_field_aggregate(denominator.strip(), token),
        )

    if keyword == "count-if":
        condition = _require(rest.strip(), token, "COUNT-IF metric requires a condition")
        return CountIfMetric(condition=condition)

    if keyword == "sum-if":
        field, _, condition = rest.partition(":")
        field = _require(field.strip(), token, "SUM-IF metric requires a field name")
        condition = _require(condition.strip(), token, "SUM-IF metric requires a condition")
        return SumIfMetric(field=field, condition=condition)

    raise InvalidMetricError(f'Unsupported metric token "{token}".', token)


def _parse_field_aggregate(text: str, token: str) -> FieldAggregateMetric:
    """Parse a ``<fn>:<field>`` pair. ``token`` is the full token for error messages."""
    head, sep, field = text.partition(":")
    function = _FUNCTIONS.get(head.strip().lower())
    if function is None:
        raise InvalidMetricError(
            f'Unsupported aggregate function "{head.strip()}" in metric token "{token}".',
            token,
        )
    field = field.strip()
    if not sep or not field:
        raise InvalidMetricError(
            f'{function.value.upper()} metric requires a field name in "{token}".', token
        )
    return FieldAggregateMetric(function=function, field=field)


def _require(value: str, token: str, message: str) -> str:
    if not value:
        raise InvalidMetricError(f'{message} in "{token}".', token)
    return value


def format_metric_token(metric: ParsedMetric) -> str:
    """Turn a parsed metric back into a token string.

    parse_metric_token(format_metric_token(m)) == m for anything the parser
    can produce, which is how the parser tests check the grammar.
    """
    if isinstance(metric, CountMetric):
        return "count"
    elif isinstance(metric, FieldAggregateMetric):
        return f"{metric.function.value}:{metric.field}"
    elif isinstance(metric, CountDistinctMetric):
        return f"count-distinct:{metric.field}"
    elif isinstance(metric, RatioMetric):
        numerator = format_metric_token(metric.numerator)
        denominator = format_metric_token(metric.denominator)
        return f"ratio:{numerator}/{denominator}"
    elif isinstance(metric, CountIfMetric):
        return f"count-if:{metric.condition}"
    elif isinstance(metric, SumIfMetric):
        return f"sum-if:{metric.field}:{metric.condition}"
    else:
        raise TypeError(f"Unsupported metric kind: {type(metric).__name__}")

"""Best-effort literal quoting for count-if / sum-if conditions.

people type `StageName = Closed Won` on the command line and expect it to
work. for the simple `<field> <op> <value>` shape we quote bare string values;
anything else (AND/OR joining more comparisons, functions, IN lists) passes
through trimmed and untouched. this is deliberately not an expression parser
and it is not injection protection - the caller owns well-formedness of
complex conditions.
"""

import re

_SIMPLE_COMPARISON = re.compile(
    r"^(?P<field>[A-Za-z_][\w.]*)\s*(?P<op>!=|<>|<=|>=|=|<|>)\s*(?P<value>.+?)$",
    re.DOTALL,
)
# AND/OR followed by another comparison; "Rock and Roll" is still a value
_COMPOUND = re.compile(
    r"\s(?:and|or)\s+(?:not\s+)?[A-Za-z_][\w.]*\s*(?:!=|<>|<=|>=|=|<|>|\s(?:in|like)\b)",
    re.IGNORECASE,
)

_NUMERIC = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
_BOOLEAN_OR_NULL = re.compile(r"^(true|false|null)$", re.IGNORECASE)
_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_ISO_DATETIME = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}(:\d{2}(\.\d+)?)?(Z|[+-]\d{2}:?\d{2})?$"
)

_DATE_LITERALS = frozenset(
    {
        "YESTERDAY",
        "TODAY",
        "TOMORROW",
        "LAST_WEEK",
        "THIS_WEEK",
        "NEXT_WEEK",
        "LAST_MONTH",
        "THIS_MONTH",
        "NEXT_MONTH",
        "LAST_90_DAYS",
        "NEXT_90_DAYS",
        "THIS_QUARTER",
        "LAST_QUARTER",
        "NEXT_QUARTER",
        "THIS_YEAR",
        "LAST_YEAR",
        "NEXT_YEAR",
        "THIS_FISCAL_QUARTER",
        "LAST_FISCAL_QUARTER",
        "NEXT_FISCAL_QUARTER",
        "THIS_FISCAL_YEAR",
        "LAST_FISCAL_YEAR",
        "NEXT_FISCAL_YEAR",
    }
)
_UNITS = r"(DAYS|WEEKS|MONTHS|QUARTERS|YEARS|FISCAL_QUARTERS|FISCAL_YEARS)"
_PARAMETERIZED_DATE_LITERAL = re.compile(
    rf"^((LAST|NEXT)_N_{_UNITS}|N_{_UNITS}_AGO):\d+$", re.IGNORECASE
)


def normalize_condition(condition: str) -> str:
    """Quote the value of a simple comparison if it is a bare string.

    >>> normalize_condition("StageName = Closed Won")
    "StageName = 'Closed Won'"
    >>> normalize_condition("Amount > 100")
    'Amount > 100'
    """
    trimmed = condition.strip()
    if _COMPOUND.search(trimmed):
        return trimmed

    match = _SIMPLE_COMPARISON.match(trimmed)
    if not match:
        return trimmed

    value = match.group("value").strip()
    if _is_literal(value):
        return trimmed

    return f"{match.group('field')} {match.group('op')} {quote_literal(value)}"


def quote_literal(value: str) -> str:
    """Wrap a value in single quotes, escaping backslashes and quotes."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def _is_literal(value: str) -> bool:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return True  # already quoted
    if _NUMERIC.match(value) or _BOOLEAN_OR_NULL.match(value):
        return True
    if _ISO_DATE.match(value) or _ISO_DATETIME.match(value):
        return True
    if value.upper() in _DATE_LITERALS or _PARAMETERIZED_DATE_LITERAL.match(value):
        return True
    return False

"""Pydantic model for raw query results.

returning the executed sql alongside the rows is handy when a comparison
looks wrong and you want to rerun the exact query by hand.
"""

from pydantic import BaseModel


class QueryResult(BaseModel):
    """Result of a query executed against one environment."""

    sql: str  # the dialect-specific sql that actually ran
    columns: list[str]
    data: list[dict]
    row_count: int
    execution_time_ms: float

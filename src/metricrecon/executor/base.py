"""Interfaces the comparison pipeline expects from a backend.

a backend is one logical connection to one environment. it answers two kinds
of questions: what does an object look like (schema discovery) and what do
these query strings return (execution). query strings use the vendor syntax
produced by the compiler; translating them is up to the backend.
"""

from typing import Any, Protocol, runtime_checkable

from metricrecon.models.schema import ObjectSchema


@runtime_checkable
class SchemaSource(Protocol):
    environment_id: str
    schema_version: str

    def describe_object(self, object_name: str) -> ObjectSchema: ...


@runtime_checkable
class QueryExecutor(Protocol):
    def run_aggregate_query(self, query: str) -> dict[str, Any]:
        """Run an aggregate query and return its single record (empty if none)."""
        ...

    def run_sample_query(self, query: str) -> list[dict[str, Any]]: ...


@runtime_checkable
class Environment(SchemaSource, QueryExecutor, Protocol):
    """A backend that can both describe objects and run queries."""

    name: str

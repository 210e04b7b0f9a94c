"""metricrecon - compare aggregate metrics for one object across two environments."""

from metricrecon.errors import MetricReconError
from metricrecon.executor.duckdb_executor import DuckDBEnvironment
from metricrecon.metadata.cache import MetadataCache
from metricrecon.service import ComparisonPlan, DataComparisonService

__version__ = "0.1.0"

__all__ = [
    "ComparisonPlan",
    "DataComparisonService",
    "DuckDBEnvironment",
    "MetadataCache",
    "MetricReconError",
]

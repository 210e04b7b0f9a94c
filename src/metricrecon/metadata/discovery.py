"""Schema discovery with caching in front of an environment."""

import structlog

from metricrecon.errors import MissingObjectNameError
from metricrecon.executor.base import SchemaSource
from metricrecon.metadata.cache import MetadataCache
from metricrecon.models.schema import ObjectSchema

logger = structlog.get_logger()

DESCRIBE_OBJECT = "describeObject"


def describe_cache_key(environment_id: str, schema_version: str, object_name: str) -> str:
    return f"{environment_id}:{schema_version}:sobject:{object_name.lower()}"


class MetadataDiscovery:
    """Describe objects in one environment, memoized through a MetadataCache.

    the cache key includes the backend's schema version so an upgrade never
    serves a describe taken under the old version.
    """

    def __init__(self, source: SchemaSource, cache: MetadataCache) -> None:
        self.source = source
        self.cache = cache

    def describe_object(self, object_name: str) -> ObjectSchema:
        normalized = object_name.strip()
        if not normalized:
            raise MissingObjectNameError("Object name must be provided for describe.")

        key = describe_cache_key(
            self.source.environment_id, self.source.schema_version, normalized
        )
        cached = self.cache.get(key, DESCRIBE_OBJECT)
        if cached is not None:
            return ObjectSchema.model_validate(cached)

        schema = self.source.describe_object(normalized)
        logger.info(
            "object_described",
            environment=self.source.environment_id,
            object=schema.name,
            field_count=len(schema.fields),
        )
        self.cache.set(key, DESCRIBE_OBJECT, schema.model_dump(mode="json"))
        return schema

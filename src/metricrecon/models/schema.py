"""Pydantic models for object schema metadata.

one ObjectSchema per object per environment. the type vocabulary follows the
vendor describe api (double, currency, picklist, date, ...) so schemas coming
from different backends can be checked with the same rules.
"""

from pydantic import BaseModel, Field

NUMERIC_TYPES = frozenset({"double", "currency", "percent", "int", "integer", "long"})
TEMPORAL_TYPES = frozenset({"date", "datetime", "time"})


class FieldMetadata(BaseModel):
    """A single field as reported by schema discovery."""

    name: str
    label: str | None = None
    type: str
    aggregatable: bool = False  # missing flag means the backend didn't say - assume no
    filterable: bool = False

    @property
    def is_numeric(self) -> bool:
        return self.type.lower() in NUMERIC_TYPES

    @property
    def is_temporal(self) -> bool:
        return self.type.lower() in TEMPORAL_TYPES


class ObjectSchema(BaseModel):
    """Describe result for one object in one environment."""

    name: str
    label: str | None = None
    fields: list[FieldMetadata] = Field(default_factory=list)

    def get_field(self, name: str) -> FieldMetadata | None:
        """Find a field by name, ignoring case.

        field names in tokens are typed by humans, so `amount` should find
        `Amount`. the resolved metric keeps the schema's casing.
        """
        lower = name.strip().lower()
        for field in self.fields:
            if field.name.lower() == lower:
                return field
        return None

"""Errors raised while parsing, validating and compiling metrics.

every error is terminal - nothing here is retried or recovered locally. the
``code`` attribute is a stable identifier that scripts can match on without
parsing messages.
"""


class MetricReconError(Exception):
    """Base error for metricrecon."""

    code = "MetricReconError"


class InvalidMetricError(MetricReconError):
    """A metric token could not be parsed."""

    code = "InvalidMetric"

    def __init__(self, message: str, token: str) -> None:
        super().__init__(message)
        self.token = token


class FieldNotFoundError(MetricReconError):
    """A referenced field is missing from an environment's schema."""

    code = "FieldNotFound"

    def __init__(self, object_name: str, field_name: str, environment: str) -> None:
        super().__init__(
            f'Field "{field_name}" not found on object {object_name} in {environment}.'
        )
        self.object_name = object_name
        self.field_name = field_name
        self.environment = environment


class NonAggregatableFieldError(MetricReconError):
    """A referenced field exists but cannot be aggregated."""

    code = "NonAggregatableField"

    def __init__(
        self, object_name: str, field_name: str, environment: str, metric_kind: str
    ) -> None:
        super().__init__(
            f'Field "{field_name}" on {object_name} in {environment} is not aggregatable '
            f"for {metric_kind.upper()} metric."
        )
        self.object_name = object_name
        self.field_name = field_name
        self.environment = environment
        self.metric_kind = metric_kind


class UnsupportedFieldTypeError(MetricReconError):
    """A field's type is not allowed for the requested metric kind."""

    code = "UnsupportedFieldType"

    def __init__(
        self,
        object_name: str,
        field_name: str,
        field_type: str,
        environment: str,
        metric_kind: str,
        required: str,
    ) -> None:
        super().__init__(
            f'Field "{field_name}" ({field_type}) on {object_name} in {environment} '
            f"must be {required} for {metric_kind.upper()} metric."
        )
        self.object_name = object_name
        self.field_name = field_name
        self.field_type = field_type
        self.environment = environment
        self.metric_kind = metric_kind
        self.required = required


class MetricValidationMismatchError(MetricReconError):
    """Source and target resolved a metric list differently."""

    code = "MetricValidationMismatch"

    def __init__(self, message: str, position: int | None = None) -> None:
        super().__init__(message)
        self.position = position


class EmptyMetricListError(MetricReconError):
    """The compiler was handed no metrics."""

    code = "EmptyMetricList"


class MissingObjectNameError(MetricReconError):
    """An object name was blank."""

    code = "MissingObjectName"


class ObjectNotFoundError(MetricReconError):
    """An environment has no object with the requested name."""

    code = "ObjectNotFound"

    def __init__(self, object_name: str, environment: str) -> None:
        super().__init__(f"Object {object_name} not found in {environment}.")
        self.object_name = object_name
        self.environment = environment


class EnvironmentNotFoundError(MetricReconError):
    """An environment name is not configured."""

    code = "EnvironmentNotFound"


class OutputFileRequiredError(MetricReconError):
    """A file-based report format was requested without a path."""

    code = "OutputFileRequired"


class ComparisonTimeoutError(MetricReconError):
    """Evaluating the environments took longer than the caller allowed."""

    code = "ComparisonTimeout"

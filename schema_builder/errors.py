"""Error types for schema-builder."""

from typing import Optional, Dict, Any, Sequence


class SchemaError(Exception):
    """Base exception for schema errors."""

    def __init__(self, message: str, code: str = "SCHEMA_ERROR", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for reporting."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class InvalidDefinition(SchemaError):
    """Malformed column, index or blueprint definition.

    Raised while the blueprint is declared, before any SQL is emitted.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INVALID_DEFINITION", details=details)


class UnsupportedFeature(SchemaError):
    """The dialect cannot express the requested construct."""

    def __init__(self, feature: str, dialect: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details.setdefault("feature", feature)
        error_details.setdefault("dialect", dialect)
        super().__init__(
            f"{dialect} does not support {feature}",
            code="UNSUPPORTED_FEATURE",
            details=error_details,
        )
        self.feature = feature
        self.dialect = dialect


class ConnectionError(SchemaError):
    """A statement failed on the underlying database connection.

    The driver exception is kept as ``__cause__``; statements are never
    retried.
    """

    def __init__(self, message: str, sql: Optional[str] = None, bindings: Sequence[Any] = ()):
        super().__init__(
            message,
            code="CONNECTION_ERROR",
            details={"sql": sql, "bindings": list(bindings)},
        )
        self.sql = sql
        self.bindings = list(bindings)


class IntrospectionError(SchemaError):
    """Requested table or column does not exist in the live catalog."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="INTROSPECTION_ERROR", details=details)

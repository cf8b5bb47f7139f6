"""Specific error types for the neoforge statement compiler."""

from .base import (
    ApplicationError,
    DatabaseErrorDetails,
    ErrorCode,
    ErrorDetails,
    ErrorLevel,
    QueryErrorDetails,
)


class QueryBuildError(ApplicationError):
    """Base class for errors raised while compiling a statement.

    These are raised synchronously at the point of malformed input, before
    anything reaches the database.
    """

    code: ErrorCode = ErrorCode.INVALID_INPUT
    operation: str = "build"

    def __init__(
        self,
        message: str,
        details: ErrorDetails | dict | None = None,
        level: ErrorLevel = ErrorLevel.ERROR,
    ):
        if details is None:
            details = QueryErrorDetails(source=type(self).__name__, operation=self.operation)
        elif isinstance(details, dict):
            details = dict(details)
            details = QueryErrorDetails(
                source=details.pop("source", type(self).__name__),
                operation=details.pop("operation", self.operation),
                **details,
            )
        super().__init__(message=message, code=self.code, level=level, details=details)


class DuplicateParameterError(QueryBuildError):
    """The same parameter name was added twice to one table."""

    code = ErrorCode.DUPLICATE_PARAMETER
    operation = "add_parameter"


class GenerationExhaustedError(QueryBuildError):
    """Unique-name search exceeded its attempt bound."""

    code = ErrorCode.NAME_GENERATION_EXHAUSTED
    operation = "get_unique_name"


class InvalidIdentifierError(QueryBuildError):
    """An identifier failed safe-identifier validation."""

    code = ErrorCode.INVALID_IDENTIFIER
    operation = "validate_identifier"


class UnsupportedModeError(QueryBuildError):
    """A non-equality operator was used where only bracket syntax is valid."""

    code = ErrorCode.UNSUPPORTED_MODE
    operation = "render_predicate"


class InvalidClauseError(QueryBuildError):
    """A clause payload has a shape the compiler does not understand."""

    code = ErrorCode.INVALID_CLAUSE
    operation = "lower_clause"


class MalformedChainError(InvalidClauseError):
    """A related chain does not strictly alternate node and relationship."""

    code = ErrorCode.MALFORMED_CHAIN
    operation = "lower_chain"


class ReservedNameError(QueryBuildError):
    """A relationship alias collides with an internally significant name."""

    code = ErrorCode.RESERVED_NAME
    operation = "validate_alias"


class ServiceError(ApplicationError):
    """Error from the database execution layer."""

    def __init__(self, message: str, details: DatabaseErrorDetails | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.DB_QUERY,
            level=ErrorLevel.ERROR,
            details=details
            or DatabaseErrorDetails(
                source="neo4j",
                operation="run",
                service_name="neo4j",
            ),
        )


class NotFoundError(ApplicationError):
    """A lookup that required results produced none."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(
            message=message,
            code=ErrorCode.NOT_FOUND,
            level=ErrorLevel.WARNING,
            details=details,
        )

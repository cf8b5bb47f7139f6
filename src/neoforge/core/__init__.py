from .base import (
    ApplicationError,
    DatabaseErrorDetails,
    ErrorCode,
    ErrorDetails,
    ErrorLevel,
    QueryErrorDetails,
    ServiceErrorDetails,
    ValidationErrorDetails,
)
from .errors import (
    DuplicateParameterError,
    GenerationExhaustedError,
    InvalidClauseError,
    InvalidIdentifierError,
    MalformedChainError,
    NotFoundError,
    QueryBuildError,
    ReservedNameError,
    ServiceError,
    UnsupportedModeError,
)

__all__ = [
    "ApplicationError",
    "DatabaseErrorDetails",
    "DuplicateParameterError",
    "ErrorCode",
    "ErrorDetails",
    "ErrorLevel",
    "GenerationExhaustedError",
    "InvalidClauseError",
    "InvalidIdentifierError",
    "MalformedChainError",
    "NotFoundError",
    "QueryBuildError",
    "QueryErrorDetails",
    "ReservedNameError",
    "ServiceError",
    "ServiceErrorDetails",
    "UnsupportedModeError",
    "ValidationErrorDetails",
]

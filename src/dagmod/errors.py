"""Error hierarchy for the dagmod runtime."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

__all__ = [
    "DagmodError",
    "ConfigNotFoundError",
    "ConfigError",
    "UnsupportedTypeError",
    "UnregisteredEnumError",
    "DiscoveryError",
    "AmbiguousConstructorError",
    "ObjectNotFoundError",
    "FunctionNotFoundError",
    "MissingArgumentError",
    "DecodeError",
    "LoaderNotFoundError",
    "IdTypeNotFoundError",
    "InstantiationError",
    "FunctionInvocationError",
    "SessionError",
    "QueryError",
    "ErrorCodes",
    "error_message",
]


class DagmodError(Exception):
    """Base error for all dagmod runtime errors."""

    def __init__(
        self,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details: dict[str, Any] = details or {}
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc).isoformat()

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigNotFoundError(DagmodError):
    """Raised when a configuration file cannot be found."""

    def __init__(self, config_path: str, **kwargs: Any) -> None:
        super().__init__(
            code="CONFIG_NOT_FOUND",
            message=f"Configuration file not found: {config_path}",
            details={"config_path": config_path},
            **kwargs,
        )


class ConfigError(DagmodError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="CONFIG_INVALID", message=message, **kwargs)


class UnsupportedTypeError(DagmodError):
    """Raised when a Python type has no engine type definition."""

    def __init__(self, type_repr: str, **kwargs: Any) -> None:
        super().__init__(
            code="UNSUPPORTED_TYPE",
            message=f"Unsupported type '{type_repr}'.",
            details={"type": type_repr},
            **kwargs,
        )


class UnregisteredEnumError(DagmodError):
    """Raised when an enum is used in a signature without being exposed."""

    def __init__(self, enum_name: str, **kwargs: Any) -> None:
        super().__init__(
            code="UNREGISTERED_ENUM",
            message=f"Enum '{enum_name}' is used by a function or field but is not decorated with @enum_type.",
            details={"enum_name": enum_name},
            **kwargs,
        )


class DiscoveryError(DagmodError):
    """Raised when the entry module cannot be loaded or scanned."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="DISCOVERY_FAILED", message=message, **kwargs)


class AmbiguousConstructorError(DagmodError):
    """Raised when an object type declares more than one constructor."""

    def __init__(self, type_name: str, candidates: list[str], **kwargs: Any) -> None:
        super().__init__(
            code="AMBIGUOUS_CONSTRUCTOR",
            message=(
                f"Object '{type_name}' declares more than one constructor: {', '.join(candidates)}. "
                "Mark at most one classmethod with @constructor."
            ),
            details={"type_name": type_name, "candidates": candidates},
            **kwargs,
        )


class ObjectNotFoundError(DagmodError):
    """Raised when the engine names an object type that was not registered."""

    def __init__(self, object_name: str, **kwargs: Any) -> None:
        super().__init__(
            code="OBJECT_NOT_FOUND",
            message=f"Module object '{object_name}' is not registered.",
            details={"object_name": object_name},
            **kwargs,
        )


class FunctionNotFoundError(DagmodError):
    """Raised when the engine names a function the object does not expose."""

    def __init__(self, object_name: str, function_name: str, **kwargs: Any) -> None:
        super().__init__(
            code="FUNCTION_NOT_FOUND",
            message=f"Function '{function_name}' not found on module object '{object_name}'.",
            details={"object_name": object_name, "function_name": function_name},
            **kwargs,
        )


class MissingArgumentError(DagmodError):
    """Raised when a required argument is absent and has no default."""

    def __init__(self, argument_name: str, constructor: bool = False, **kwargs: Any) -> None:
        kind = "constructor argument" if constructor else "argument"
        super().__init__(
            code="MISSING_ARGUMENT",
            message=f"Missing required {kind} '{argument_name}'.",
            details={"argument_name": argument_name, "constructor": constructor},
            **kwargs,
        )

    @property
    def argument_name(self) -> str:
        """The name of the missing argument."""
        return self.details["argument_name"]


class DecodeError(DagmodError):
    """Raised when a wire value cannot be converted to the target type."""

    def __init__(self, message: str, target: str | None = None, **kwargs: Any) -> None:
        super().__init__(
            code="DECODE_ERROR",
            message=message,
            details={"target": target},
            **kwargs,
        )


class LoaderNotFoundError(DagmodError):
    """Raised when the client has no load-by-ID accessor for a remote type."""

    def __init__(self, type_name: str, **kwargs: Any) -> None:
        super().__init__(
            code="LOADER_NOT_FOUND",
            message=f"Cannot load '{type_name}' from id.",
            details={"type_name": type_name},
            **kwargs,
        )


class IdTypeNotFoundError(DagmodError):
    """Raised when a remote type has no matching ID scalar."""

    def __init__(self, type_name: str, **kwargs: Any) -> None:
        super().__init__(
            code="ID_TYPE_NOT_FOUND",
            message=f"Missing id type for '{type_name}'.",
            details={"type_name": type_name},
            **kwargs,
        )


class InstantiationError(DagmodError):
    """Raised when an object type cannot be instantiated."""

    def __init__(self, type_name: str, reason: str, **kwargs: Any) -> None:
        super().__init__(
            code="INSTANTIATION_ERROR",
            message=f"Unable to create instance of '{type_name}': {reason}",
            details={"type_name": type_name, "reason": reason},
            **kwargs,
        )


class FunctionInvocationError(DagmodError):
    """Wraps an exception raised by user function code."""

    def __init__(self, function_name: str, cause: BaseException, **kwargs: Any) -> None:
        super().__init__(
            code="FUNCTION_INVOCATION_ERROR",
            message=str(cause),
            details={"function_name": function_name, "error_type": type(cause).__name__},
            cause=cause,
            **kwargs,
        )


class SessionError(DagmodError):
    """Raised when the engine session cannot be established."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(code="SESSION_ERROR", message=message, **kwargs)


class QueryError(DagmodError):
    """Raised when the engine answers a query with errors."""

    def __init__(self, message: str, errors: list[dict[str, Any]], query: str, **kwargs: Any) -> None:
        super().__init__(
            code="QUERY_ERROR",
            message=message,
            details={"errors": errors, "query": query},
            **kwargs,
        )

    @property
    def errors(self) -> list[dict[str, Any]]:
        """The GraphQL errors returned by the engine."""
        return self.details["errors"]

    @property
    def query(self) -> str:
        """The query that produced the errors."""
        return self.details["query"]


def error_message(exc: BaseException) -> str:
    """Return the text reported to the engine for an exception.

    Invocation wrappers are unwrapped one level so the user's own message
    surfaces unchanged.
    """
    if isinstance(exc, FunctionInvocationError) and exc.cause is not None:
        return str(exc.cause)
    if isinstance(exc, DagmodError):
        return exc.message
    return str(exc)


class ErrorCodes:
    """All runtime error codes as constants.

    Example:
        if error.code == ErrorCodes.MISSING_ARGUMENT:
            handle_missing()
    """

    CONFIG_NOT_FOUND = "CONFIG_NOT_FOUND"
    CONFIG_INVALID = "CONFIG_INVALID"
    UNSUPPORTED_TYPE = "UNSUPPORTED_TYPE"
    UNREGISTERED_ENUM = "UNREGISTERED_ENUM"
    DISCOVERY_FAILED = "DISCOVERY_FAILED"
    AMBIGUOUS_CONSTRUCTOR = "AMBIGUOUS_CONSTRUCTOR"
    OBJECT_NOT_FOUND = "OBJECT_NOT_FOUND"
    FUNCTION_NOT_FOUND = "FUNCTION_NOT_FOUND"
    MISSING_ARGUMENT = "MISSING_ARGUMENT"
    DECODE_ERROR = "DECODE_ERROR"
    LOADER_NOT_FOUND = "LOADER_NOT_FOUND"
    ID_TYPE_NOT_FOUND = "ID_TYPE_NOT_FOUND"
    INSTANTIATION_ERROR = "INSTANTIATION_ERROR"
    FUNCTION_INVOCATION_ERROR = "FUNCTION_INVOCATION_ERROR"
    SESSION_ERROR = "SESSION_ERROR"
    QUERY_ERROR = "QUERY_ERROR"

    def __setattr__(self, name: str, value: object) -> None:
        raise AttributeError("ErrorCodes is immutable")

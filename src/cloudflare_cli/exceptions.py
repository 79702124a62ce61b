"""Exception hierarchy for cloudflare-cli.

All exceptions inherit from :class:`CloudflareCliError`, which carries an
``exit_code`` attribute mapped to a constant from
:mod:`cloudflare_cli.exit_codes`. The top-level error handler in
:func:`cloudflare_cli.app.main` catches ``CloudflareCliError`` and exits
with the appropriate code, while unexpected exceptions produce a crash log
and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    CloudflareCliError (exit 1)
    +-- ConfigError                      (exit 1)
    +-- AuthError                        (exit 3)
    +-- SchemaError                      (exit 7)
    |   +-- UnboundPathParameter
    +-- UsageError                       (exit 2)
    |   +-- UnknownResource
    |   +-- UnknownOperation
    |   +-- InvalidBody
    |   +-- MissingBody
    |   +-- InvalidHeader
    |   +-- BindError
    |       +-- UnknownParameter
    |       +-- MissingRequiredParameter
    |       +-- TypeMismatch
    |       +-- DuplicateParameter
    |       +-- UnexpectedArgument
    +-- TransportError                   (exit 6)
    |   +-- ConnectFailure
    |   +-- Timeout
    |   +-- MalformedResponse
    |   +-- ApiError                     (exit 5)
    +-- FormatError                      (never fatal)
"""

from __future__ import annotations

from typing import Optional, Sequence

from cloudflare_cli.exit_codes import (
    EXIT_API_ERROR,
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SCHEMA_ERROR,
)


class CloudflareCliError(Exception):
    """Base exception for all cloudflare-cli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`cloudflare_cli.exit_codes`. The entry point
    catches this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code

    @property
    def kind(self) -> str:
        """Short machine-readable name used in structured ``--json`` errors."""
        return type(self).__name__

    def to_dict(self) -> dict[str, object]:
        """Return the structured error object emitted by ``--json`` commands."""
        return {
            "type": self.kind,
            "message": str(self),
            "exit_code": self.exit_code,
        }


class ConfigError(CloudflareCliError):
    """Raised for configuration problems (invalid config file, unreadable tree artifact)."""

    exit_code = EXIT_GENERIC_FAILURE


class AuthError(CloudflareCliError):
    """Raised when an authenticated call is attempted without ``CLOUDFLARE_API_TOKEN``."""

    exit_code = EXIT_AUTH_FAILURE


# --- Compile time ---


class SchemaError(CloudflareCliError):
    """Raised when an OpenAPI document cannot be compiled into a command tree.

    Covers unresolved or external ``$ref`` pointers, path placeholders without
    a declared path parameter, undecidable operation names and request bodies
    that resolve cyclically.
    """

    exit_code = EXIT_SCHEMA_ERROR


class UnboundPathParameter(SchemaError):
    """Raised when a ``{placeholder}`` survives path substitution.

    The compiler guarantees a path parameter for every placeholder, so this
    signals a hand-edited or stale command tree.
    """

    def __init__(self, placeholder: str, path: str):
        self.placeholder = placeholder
        self.path = path
        super().__init__(
            f"Path parameter '{placeholder}' in '{path}' has no bound value"
        )


# --- Usage ---


class UsageError(CloudflareCliError):
    """Raised for invalid CLI invocations; never retried."""

    exit_code = EXIT_INVALID_USAGE

    def __init__(
        self,
        message: str,
        suggestions: Sequence[str] = (),
        exit_code: int | None = None,
    ):
        super().__init__(message, exit_code)
        self.suggestions = list(suggestions)

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        if self.suggestions:
            data["suggestions"] = self.suggestions
        return data


class UnknownResource(UsageError):
    """Raised when no resource matches the given slug."""

    def __init__(self, name: str, suggestions: Sequence[str] = ()):
        self.name = name
        super().__init__(f"Unknown resource '{name}'", suggestions)


class UnknownOperation(UsageError):
    """Raised when a resource has no operation with the given slug."""

    def __init__(self, resource: str, name: str, suggestions: Sequence[str] = ()):
        self.resource = resource
        self.name = name
        super().__init__(
            f"Unknown operation '{name}' for resource '{resource}'", suggestions
        )


class InvalidBody(UsageError):
    """Raised when ``--body`` is not syntactically valid JSON or cannot be read."""


class MissingBody(UsageError):
    """Raised when an operation requires a request body and none was supplied."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(
            f"Operation '{operation}' requires a request body. "
            "Pass --body '<json>' or --body-file <path>"
        )


class InvalidHeader(UsageError):
    """Raised when a ``--header`` value is not of the form ``name:value``."""


class BindError(UsageError):
    """Base class for failures binding CLI arguments to operation parameters."""


class UnknownParameter(BindError):
    """Raised for a flag the operation does not declare."""

    def __init__(self, name: str, suggestions: Sequence[str] = ()):
        self.name = name
        super().__init__(f"Unknown parameter '--{name}'", suggestions)


class MissingRequiredParameter(BindError):
    """Raised when a required parameter was not supplied."""

    def __init__(self, name: str, flag: Optional[str] = None):
        self.name = name
        self.flag = flag or name
        super().__init__(
            f"Missing required parameter '{name}' (--{self.flag})"
        )


class TypeMismatch(BindError):
    """Raised when a value cannot be coerced to the parameter's declared type."""

    def __init__(self, name: str, expected: str, got: str):
        self.name = name
        self.expected = expected
        self.got = got
        super().__init__(
            f"Parameter '{name}' expects {expected}, got '{got}'"
        )


class DuplicateParameter(BindError):
    """Raised when a single-valued parameter is given more than once."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Parameter '--{name}' given more than once")


class UnexpectedArgument(BindError):
    """Raised for positional arguments that match no path parameter."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unexpected argument '{value}'")


# --- Transport ---


class TransportError(CloudflareCliError):
    """Raised when the HTTP call fails; never retried automatically."""

    exit_code = EXIT_CONNECTION_ERROR


class ConnectFailure(TransportError):
    """Raised on network-level failures (DNS resolution, connection refused, reset)."""


class Timeout(TransportError):
    """Raised when the request exceeds the configured timeout."""


class MalformedResponse(TransportError):
    """Raised when the response body cannot be decoded at the transport level."""


class ApiError(TransportError):
    """Raised for a non-2xx HTTP status.

    The status code and body are kept so the caller can show them verbatim.
    """

    exit_code = EXIT_API_ERROR

    def __init__(self, status_code: int, body: str = "", reason: str = ""):
        self.status_code = status_code
        self.body = body
        self.reason = reason
        label = f"HTTP {status_code}"
        if reason:
            label = f"{label} {reason}"
        super().__init__(label)


# --- Formatting ---


class FormatError(CloudflareCliError):
    """Raised when a response body is not JSON.

    The formatter catches it and falls back to verbatim output with a
    warning; it never aborts output.
    """

"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cloudflare_cli.exceptions.CloudflareCliError`
subclass. Scripts wrapping ``cloudflare`` can branch on the exit code to
tell a usage mistake from a network failure or an API-side rejection
without parsing stderr.

Example::

    $ cloudflare zones zones-get --zone-id nope
    $ echo $?
    5   # EXIT_API_ERROR -- the API answered with a non-2xx status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Unknown resource/operation, unknown flag, missing or mistyped parameter, bad body."""

EXIT_AUTH_FAILURE = 3
"""No API token is available for an authenticated call."""

EXIT_API_ERROR = 5
"""The API answered with a non-2xx HTTP status."""

EXIT_CONNECTION_ERROR = 6
"""A transport-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SCHEMA_ERROR = 7
"""The OpenAPI document could not be compiled into a command tree."""

EXIT_INTERRUPTED = 130
"""The process was interrupted (SIGINT)."""

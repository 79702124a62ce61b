"""HTTP client layer for cloudflare-cli.

:class:`HttpExecutor` sends a single request through :mod:`httpx` and
classifies transport failures; :func:`format_response` renders the result.

Example::

    from cloudflare_cli.client import HttpExecutor, format_response, raise_for_status

    with HttpExecutor(timeout=30.0) as executor:
        response = executor.execute(request)
    print(format_response(response))
    raise_for_status(response)
"""

from cloudflare_cli.client.executor import HttpExecutor, raise_for_status
from cloudflare_cli.client.response import format_response

__all__ = ["HttpExecutor", "raise_for_status", "format_response"]

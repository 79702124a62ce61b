"""Runtime dispatch -- bind CLI arguments and build HTTP requests.

Typical usage::

    from cloudflare_cli.runtime import bind, build_request, split_runtime_flags

    args, flags = split_runtime_flags(argv)
    params = bind(operation, args, defaults)
    request = build_request(operation, params, overrides)

Sub-modules:

* :mod:`~cloudflare_cli.runtime.binder` -- the Arg Binder.
* :mod:`~cloudflare_cli.runtime.request` -- the Request Builder and the
  ``api`` escape hatch.
"""

from cloudflare_cli.runtime.binder import bind, default_values, split_runtime_flags
from cloudflare_cli.runtime.request import build_raw_request, build_request

__all__ = [
    "bind",
    "default_values",
    "split_runtime_flags",
    "build_request",
    "build_raw_request",
]

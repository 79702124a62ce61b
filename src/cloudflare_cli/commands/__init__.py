"""Built-in CLI commands for cloudflare-cli.

* :mod:`~cloudflare_cli.commands.discovery` -- ``list``, ``describe`` and
  ``tree``.
* :mod:`~cloudflare_cli.commands.api` -- ``api METHOD PATH``.
* :mod:`~cloudflare_cli.commands.compile` -- the ``cloudflare-gen-tree``
  console script.

Each module exports plain callback functions registered on the root app in
:mod:`cloudflare_cli.app`, except ``compile``, which carries its own
:class:`typer.Typer` application.
"""

"""Built-in CLI sub-commands for fetchcache.

* :mod:`~fetchcache.commands.fetch` -- issue one request through the
  caching layer.
* :mod:`~fetchcache.commands.generations` -- list, inspect and clean up
  cache generations.
* :mod:`~fetchcache.commands.config` -- view and modify global settings.

Each module either exports a :class:`typer.Typer` sub-application (for
multi-command groups) or a plain callback function registered directly on
the root app (for single commands like ``fetch``).
"""

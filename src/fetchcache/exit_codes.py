"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~fetchcache.exceptions.FetchcacheError` subclass.
Shell wrappers can inspect the exit code to tell a network outage from a
broken cache directory without parsing stderr.

Example::

    $ fetchcache fetch https://app.example.com/
    $ echo $?
    6   # EXIT_NETWORK_ERROR -- the origin could not be reached
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NETWORK_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_STORE_ERROR = 8
"""The persistent cache store could not be opened, read or written."""

"""Exception hierarchy for fetchcache.

All exceptions inherit from :class:`FetchcacheError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`fetchcache.exit_codes`.
The top-level error handler in :func:`fetchcache.app.main` catches
``FetchcacheError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    FetchcacheError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- NetworkError        (exit 6)
    +-- StoreError          (exit 8)
    +-- ConfigError         (exit 1)

Only :class:`NetworkError` is recovered inside the caching layer (each
strategy turns it into a cached or synthesized response).  A
:class:`StoreError` always propagates to the caller.
"""

from fetchcache.exit_codes import (
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NETWORK_ERROR,
    EXIT_STORE_ERROR,
)


class FetchcacheError(Exception):
    """Base exception for all fetchcache errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(FetchcacheError):
    """Raised for invalid CLI arguments or malformed request descriptors."""

    exit_code = EXIT_INVALID_USAGE


class NetworkError(FetchcacheError):
    """Raised when the origin cannot be reached (timeout, DNS resolution, connection refused).

    A response with an error status code is *not* a network error; it is
    returned to the caller like any other response.
    """

    exit_code = EXIT_NETWORK_ERROR


class StoreError(FetchcacheError):
    """Raised when a cache generation cannot be opened, read, written or deleted."""

    exit_code = EXIT_STORE_ERROR


class ConfigError(FetchcacheError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE

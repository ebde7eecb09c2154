"""Exception hierarchy for the config cache.

A source that does not exist is not an error: sources return None for it
and the cache stores that as a negative entry.
"""


class ConfCacheError(Exception):
    """Base exception for all config cache errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigParseError(ConfCacheError):
    """Raised when a config source exists but cannot be parsed.

    Never cached; every load retries until the source is fixed.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class ConfigContractError(ConfCacheError, TypeError):
    """Raised when a value that is not a ConfigHandle reaches the cache layer."""


class CacheBackendError(ConfCacheError):
    """Raised when a cache backend fails and fallback is disabled."""

    def __init__(self, message: str, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)

"""Exception hierarchy for essh."""

from __future__ import annotations


class EsshError(Exception):
    """Base exception for all essh errors.

    Attributes:
        message: Human-readable error message
        exit_code: Suggested exit code for CLI (default 1)
    """

    def __init__(self, message: str, exit_code: int = 1):
        self.message = message
        self.exit_code = exit_code
        super().__init__(message)


class ConfigError(EsshError):
    """Global configuration errors (config.toml)."""

    pass


class ValidationError(EsshError):
    """Invalid host, task or hook definitions."""

    pass


class ScriptError(EsshError):
    """Errors raised while evaluating a Lua script."""

    pass


class CallbackError(EsshError):
    """A hook or prepare callback failed.

    Returned as a value by callback invocations rather than raised; the
    original exception is kept as ``__cause__``.
    """

    pass


class LoaderError(EsshError):
    """Module could not be fetched or evaluated."""

    pass


class CycleError(LoaderError):
    """Modules require each other in a cycle."""

    def __init__(self, chain: list[str]):
        self.chain = chain
        super().__init__(f"cyclic module require: {' -> '.join(chain)}")

"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when an engine setting is invalid.

    ``variable`` names the environment variable the bad value came from, when
    there is one.
    """

    def __init__(self, message: str, *, variable: str | None = None) -> None:
        self.variable = variable
        super().__init__(message)

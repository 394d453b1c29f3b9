"""Base exception for fieldfly.

Every error raised by the framework inherits from FieldflyException, so
callers can catch one type to handle all of them, or a specific subclass
for targeted handling.
"""

from __future__ import annotations


class FieldflyException(Exception):
    """Base exception for all fieldfly errors.

    Carries an optional error code and context dict for structured error data.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "INJECTION_FAILED").
        context: Arbitrary key-value pairs for error context and debugging.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}

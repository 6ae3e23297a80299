"""Errors raised while preparing a cloud."""

from typing import Optional


class CloudPrepareError(Exception):
    """A cloud API call or one of its long-running operations failed.

    Attributes:
        message: What was being done when the failure happened
        cause: The underlying SDK error, if any
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message

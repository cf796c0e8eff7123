"""
Exceptions raised by the ordering assistant
"""
from typing import Optional

GENERIC_FAILURE_MESSAGE = "Error procesando tu mensaje. Por favor intenta de nuevo."


class AssistantError(Exception):
    """Failure surfaced to the host; the message is safe to show to the customer"""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)
        self.message = message


class BackendError(Exception):
    """Any failure talking to the language model backend"""

    def __init__(self, message: str, status: Optional[int] = None, retryable: bool = False):
        super().__init__(message)
        self.status = status
        self.retryable = retryable


class BackendNotConfiguredError(BackendError):
    def __init__(self, provider: str):
        super().__init__(f"Backend '{provider}' is not configured")
        self.provider = provider

"""
Domain exceptions raised by the stores and mapped to HTTP responses in main.
"""

from __future__ import annotations


class PrintShopError(Exception):
    """Base class for errors that carry an HTTP status and a client-facing message."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(PrintShopError):
    status_code = 404


class BadRequestError(PrintShopError):
    status_code = 400


class UnauthorizedError(PrintShopError):
    status_code = 401


class PayloadTooLargeError(PrintShopError):
    status_code = 413


class StoreError(PrintShopError):
    """
    Internal failure while reading, parsing or writing a JSON store.

    The original exception is kept as ``__cause__``; the message is what gets
    returned to the client, so it stays generic.
    """

    status_code = 500

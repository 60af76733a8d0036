"""Exceptions raised by the PayFast subscription helpers."""

from typing import Optional


class PayfastError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(PayfastError, ValueError):
    """
    Missing or invalid configuration.

    Raised before any network activity, e.g. for an empty merchant id,
    passphrase or subscription token.
    """


class TransportError(PayfastError):
    """
    A DNS lookup or confirmation request failed.

    Used inside ITN validation, where it degrades a single check to
    "failed" instead of aborting the evaluation.
    """

    def __init__(self, message: str, host: Optional[str] = None):
        super().__init__(message)
        self.host = host


class ValidationError(PayfastError, ValueError):
    """Invalid input supplied by the caller."""

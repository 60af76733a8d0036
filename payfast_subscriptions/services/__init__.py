"""Services module for the PayFast subscription helpers."""

from .itn_validator import ITNValidator
from .signer import SignatureScheme, build_headers
from .subscription_client import SubscriptionClient

__all__ = [
    'ITNValidator',
    'SignatureScheme',
    'SubscriptionClient',
    'build_headers'
]

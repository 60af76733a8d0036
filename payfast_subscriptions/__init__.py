"""PayFast recurring billing helpers: signed subscription calls and ITN validation."""

from .exceptions import ConfigurationError, PayfastError, TransportError, ValidationError
from .handler import PayfastSubscriptionHandler
from .models import (
    InboundNotification,
    ITNStatus,
    MerchantCredential,
    NotificationPayload,
    SubscriptionUpdateRequest,
    ValidationReport,
    ValidationResult,
)
from .services import ITNValidator, SignatureScheme, SubscriptionClient, build_headers

__version__ = '0.1.0'

__all__ = [
    'PayfastSubscriptionHandler',
    'ITNValidator', 'SubscriptionClient', 'SignatureScheme', 'build_headers',
    'InboundNotification', 'ITNStatus', 'MerchantCredential', 'NotificationPayload',
    'SubscriptionUpdateRequest', 'ValidationReport', 'ValidationResult',
    'PayfastError', 'ConfigurationError', 'TransportError', 'ValidationError',
]

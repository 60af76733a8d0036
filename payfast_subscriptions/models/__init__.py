"""Data models for the PayFast subscription helpers."""

from .credentials import MerchantCredential
from .notification import (
    InboundNotification,
    ITNStatus,
    NotificationPayload,
    ValidationReport,
    ValidationResult,
)
from .subscription import SubscriptionAction, SubscriptionUpdateRequest

__all__ = [
    'MerchantCredential',
    'InboundNotification', 'ITNStatus', 'NotificationPayload',
    'ValidationReport', 'ValidationResult',
    'SubscriptionAction', 'SubscriptionUpdateRequest',
]

"""Subscription management request models."""

from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Dict, Optional


class SubscriptionAction(str, Enum):
    """Actions exposed under /subscriptions/{token}/{action}."""
    CANCEL = "cancel"
    PAUSE = "pause"
    UNPAUSE = "unpause"
    UPDATE = "update"
    FETCH = "fetch"

    @property
    def method(self) -> str:
        """HTTP method the gateway expects for this action."""
        return 'GET' if self is SubscriptionAction.FETCH else 'PUT'


@dataclass
class SubscriptionUpdateRequest:
    """
    Partial update of a subscription.

    Only the fields that are set are sent to the gateway.

    Attributes:
        cycles: Number of remaining billing cycles
        amount: Recurring amount in cents
        run_date: Next run date (YYYY-MM-DD)
        frequency: Billing frequency code
    """

    cycles: Optional[int] = None
    amount: Optional[int] = None
    run_date: Optional[str] = None
    frequency: Optional[int] = None

    def to_body(self) -> Dict[str, Any]:
        """Request body containing only the fields that are set."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def is_empty(self) -> bool:
        """Check if no field is set."""
        return not self.to_body()

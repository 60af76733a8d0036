"""
Merchant credential model.

Identifies the merchant account used to sign subscription requests
and verify ITN signatures.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from ..exceptions import ConfigurationError

LIVE_HOST = 'www.payfast.co.za'
SANDBOX_HOST = 'sandbox.payfast.co.za'


@dataclass(frozen=True)
class MerchantCredential:
    """
    Immutable merchant identity held for the lifetime of a client.

    Attributes:
        merchant_id: PayFast merchant id
        passphrase: Salt passphrase configured on the merchant account
        sandbox: Whether requests target the sandbox environment
    """

    merchant_id: str
    passphrase: str = field(repr=False)
    sandbox: bool = False

    def __post_init__(self):
        """Validate credential data."""
        if not self.merchant_id or not str(self.merchant_id).strip():
            raise ConfigurationError("merchant_id is required")
        if not self.passphrase or not str(self.passphrase).strip():
            raise ConfigurationError("passphrase is required")

        # Merchant ids are numeric but may arrive as ints from config
        object.__setattr__(self, 'merchant_id', str(self.merchant_id).strip())
        object.__setattr__(self, 'sandbox', bool(self.sandbox))

    @property
    def host(self) -> str:
        """Gateway host for the configured environment."""
        return SANDBOX_HOST if self.sandbox else LIVE_HOST

    def to_public_dict(self) -> Dict[str, Any]:
        """
        Convert to dictionary for display (excludes the passphrase).

        Returns:
            Dictionary representation without sensitive data
        """
        return {
            'merchant_id': self.merchant_id,
            'passphrase': '***',
            'sandbox': self.sandbox,
        }

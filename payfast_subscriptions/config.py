"""
Configuration module for the PayFast subscription helpers.

Loads settings from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_API_URL = 'https://api.payfast.co.za'

# Hosts whose addresses may send ITN callbacks
DEFAULT_VALID_HOSTS = [
    'www.payfast.co.za',
    'sandbox.payfast.co.za',
    'w1w.payfast.co.za',
    'w2w.payfast.co.za',
]


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('1', 'true', 'yes', 'on')


def _parse_list(value: Optional[str], default: List[str]) -> List[str]:
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


@dataclass
class PayfastConfig:
    """Merchant account configuration."""
    merchant_id: str
    passphrase: str = field(repr=False)
    sandbox: bool = False
    api_url: str = DEFAULT_API_URL


@dataclass
class HTTPConfig:
    """Outbound HTTP configuration."""
    timeout: float = 30
    dns_timeout: float = 5


@dataclass
class ITNConfig:
    """ITN validation configuration."""
    valid_hosts: List[str] = field(default_factory=lambda: list(DEFAULT_VALID_HOSTS))


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    file: Optional[str]


class Config:
    """
    Main configuration class that aggregates all config sections.

    Usage:
        from payfast_subscriptions.config import config

        print(config.payfast.merchant_id)
        print(config.http.timeout)
    """

    def __init__(self):
        self._load_config()

    def _load_config(self):
        """Load all configuration from environment variables."""

        # Merchant account
        self.payfast = PayfastConfig(
            merchant_id=os.getenv('PAYFAST_MERCHANT_ID', ''),
            passphrase=os.getenv('PAYFAST_PASSPHRASE', ''),
            sandbox=_parse_bool(os.getenv('PAYFAST_SANDBOX')),
            api_url=os.getenv('PAYFAST_API_URL', DEFAULT_API_URL).rstrip('/')
        )

        # HTTP configuration
        self.http = HTTPConfig(
            timeout=float(os.getenv('PAYFAST_TIMEOUT', '30')),
            dns_timeout=float(os.getenv('PAYFAST_DNS_TIMEOUT', '5'))
        )

        # ITN configuration
        self.itn = ITNConfig(
            valid_hosts=_parse_list(os.getenv('PAYFAST_VALID_HOSTS'), DEFAULT_VALID_HOSTS)
        )

        # Logging configuration
        self.logging = LoggingConfig(
            level=os.getenv('LOG_LEVEL', 'INFO'),
            file=os.getenv('LOG_FILE')
        )

    def validate(self) -> List[str]:
        """
        Validate required configuration values.

        Returns:
            List of validation error messages (empty if all valid)
        """
        errors = []

        if not self.payfast.merchant_id.strip():
            errors.append("PAYFAST_MERCHANT_ID is required")

        if not self.payfast.passphrase.strip():
            errors.append("PAYFAST_PASSPHRASE is required")

        if self.http.timeout <= 0:
            errors.append("PAYFAST_TIMEOUT must be positive")

        if self.http.dns_timeout <= 0:
            errors.append("PAYFAST_DNS_TIMEOUT must be positive")

        if not self.itn.valid_hosts:
            errors.append("PAYFAST_VALID_HOSTS must name at least one host")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


# Global configuration instance
config = Config()

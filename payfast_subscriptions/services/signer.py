"""
Request signer for the subscription API.

Builds the header set that authenticates the merchant on every
subscription management call.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..exceptions import ConfigurationError
from .canonical import encode_value, md5_hex

API_VERSION = 'v1'


class SignatureScheme(str, Enum):
    """
    How the header signature input is built.

    FIELD_VALUES hashes ``name=value`` pairs sorted by name, so the
    signature is bound to the timestamp and body values.

    KEY_NAMES hashes only the sorted field names. It contains nothing
    secret and is the same for every request with the same body keys,
    so it is weaker than a value-bound MAC. Use it only against
    integrations that were built on that behaviour.
    """
    FIELD_VALUES = "field_values"
    KEY_NAMES = "key_names"


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 timestamp with second precision and UTC offset."""
    moment = moment or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.replace(microsecond=0).isoformat()


def signature_input(
    fields: Mapping[str, Any],
    scheme: SignatureScheme = SignatureScheme.FIELD_VALUES
) -> str:
    """
    Build the string that is hashed into the signature header.

    Args:
        fields: All signed fields, including the passphrase
        scheme: Signature scheme

    Returns:
        Hash input string
    """
    names = sorted(fields)
    if scheme == SignatureScheme.KEY_NAMES:
        return ','.join(names)
    return '&'.join(f"{name}={encode_value(fields[name])}" for name in names)


def build_headers(
    merchant_id: str,
    passphrase: str,
    body: Optional[Mapping[str, Any]] = None,
    *,
    now: Optional[datetime] = None,
    scheme: SignatureScheme = SignatureScheme.FIELD_VALUES
) -> Dict[str, str]:
    """
    Build authentication headers for a subscription API call.

    Args:
        merchant_id: PayFast merchant id
        passphrase: Merchant passphrase (hashed, never sent)
        body: Request body fields; their keys are signed too
        now: Moment to stamp; defaults to the current time
        scheme: Signature scheme

    Returns:
        Dict with merchant-id, version, timestamp and signature

    Raises:
        ConfigurationError: If merchant_id or passphrase is empty
    """
    if not merchant_id:
        raise ConfigurationError("merchant_id is required")
    if not passphrase or not str(passphrase).strip():
        raise ConfigurationError("passphrase is required")

    timestamp = format_timestamp(now)
    signed = {
        'merchant-id': str(merchant_id),
        'passphrase': passphrase,
        'version': API_VERSION,
        'timestamp': timestamp,
    }
    for key, value in (body or {}).items():
        signed[key] = '' if value is None else str(value)

    return {
        'merchant-id': str(merchant_id),
        'version': API_VERSION,
        'timestamp': timestamp,
        'signature': md5_hex(signature_input(signed, scheme)),
    }

"""
Canonical parameter string helpers.

The gateway signs ITNs over the posted fields encoded as
``key=value&key=value`` in their original order.
"""

import hashlib
from typing import Mapping
from urllib.parse import quote

# Characters encodeURIComponent leaves alone besides the ones quote() always keeps
_URI_COMPONENT_SAFE = "!~*'()"

SIGNATURE_FIELD = 'signature'


def encode_value(value: str) -> str:
    """
    Encode a single field value.

    Surrounding whitespace is stripped and spaces become '+', not '%20'.
    """
    return quote(str(value).strip(), safe=_URI_COMPONENT_SAFE).replace('%20', '+')


def canonical_param_string(payload: Mapping[str, str]) -> str:
    """Build the parameter string from every field except the signature."""
    return '&'.join(
        f"{key}={encode_value(value)}"
        for key, value in payload.items()
        if key != SIGNATURE_FIELD
    )


def append_passphrase(param_string: str, passphrase: str) -> str:
    """Salt a parameter string with the merchant passphrase."""
    salt = f"passphrase={encode_value(passphrase)}"
    if not param_string:
        return salt
    return f"{param_string}&{salt}"


def md5_hex(text: str) -> str:
    """Lowercase hex MD5 digest of a UTF-8 string."""
    return hashlib.md5(text.encode('utf-8')).hexdigest()

"""
ITN data models.

Represents inbound payment notifications and the outcome of validating them.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class ITNStatus(str, Enum):
    """Subscription status derived from a trusted notification."""
    COMPLETE = "COMPLETE"
    CANCELLED = "CANCELLED"

    @classmethod
    def from_payment_status(cls, payment_status: Optional[str]) -> 'ITNStatus':
        """Anything other than the literal COMPLETE counts as cancelled."""
        if payment_status == cls.COMPLETE.value:
            return cls.COMPLETE
        return cls.CANCELLED


class NotificationPayload(Mapping):
    """
    Read-only, ordered view of the fields posted in an ITN.

    Field order is significant: the signature is computed over the
    fields in the order the gateway sent them.
    """

    def __init__(self, fields: Any = None):
        items: List[Tuple[str, str]] = []
        if fields is not None:
            source = fields.items() if hasattr(fields, 'items') else fields
            for key, value in source:
                items.append((str(key), '' if value is None else str(value)))
        self._data: Dict[str, str] = dict(items)

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NotificationPayload):
            return list(self._data.items()) == list(other._data.items())
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"NotificationPayload({self._data!r})"

    @property
    def signature(self) -> Optional[str]:
        return self._data.get('signature')

    @property
    def payment_status(self) -> Optional[str]:
        return self._data.get('payment_status')

    @property
    def amount_gross(self) -> Optional[str]:
        return self._data.get('amount_gross')

    @property
    def token(self) -> Optional[str]:
        """Subscription token, present on recurring billing ITNs."""
        return self._data.get('token')

    @property
    def m_payment_id(self) -> Optional[str]:
        return self._data.get('m_payment_id')

    @property
    def pf_payment_id(self) -> Optional[str]:
        return self._data.get('pf_payment_id')

    def to_dict(self) -> Dict[str, str]:
        """Convert to a plain dictionary."""
        return dict(self._data)


@dataclass
class InboundNotification:
    """
    An ITN as received by the merchant's server.

    Attributes:
        payload: Posted form fields
        forwarded_for: Value of the X-Forwarded-For header, if any
        remote_addr: Peer address of the underlying connection
    """

    payload: NotificationPayload
    forwarded_for: Optional[str] = None
    remote_addr: Optional[str] = None

    def __post_init__(self):
        if not isinstance(self.payload, NotificationPayload):
            self.payload = NotificationPayload(self.payload)

    @property
    def source_ip(self) -> Optional[str]:
        """
        Address the notification claims to come from.

        The first X-Forwarded-For entry is the original client; the
        connection's peer address is used when the header is absent.
        """
        if self.forwarded_for:
            first = self.forwarded_for.split(',')[0].strip()
            if first:
                return first
        return self.remote_addr

    @classmethod
    async def from_request(cls, request: Any) -> 'InboundNotification':
        """
        Create from an aiohttp web.Request carrying a form-encoded ITN.

        Args:
            request: Incoming aiohttp request

        Returns:
            InboundNotification instance
        """
        form = await request.post()
        return cls(
            payload=NotificationPayload(form),
            forwarded_for=request.headers.get('X-Forwarded-For'),
            remote_addr=request.remote
        )


@dataclass(frozen=True)
class ValidationResult:
    """
    Public outcome of ITN validation.

    Untrusted results deliberately carry no reason.
    """

    passed: bool
    status: Optional[ITNStatus] = None
    payload: Optional[NotificationPayload] = None

    @classmethod
    def trusted(cls, status: ITNStatus, payload: NotificationPayload) -> 'ValidationResult':
        return cls(passed=True, status=status, payload=payload)

    @classmethod
    def untrusted(cls) -> 'ValidationResult':
        return cls(passed=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        if not self.passed:
            return {'passed': False}
        return {
            'passed': True,
            'status': self.status.value,
            'data': self.payload.to_dict()
        }


@dataclass
class ValidationReport:
    """
    Per-check diagnostics of an ITN evaluation, for operators only.

    Never return this to the party that sent the notification.
    """

    payload: NotificationPayload
    source_ip: Optional[str] = None
    signature_ok: bool = False
    ip_ok: bool = False
    amount_ok: bool = False
    confirmation_ok: bool = False
    failures: List[str] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return all((self.signature_ok, self.ip_ok, self.amount_ok, self.confirmation_ok))

    @property
    def status(self) -> ITNStatus:
        return ITNStatus.from_payment_status(self.payload.payment_status)

    def to_result(self) -> ValidationResult:
        """Reduce to the public result."""
        if self.passed:
            return ValidationResult.trusted(self.status, self.payload)
        return ValidationResult.untrusted()

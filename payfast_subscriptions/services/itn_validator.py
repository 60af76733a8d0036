"""
ITN Validation Service.

Decides whether an Instant Transaction Notification really came from
PayFast by combining four checks:
- MD5 signature over the posted fields salted with the passphrase
- Sender IP against the addresses of the gateway's hosts
- Gross amount against the expected cart total
- Server-side confirmation of the posted fields

Validation never mutates its input, so the same notification can be
re-validated safely.
"""

import asyncio
import hmac
import ipaddress
import logging
import socket
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Set

import aiohttp
from aiohttp.abc import AbstractResolver

from ..config import DEFAULT_VALID_HOSTS
from ..exceptions import TransportError, ValidationError
from ..models.credentials import MerchantCredential
from ..models.notification import (
    InboundNotification,
    NotificationPayload,
    ValidationReport,
    ValidationResult,
)
from .canonical import append_passphrase, canonical_param_string, md5_hex

logger = logging.getLogger(__name__)

VALIDATE_PATH = '/eng/query/validate'
VALID_RESPONSE = 'VALID'
AMOUNT_TOLERANCE = Decimal('0.01')


def parse_amount(value: Any) -> Decimal:
    """
    Parse a currency value.

    Raises:
        InvalidOperation: If the value is not a finite number
    """
    amount = Decimal(str(value).strip())
    if not amount.is_finite():
        raise InvalidOperation(f"not a finite amount: {value!r}")
    return amount


def normalize_ip(address: str) -> str:
    """
    Canonical text form of an address.

    IPv4-mapped IPv6 addresses (``::ffff:a.b.c.d``) from dual-stack
    listeners collapse to plain IPv4. Unparseable values are returned
    stripped and unchanged.
    """
    try:
        ip = ipaddress.ip_address(address.strip())
    except ValueError:
        return address.strip()
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
        ip = ip.ipv4_mapped
    return str(ip)


class ITNValidator:
    """
    Validates inbound ITN callbacks.

    The IP and confirmation checks need the network; they run
    concurrently and a failure in either only fails that check.
    """

    def __init__(
        self,
        credential: MerchantCredential,
        session: aiohttp.ClientSession,
        resolver: Optional[AbstractResolver] = None,
        valid_hosts: Optional[Iterable[str]] = None,
        confirm_timeout: float = 30,
        dns_timeout: float = 5,
        amount_tolerance: Decimal = AMOUNT_TOLERANCE
    ):
        """
        Initialize the validator.

        Args:
            credential: Merchant credential whose passphrase salts signatures
            session: HTTP session used for the confirmation call
            resolver: DNS resolver; a threaded resolver is created on first use
            valid_hosts: Hosts whose addresses may send ITNs
            confirm_timeout: Confirmation request timeout in seconds
            dns_timeout: Timeout per host lookup in seconds
            amount_tolerance: Largest accepted amount difference
        """
        self.credential = credential
        self.session = session
        self.valid_hosts = list(valid_hosts or DEFAULT_VALID_HOSTS)
        self.confirm_timeout = confirm_timeout
        self.dns_timeout = dns_timeout
        self.amount_tolerance = amount_tolerance
        self._resolver = resolver
        self._owns_resolver = resolver is None

    @property
    def validate_url(self) -> str:
        return f"https://{self.credential.host}{VALIDATE_PATH}"

    async def close(self) -> None:
        """Release the resolver if this validator created it."""
        if self._owns_resolver and self._resolver is not None:
            await self._resolver.close()
            self._resolver = None

    # Signature

    @staticmethod
    def canonicalize(payload: Mapping[str, str]) -> str:
        return canonical_param_string(payload)

    def check_signature(self, payload: Mapping[str, str], param_string: str) -> bool:
        """
        Verify the posted signature.

        Args:
            payload: Posted ITN fields
            param_string: Canonical parameter string of the payload

        Returns:
            True if the signature matches exactly
        """
        received = payload.get('signature')
        if not received:
            return False

        expected = md5_hex(append_passphrase(param_string, self.credential.passphrase))
        # Bytes, since the posted value may contain non-ASCII characters
        return hmac.compare_digest(expected.encode('ascii'), received.encode('utf-8'))

    # Sender IP

    async def _resolve_host(self, host: str) -> List[str]:
        """
        Forward-resolve a host to all of its addresses.

        Raises:
            TransportError: If the lookup fails or times out
        """
        if self._resolver is None:
            self._resolver = aiohttp.ThreadedResolver()

        try:
            results = await asyncio.wait_for(
                self._resolver.resolve(host, 0, socket.AF_UNSPEC),
                timeout=self.dns_timeout
            )
        except asyncio.TimeoutError:
            raise TransportError(f"DNS lookup timed out for {host}", host=host)
        except OSError as e:
            raise TransportError(f"DNS lookup failed for {host}: {e}", host=host) from e

        return [result['host'] for result in results]

    async def _lookup_or_skip(self, host: str) -> List[str]:
        try:
            return await self._resolve_host(host)
        except TransportError as e:
            logger.error(str(e))
            return []

    async def resolve_valid_ips(self) -> Set[str]:
        """
        Resolve every valid host and union the addresses.

        Hosts that fail to resolve are skipped; if all fail the set is
        empty and no sender will match.
        """
        lookups = await asyncio.gather(
            *(self._lookup_or_skip(host) for host in self.valid_hosts)
        )
        return {normalize_ip(address) for addresses in lookups for address in addresses}

    async def check_ip(self, source_ip: Optional[str]) -> bool:
        """Check that the sender address belongs to a valid host."""
        if not source_ip:
            return False

        valid_ips = await self.resolve_valid_ips()
        if not valid_ips:
            logger.error("No gateway addresses resolved, rejecting ITN sender")
            return False

        return normalize_ip(source_ip) in valid_ips

    # Amount

    def check_amount(self, cart_total: Any, payload: Mapping[str, str]) -> bool:
        """
        Compare the expected total with the notified gross amount.

        Args:
            cart_total: Amount the merchant expects
            payload: Posted ITN fields

        Returns:
            True if the amounts differ by at most the tolerance

        Raises:
            ValidationError: If cart_total is not a number
        """
        expected = self._parse_cart_total(cart_total)

        try:
            actual = parse_amount(payload.get('amount_gross'))
        except (InvalidOperation, ValueError):
            return False

        return abs(expected - actual) <= self.amount_tolerance

    @staticmethod
    def _parse_cart_total(cart_total: Any) -> Decimal:
        if cart_total is None:
            raise ValidationError("cart_total is required")
        try:
            return parse_amount(cart_total)
        except (InvalidOperation, ValueError):
            raise ValidationError(f"cart_total is not a valid amount: {cart_total!r}")

    # Server confirmation

    async def _request_confirmation(self, param_string: str) -> str:
        """
        Post the parameter string to the gateway's validate endpoint.

        Returns:
            Response body

        Raises:
            TransportError: On network errors, timeouts or non-2xx responses
        """
        headers = {'Content-Type': 'application/x-www-form-urlencoded'}

        try:
            async with self.session.post(
                self.validate_url,
                data=param_string,
                headers=headers,
                timeout=aiohttp.ClientTimeout(total=self.confirm_timeout)
            ) as response:
                body = await response.text()

                if not 200 <= response.status < 300:
                    raise TransportError(
                        f"Confirmation request returned {response.status}",
                        host=self.credential.host
                    )
                return body

        except aiohttp.ClientError as e:
            raise TransportError(
                f"Network error confirming ITN: {e}", host=self.credential.host
            ) from e
        except asyncio.TimeoutError:
            raise TransportError(
                f"Timeout confirming ITN with {self.credential.host}",
                host=self.credential.host
            )

    async def check_server_confirmation(self, param_string: str) -> bool:
        """Ask the gateway to confirm the notification."""
        try:
            body = await self._request_confirmation(param_string)
        except TransportError as e:
            logger.error(str(e))
            return False

        return body.strip() == VALID_RESPONSE

    # Combined

    async def validate_with_report(
        self,
        notification: InboundNotification,
        cart_total: Any
    ) -> ValidationReport:
        """
        Run all four checks and keep each outcome.

        Args:
            notification: Received ITN
            cart_total: Amount the merchant expects

        Returns:
            ValidationReport with per-check results

        Raises:
            ValidationError: If cart_total is not a number
        """
        payload = notification.payload
        source_ip = notification.source_ip

        # Fail on caller input before touching the network
        self._parse_cart_total(cart_total)

        param_string = self.canonicalize(payload)

        report = ValidationReport(payload=payload, source_ip=source_ip)
        report.signature_ok = self.check_signature(payload, param_string)
        report.amount_ok = self.check_amount(cart_total, payload)
        report.ip_ok, report.confirmation_ok = await asyncio.gather(
            self.check_ip(source_ip),
            self.check_server_confirmation(param_string)
        )

        if not report.signature_ok:
            report.failures.append("signature mismatch")
        if not report.ip_ok:
            report.failures.append(f"sender {source_ip} is not a gateway address")
        if not report.amount_ok:
            report.failures.append(
                f"amount_gross {payload.get('amount_gross')!r} does not match {cart_total}"
            )
        if not report.confirmation_ok:
            report.failures.append("server confirmation failed")

        if report.passed:
            logger.info(
                f"ITN {payload.pf_payment_id or '-'} trusted "
                f"(status={report.status.value})"
            )
        else:
            logger.warning(
                f"ITN {payload.pf_payment_id or '-'} rejected: "
                f"{'; '.join(report.failures)}"
            )

        return report

    async def validate(
        self,
        notification: InboundNotification,
        cart_total: Any
    ) -> ValidationResult:
        """
        Decide whether a notification can be trusted.

        The result never says which check failed.
        """
        report = await self.validate_with_report(notification, cart_total)
        return report.to_result()

    async def validate_payload(
        self,
        payload: Mapping[str, str],
        cart_total: Any,
        source_ip: Optional[str]
    ) -> ValidationResult:
        """Validate posted fields whose sender address is already known."""
        notification = InboundNotification(
            payload=NotificationPayload(payload),
            remote_addr=source_ip
        )
        return await self.validate(notification, cart_total)

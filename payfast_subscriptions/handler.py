"""
PayFast subscription handler.

Owns the merchant credential and HTTP session, and exposes the
subscription lifecycle calls and ITN validation behind one object.
"""

import logging
from typing import Any, Optional, Union

import aiohttp
from aiohttp.abc import AbstractResolver

from .config import Config, config as default_config
from .exceptions import ConfigurationError
from .models.credentials import MerchantCredential
from .models.notification import InboundNotification, ValidationResult
from .models.subscription import SubscriptionUpdateRequest
from .services.itn_validator import ITNValidator
from .services.signer import SignatureScheme
from .services.subscription_client import SubscriptionClient, require_token

logger = logging.getLogger(__name__)


class PayfastSubscriptionHandler:
    """
    Entry point for merchants integrating PayFast subscriptions.

    Usage:
        async with PayfastSubscriptionHandler(merchant_id, passphrase) as pf:
            await pf.pause_subscription(token, cycles=2)
            result = await pf.validate_itn(request, cart_total='99.00')
    """

    def __init__(
        self,
        merchant_id: str,
        passphrase: str,
        sandbox: bool = False,
        *,
        session: Optional[aiohttp.ClientSession] = None,
        resolver: Optional[AbstractResolver] = None,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        dns_timeout: Optional[float] = None,
        valid_hosts: Optional[list] = None,
        scheme: SignatureScheme = SignatureScheme.FIELD_VALUES
    ):
        """
        Initialize the handler.

        Args:
            merchant_id: PayFast merchant id
            passphrase: Merchant passphrase
            sandbox: Target the sandbox environment
            session: Existing HTTP session; it is never closed by the handler
            resolver: DNS resolver for the ITN sender check
            api_url: Subscription API base URL
            timeout: HTTP timeout in seconds
            dns_timeout: Timeout per DNS lookup in seconds
            valid_hosts: Hosts allowed to send ITNs
            scheme: Header signature scheme

        Raises:
            ConfigurationError: If merchant_id or passphrase is missing
        """
        self.credential = MerchantCredential(merchant_id, passphrase, sandbox)
        self.api_url = api_url or default_config.payfast.api_url
        self.timeout = timeout or default_config.http.timeout
        self.dns_timeout = dns_timeout or default_config.http.dns_timeout
        self.valid_hosts = valid_hosts or default_config.itn.valid_hosts
        self.scheme = scheme
        self._resolver = resolver
        self._session = session
        self._owns_session = session is None
        self._client: Optional[SubscriptionClient] = None
        self._validator: Optional[ITNValidator] = None

        if session is not None:
            self._wire(session)

    @classmethod
    def from_config(cls, cfg: Optional[Config] = None, **kwargs: Any) -> 'PayfastSubscriptionHandler':
        """
        Create a handler from environment configuration.

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        cfg = cfg or default_config
        errors = cfg.validate()
        if errors:
            raise ConfigurationError("; ".join(errors))

        return cls(
            merchant_id=cfg.payfast.merchant_id,
            passphrase=cfg.payfast.passphrase,
            sandbox=kwargs.pop('sandbox', cfg.payfast.sandbox),
            api_url=cfg.payfast.api_url,
            timeout=cfg.http.timeout,
            dns_timeout=cfg.http.dns_timeout,
            valid_hosts=cfg.itn.valid_hosts,
            **kwargs
        )

    def _wire(self, session: aiohttp.ClientSession) -> None:
        self._client = SubscriptionClient(
            credential=self.credential,
            session=session,
            api_base_url=self.api_url,
            scheme=self.scheme
        )
        self._validator = ITNValidator(
            credential=self.credential,
            session=session,
            resolver=self._resolver,
            valid_hosts=self.valid_hosts,
            confirm_timeout=self.timeout,
            dns_timeout=self.dns_timeout
        )

    async def start(self) -> None:
        """Open the HTTP session if the handler owns one."""
        if self._session is None:
            logger.debug("Opening PayFast HTTP session")
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._wire(self._session)

    async def stop(self) -> None:
        """Close resources the handler created."""
        if self._validator:
            await self._validator.close()

        if self._owns_session and self._session:
            await self._session.close()
            self._session = None
            self._client = None
            self._validator = None

    async def __aenter__(self) -> 'PayfastSubscriptionHandler':
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    @property
    def client(self) -> SubscriptionClient:
        if self._client is None:
            raise RuntimeError("Handler not started; call start() or use 'async with'")
        return self._client

    @property
    def validator(self) -> ITNValidator:
        if self._validator is None:
            raise RuntimeError("Handler not started; call start() or use 'async with'")
        return self._validator

    async def cancel_subscription(self, token: str) -> bool:
        require_token(token)
        return await self.client.cancel(token)

    async def pause_subscription(self, token: str, cycles: int = 1) -> bool:
        require_token(token)
        return await self.client.pause(token, cycles)

    async def unpause_subscription(self, token: str) -> bool:
        require_token(token)
        return await self.client.unpause(token)

    async def update_subscription(
        self,
        token: str,
        request: Optional[SubscriptionUpdateRequest] = None,
        **fields: Any
    ) -> bool:
        """
        Update a subscription from a request object or keyword fields.

        Example:
            await pf.update_subscription(token, amount=9900, cycles=12)
        """
        require_token(token)
        return await self.client.update(token, request or SubscriptionUpdateRequest(**fields))

    async def get_subscription(self, token: str) -> Any:
        require_token(token)
        return await self.client.fetch(token)

    async def validate_itn(
        self,
        request: Union[InboundNotification, Any],
        cart_total: Any
    ) -> ValidationResult:
        """
        Validate an ITN.

        Safe to call again with the same notification.

        Args:
            request: aiohttp web.Request or InboundNotification
            cart_total: Amount the merchant expects for this payment

        Returns:
            ValidationResult
        """
        if isinstance(request, InboundNotification):
            notification = request
        else:
            notification = await InboundNotification.from_request(request)
        return await self.validator.validate(notification, cart_total)

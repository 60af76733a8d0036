"""
Subscription API client.

Thin, signed request builders for the recurring billing endpoints under
``/subscriptions/{token}/{action}``. Transport errors are not retried
and reach the caller unchanged.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import aiohttp

from ..config import DEFAULT_API_URL
from ..exceptions import ConfigurationError, ValidationError
from ..models.credentials import MerchantCredential
from ..models.subscription import SubscriptionAction, SubscriptionUpdateRequest
from .signer import SignatureScheme, build_headers

logger = logging.getLogger(__name__)


def require_token(token: Optional[str]) -> str:
    """
    Check a subscription token before any request is built.

    Raises:
        ConfigurationError: If the token is empty
    """
    if not token or not str(token).strip():
        raise ConfigurationError("subscription token is required")
    return str(token).strip()


class SubscriptionClient:
    """Client for pausing, updating, cancelling and fetching subscriptions."""

    def __init__(
        self,
        credential: MerchantCredential,
        session: aiohttp.ClientSession,
        api_base_url: str = DEFAULT_API_URL,
        scheme: SignatureScheme = SignatureScheme.FIELD_VALUES
    ):
        """
        Initialize the client.

        Args:
            credential: Merchant credential used to sign requests
            session: HTTP session to send requests with
            api_base_url: Base URL of the subscription API
            scheme: Header signature scheme
        """
        self.credential = credential
        self.session = session
        self.api_base_url = api_base_url.rstrip('/')
        self.scheme = scheme

    def build_url(self, token: str, action: SubscriptionAction) -> str:
        """URL for an action; sandbox mode adds the testing flag."""
        url = f"{self.api_base_url}/subscriptions/{quote(token, safe='')}/{action.value}"
        if self.credential.sandbox:
            url += '?testing=true'
        return url

    async def _send(
        self,
        token: Optional[str],
        action: SubscriptionAction,
        body: Optional[Dict[str, Any]] = None
    ) -> Any:
        """
        Send a signed request.

        Returns:
            Decoded JSON body, or None if the response has none

        Raises:
            ConfigurationError: If the token is empty
            aiohttp.ClientError: On network errors and non-2xx responses
        """
        token = require_token(token)
        url = self.build_url(token, action)
        headers = build_headers(
            self.credential.merchant_id,
            self.credential.passphrase,
            body,
            scheme=self.scheme
        )

        logger.info(f"Subscription {action.value} for {token}")

        kwargs: Dict[str, Any] = {'headers': headers}
        if body:
            kwargs['json'] = body

        async with self.session.request(action.method, url, **kwargs) as response:
            response.raise_for_status()
            if response.content_type == 'application/json':
                return await response.json()
            return None

    async def cancel(self, token: str) -> bool:
        """Cancel a subscription."""
        await self._send(token, SubscriptionAction.CANCEL)
        return True

    async def pause(self, token: str, cycles: int = 1) -> bool:
        """
        Pause a subscription.

        Args:
            token: Subscription token
            cycles: Number of billing cycles to skip

        Raises:
            ValidationError: If cycles is not a whole number of at least one
        """
        require_token(token)
        if cycles is None:
            cycles = 1
        try:
            cycles = int(cycles)
        except (TypeError, ValueError):
            raise ValidationError(f"cycles must be a whole number: {cycles!r}")
        if cycles < 1:
            raise ValidationError("cycles must be at least 1")

        await self._send(token, SubscriptionAction.PAUSE, {'cycles': cycles})
        return True

    async def unpause(self, token: str) -> bool:
        """Resume a paused subscription."""
        await self._send(token, SubscriptionAction.UNPAUSE)
        return True

    async def update(self, token: str, request: SubscriptionUpdateRequest) -> bool:
        """
        Update a subscription.

        Raises:
            ValidationError: If the request sets no fields
        """
        require_token(token)
        if request is None or request.is_empty():
            raise ValidationError("update request must set at least one field")

        await self._send(token, SubscriptionAction.UPDATE, request.to_body())
        return True

    async def fetch(self, token: str) -> Dict[str, Any]:
        """
        Fetch a subscription.

        Returns:
            Subscription details as returned by the gateway
        """
        result = await self._send(token, SubscriptionAction.FETCH)
        if isinstance(result, dict) and 'data' in result:
            return result['data']
        return result or {}

"""
Unit tests for data models.

Run with: pytest tests/test_models.py -v
"""

import asyncio
import dataclasses
from unittest.mock import AsyncMock, MagicMock

import pytest

from payfast_subscriptions.exceptions import ConfigurationError
from payfast_subscriptions.models import (
    InboundNotification,
    ITNStatus,
    MerchantCredential,
    NotificationPayload,
    SubscriptionUpdateRequest,
    ValidationReport,
    ValidationResult,
)
from payfast_subscriptions.models.subscription import SubscriptionAction

from .fakes import MERCHANT_ID, PASSPHRASE, itn_fields


class TestMerchantCredential:
    """Tests for MerchantCredential."""

    def test_create(self):
        credential = MerchantCredential(MERCHANT_ID, PASSPHRASE)

        assert credential.merchant_id == MERCHANT_ID
        assert credential.sandbox is False
        assert credential.host == 'www.payfast.co.za'

    def test_sandbox_host(self):
        credential = MerchantCredential(MERCHANT_ID, PASSPHRASE, sandbox=True)
        assert credential.host == 'sandbox.payfast.co.za'

    def test_numeric_merchant_id_is_normalized(self):
        assert MerchantCredential(10000100, PASSPHRASE).merchant_id == '10000100'

    @pytest.mark.parametrize("merchant_id", ['', '  ', None])
    def test_missing_merchant_id(self, merchant_id):
        with pytest.raises(ConfigurationError, match="merchant_id is required"):
            MerchantCredential(merchant_id, PASSPHRASE)

    @pytest.mark.parametrize("passphrase", ['', '   ', None])
    def test_missing_passphrase(self, passphrase):
        with pytest.raises(ConfigurationError, match="passphrase is required"):
            MerchantCredential(MERCHANT_ID, passphrase)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            MerchantCredential('', PASSPHRASE)

    def test_immutable(self):
        credential = MerchantCredential(MERCHANT_ID, PASSPHRASE)
        with pytest.raises(dataclasses.FrozenInstanceError):
            credential.passphrase = 'changed'

    def test_passphrase_hidden(self):
        credential = MerchantCredential(MERCHANT_ID, PASSPHRASE)

        assert PASSPHRASE not in repr(credential)
        assert PASSPHRASE not in str(credential.to_public_dict())


class TestNotificationPayload:
    """Tests for NotificationPayload."""

    def test_preserves_order(self):
        fields = itn_fields()
        payload = NotificationPayload(fields)

        assert list(payload) == list(fields)

    def test_accessors(self):
        payload = NotificationPayload(itn_fields(signature='abc'))

        assert payload.signature == 'abc'
        assert payload.payment_status == 'COMPLETE'
        assert payload.amount_gross == '99.00'
        assert payload.token == 'dc0521d3-55fe-269b-fa00-b647310d760f'
        assert payload.m_payment_id == 'SUB-0001'
        assert payload.pf_payment_id == '1089250'

    def test_values_are_strings(self):
        payload = NotificationPayload({'amount_gross': 99.5, 'custom_int1': None})

        assert payload['amount_gross'] == '99.5'
        assert payload['custom_int1'] == ''

    def test_accepts_pairs(self):
        payload = NotificationPayload([('b', '2'), ('a', '1')])
        assert list(payload.items()) == [('b', '2'), ('a', '1')]

    def test_read_only(self):
        payload = NotificationPayload({'a': '1'})
        with pytest.raises(TypeError):
            payload['a'] = '2'

    def test_to_dict_is_a_copy(self):
        payload = NotificationPayload({'a': '1'})
        copy = payload.to_dict()
        copy['a'] = '2'

        assert payload['a'] == '1'

    def test_equality(self):
        assert NotificationPayload({'a': '1'}) == {'a': '1'}
        assert NotificationPayload({'a': '1', 'b': '2'}) != NotificationPayload({'b': '2', 'a': '1'})


class TestInboundNotification:
    """Tests for InboundNotification."""

    def test_wraps_plain_dict(self):
        notification = InboundNotification(payload={'a': '1'})
        assert isinstance(notification.payload, NotificationPayload)

    def test_source_ip_prefers_forwarded_for(self):
        notification = InboundNotification(
            payload={}, forwarded_for='197.97.145.144', remote_addr='10.0.0.1'
        )
        assert notification.source_ip == '197.97.145.144'

    def test_source_ip_uses_first_forwarded_entry(self):
        notification = InboundNotification(
            payload={}, forwarded_for=' 197.97.145.144 , 10.0.0.2', remote_addr='10.0.0.1'
        )
        assert notification.source_ip == '197.97.145.144'

    @pytest.mark.parametrize("forwarded_for", [None, '', ' , '])
    def test_source_ip_falls_back_to_peer(self, forwarded_for):
        notification = InboundNotification(
            payload={}, forwarded_for=forwarded_for, remote_addr='10.0.0.1'
        )
        assert notification.source_ip == '10.0.0.1'

    def test_from_request(self):
        request = MagicMock()
        request.post = AsyncMock(return_value={'pf_payment_id': '1', 'amount_gross': '5.00'})
        request.headers = {}
        request.remote = '197.97.145.144'

        notification = asyncio.run(InboundNotification.from_request(request))

        assert notification.payload == {'pf_payment_id': '1', 'amount_gross': '5.00'}
        assert notification.forwarded_for is None
        assert notification.source_ip == '197.97.145.144'


class TestValidationResult:
    """Tests for ValidationResult and ValidationReport."""

    def test_trusted(self):
        payload = NotificationPayload(itn_fields())
        result = ValidationResult.trusted(ITNStatus.COMPLETE, payload)

        assert result.to_dict() == {
            'passed': True,
            'status': 'COMPLETE',
            'data': payload.to_dict()
        }

    def test_untrusted_carries_no_detail(self):
        result = ValidationResult.untrusted()

        assert result.passed is False
        assert result.to_dict() == {'passed': False}

    @pytest.mark.parametrize("payment_status,expected", [
        ('COMPLETE', ITNStatus.COMPLETE),
        ('CANCELLED', ITNStatus.CANCELLED),
        ('FAILED', ITNStatus.CANCELLED),
        (None, ITNStatus.CANCELLED),
    ])
    def test_status_mapping(self, payment_status, expected):
        assert ITNStatus.from_payment_status(payment_status) is expected

    def test_report_requires_all_checks(self):
        report = ValidationReport(
            payload=NotificationPayload(itn_fields()),
            signature_ok=True, ip_ok=True, amount_ok=True, confirmation_ok=False
        )

        assert report.passed is False
        assert report.to_result() == ValidationResult.untrusted()

        report.confirmation_ok = True
        assert report.to_result().passed is True


class TestSubscriptionModels:
    """Tests for subscription request models."""

    def test_update_request_body_skips_unset(self):
        request = SubscriptionUpdateRequest(cycles=0, run_date='2026-11-01')
        assert request.to_body() == {'cycles': 0, 'run_date': '2026-11-01'}

    def test_empty_update_request(self):
        assert SubscriptionUpdateRequest().is_empty() is True
        assert SubscriptionUpdateRequest(amount=100).is_empty() is False

    @pytest.mark.parametrize("action,method", [
        (SubscriptionAction.CANCEL, 'PUT'),
        (SubscriptionAction.PAUSE, 'PUT'),
        (SubscriptionAction.UNPAUSE, 'PUT'),
        (SubscriptionAction.UPDATE, 'PUT'),
        (SubscriptionAction.FETCH, 'GET'),
    ])
    def test_action_methods(self, action, method):
        assert action.method == method


if __name__ == '__main__':
    pytest.main([__file__, '-v'])

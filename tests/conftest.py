"""Shared fixtures for the test suite."""

import pytest

from payfast_subscriptions.models.credentials import MerchantCredential

from .fakes import GATEWAY_IP, MERCHANT_ID, PASSPHRASE, FakeResolver, FakeResponse, FakeSession


@pytest.fixture
def credential():
    return MerchantCredential(MERCHANT_ID, PASSPHRASE)


@pytest.fixture
def sandbox_credential():
    return MerchantCredential(MERCHANT_ID, PASSPHRASE, sandbox=True)


@pytest.fixture
def resolver():
    return FakeResolver({
        'www.payfast.co.za': [GATEWAY_IP, '197.97.145.145'],
        'sandbox.payfast.co.za': ['197.97.145.146'],
        'w1w.payfast.co.za': ['41.74.179.194'],
        'w2w.payfast.co.za': ['41.74.179.195'],
    })


@pytest.fixture
def valid_session():
    """Session whose confirmation endpoint answers VALID."""
    return FakeSession(FakeResponse(status=200, body='VALID'))

"""
Unit tests for configuration loading and the command-line interface.

Run with: pytest tests/test_config_cli.py -v
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from payfast_subscriptions import cli
from payfast_subscriptions.config import DEFAULT_VALID_HOSTS, Config
from payfast_subscriptions.models.subscription import SubscriptionUpdateRequest

from .fakes import MERCHANT_ID, PASSPHRASE

ENV_KEYS = (
    'PAYFAST_MERCHANT_ID', 'PAYFAST_PASSPHRASE', 'PAYFAST_SANDBOX', 'PAYFAST_API_URL',
    'PAYFAST_TIMEOUT', 'PAYFAST_DNS_TIMEOUT', 'PAYFAST_VALID_HOSTS', 'LOG_LEVEL', 'LOG_FILE',
)


@pytest.fixture
def clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestConfig:
    """Tests for Config."""

    def test_defaults(self, clean_env):
        cfg = Config()

        assert cfg.payfast.sandbox is False
        assert cfg.payfast.api_url == 'https://api.payfast.co.za'
        assert cfg.http.timeout == 30
        assert cfg.http.dns_timeout == 5
        assert cfg.itn.valid_hosts == DEFAULT_VALID_HOSTS
        assert cfg.logging.level == 'INFO'
        assert cfg.logging.file is None

    def test_reads_environment(self, clean_env):
        clean_env.setenv('PAYFAST_MERCHANT_ID', MERCHANT_ID)
        clean_env.setenv('PAYFAST_PASSPHRASE', PASSPHRASE)
        clean_env.setenv('PAYFAST_SANDBOX', 'yes')
        clean_env.setenv('PAYFAST_API_URL', 'https://api.example.test/')
        clean_env.setenv('PAYFAST_TIMEOUT', '12.5')
        clean_env.setenv('PAYFAST_VALID_HOSTS', 'a.example.test, b.example.test')

        cfg = Config()

        assert cfg.payfast.merchant_id == MERCHANT_ID
        assert cfg.payfast.sandbox is True
        assert cfg.payfast.api_url == 'https://api.example.test'
        assert cfg.http.timeout == 12.5
        assert cfg.itn.valid_hosts == ['a.example.test', 'b.example.test']
        assert cfg.is_valid()

    def test_passphrase_not_in_repr(self, clean_env):
        clean_env.setenv('PAYFAST_PASSPHRASE', PASSPHRASE)
        assert PASSPHRASE not in repr(Config().payfast)

    def test_validate_reports_missing_credentials(self, clean_env):
        errors = Config().validate()

        assert "PAYFAST_MERCHANT_ID is required" in errors
        assert "PAYFAST_PASSPHRASE is required" in errors

    def test_validate_rejects_non_positive_timeouts(self, clean_env):
        clean_env.setenv('PAYFAST_MERCHANT_ID', MERCHANT_ID)
        clean_env.setenv('PAYFAST_PASSPHRASE', PASSPHRASE)
        clean_env.setenv('PAYFAST_DNS_TIMEOUT', '0')

        cfg = Config()

        assert cfg.validate() == ["PAYFAST_DNS_TIMEOUT must be positive"]
        assert not cfg.is_valid()


class TestParser:
    """Tests for the argument parser."""

    def test_pause_defaults(self):
        args = cli.build_parser().parse_args(['pause', 'tok'])

        assert args.action == 'pause'
        assert args.token == 'tok'
        assert args.cycles == 1
        assert args.sandbox is None

    def test_update_fields(self):
        args = cli.build_parser().parse_args(
            ['--sandbox', 'update', 'tok', '--amount', '9900', '--run-date', '2026-12-01']
        )

        assert args.sandbox is True
        assert args.amount == 9900
        assert args.run_date == '2026-12-01'
        assert args.cycles is None

    def test_action_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestRunAction:
    """Tests for dispatching commands to the handler."""

    def test_update_builds_request(self):
        handler = MagicMock()
        handler.update_subscription = AsyncMock(return_value=True)
        args = cli.build_parser().parse_args(['update', 'tok', '--cycles', '6'])

        assert asyncio.run(cli.run_action(handler, args)) is True

        handler.update_subscription.assert_awaited_once_with(
            'tok', SubscriptionUpdateRequest(cycles=6)
        )

    @pytest.mark.parametrize("argv,method,call_args", [
        (['fetch', 'tok'], 'get_subscription', ('tok',)),
        (['cancel', 'tok'], 'cancel_subscription', ('tok',)),
        (['unpause', 'tok'], 'unpause_subscription', ('tok',)),
        (['pause', 'tok', '--cycles', '2'], 'pause_subscription', ('tok', 2)),
    ])
    def test_dispatch(self, argv, method, call_args):
        handler = MagicMock()
        setattr(handler, method, AsyncMock(return_value='ok'))
        args = cli.build_parser().parse_args(argv)

        assert asyncio.run(cli.run_action(handler, args)) == 'ok'

        getattr(handler, method).assert_awaited_once_with(*call_args)


class TestMain:
    """Tests for cli.main()."""

    def test_invalid_config_exits_with_2(self, clean_env):
        assert cli.main(['fetch', 'tok'], cfg=Config()) == 2

    def test_missing_token_exits_with_2(self, clean_env):
        clean_env.setenv('PAYFAST_MERCHANT_ID', MERCHANT_ID)
        clean_env.setenv('PAYFAST_PASSPHRASE', PASSPHRASE)

        assert cli.main(['cancel', ' '], cfg=Config()) == 2

    def test_success_prints_result(self, clean_env, capsys, monkeypatch):
        clean_env.setenv('PAYFAST_MERCHANT_ID', MERCHANT_ID)
        clean_env.setenv('PAYFAST_PASSPHRASE', PASSPHRASE)
        monkeypatch.setattr(cli, '_run', AsyncMock(return_value={'token': 'tok'}))

        assert cli.main(['fetch', 'tok'], cfg=Config()) == 0
        assert '"token": "tok"' in capsys.readouterr().out


if __name__ == '__main__':
    pytest.main([__file__, '-v'])

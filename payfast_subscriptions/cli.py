"""
Command-line access to the subscription API.

Usage:
    payfast-subscriptions fetch TOKEN
    payfast-subscriptions pause TOKEN --cycles 2
    payfast-subscriptions update TOKEN --amount 9900 --run-date 2026-12-01
    payfast-subscriptions --sandbox cancel TOKEN

Credentials are read from PAYFAST_MERCHANT_ID and PAYFAST_PASSPHRASE.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, List, Optional

import aiohttp

from .config import Config, config as default_config
from .exceptions import ConfigurationError, PayfastError
from .handler import PayfastSubscriptionHandler
from .models.subscription import SubscriptionUpdateRequest

logger = logging.getLogger(__name__)


def setup_logging(cfg: Optional[Config] = None) -> None:
    """Configure logging based on config."""
    cfg = cfg or default_config
    log_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    log_level = getattr(logging, cfg.logging.level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if cfg.logging.file:
        # Ensure log directory exists
        log_dir = os.path.dirname(cfg.logging.file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(cfg.logging.file))

    logging.basicConfig(
        level=log_level,
        format=log_format,
        handlers=handlers
    )

    # Reduce noise from third-party libraries
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='payfast-subscriptions',
        description='Manage PayFast recurring billing subscriptions'
    )
    parser.add_argument(
        '--sandbox',
        action='store_true',
        default=None,
        help='Use the sandbox environment (default: PAYFAST_SANDBOX)'
    )

    subparsers = parser.add_subparsers(dest='action', required=True)

    for action, help_text in (
        ('fetch', 'Show subscription details'),
        ('cancel', 'Cancel a subscription'),
        ('unpause', 'Resume a paused subscription'),
    ):
        sub = subparsers.add_parser(action, help=help_text)
        sub.add_argument('token', help='Subscription token')

    pause = subparsers.add_parser('pause', help='Pause a subscription')
    pause.add_argument('token', help='Subscription token')
    pause.add_argument('--cycles', type=int, default=1, help='Cycles to skip (default: 1)')

    update = subparsers.add_parser('update', help='Update a subscription')
    update.add_argument('token', help='Subscription token')
    update.add_argument('--cycles', type=int, help='Remaining billing cycles')
    update.add_argument('--amount', type=int, help='Recurring amount in cents')
    update.add_argument('--run-date', dest='run_date', help='Next run date (YYYY-MM-DD)')
    update.add_argument('--frequency', type=int, help='Billing frequency code')

    return parser


async def run_action(handler: PayfastSubscriptionHandler, args: argparse.Namespace) -> Any:
    """Dispatch a parsed command to the handler."""
    if args.action == 'fetch':
        return await handler.get_subscription(args.token)
    if args.action == 'cancel':
        return await handler.cancel_subscription(args.token)
    if args.action == 'unpause':
        return await handler.unpause_subscription(args.token)
    if args.action == 'pause':
        return await handler.pause_subscription(args.token, args.cycles)
    if args.action == 'update':
        request = SubscriptionUpdateRequest(
            cycles=args.cycles,
            amount=args.amount,
            run_date=args.run_date,
            frequency=args.frequency
        )
        return await handler.update_subscription(args.token, request)
    raise ValueError(f"Unknown action: {args.action}")


async def _run(args: argparse.Namespace, cfg: Config) -> Any:
    overrides = {}
    if args.sandbox is not None:
        overrides['sandbox'] = args.sandbox

    async with PayfastSubscriptionHandler.from_config(cfg, **overrides) as handler:
        return await run_action(handler, args)


def main(argv: Optional[List[str]] = None, cfg: Optional[Config] = None) -> int:
    """Main entry point."""
    cfg = cfg or default_config
    args = build_parser().parse_args(argv)
    setup_logging(cfg)

    try:
        result = asyncio.run(_run(args, cfg))
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2
    except (PayfastError, aiohttp.ClientError) as e:
        logger.error(f"{args.action} failed: {e}")
        return 1

    print(json.dumps({'action': args.action, 'result': result}, indent=2, default=str))
    return 0


if __name__ == '__main__':
    sys.exit(main())

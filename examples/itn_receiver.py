#!/usr/bin/env python3
"""
Example: ITN receiver for merchants

This script shows how a merchant would receive and validate PayFast
ITN callbacks for a subscription.

Usage:
    PAYFAST_MERCHANT_ID=10000100 PAYFAST_PASSPHRASE=secret \\
        python itn_receiver.py --cart-total 99.00 --port 5000 --sandbox

The script will:
1. Start a local web server
2. Listen for ITN POST requests on /notify
3. Validate signature, sender IP, amount and server confirmation
4. Display the resulting subscription status
"""

import argparse
import asyncio
import json

from aiohttp import web

from payfast_subscriptions import ITNStatus, PayfastSubscriptionHandler
from payfast_subscriptions.cli import setup_logging


async def handle_itn(request: web.Request) -> web.Response:
    """Handle incoming ITN requests."""
    handler: PayfastSubscriptionHandler = request.app['payfast']
    cart_total = request.app['cart_total']

    result = await handler.validate_itn(request, cart_total)

    # PayFast only needs a 200; never tell the sender why a check failed
    if not result.passed:
        print("❌ ITN rejected, check the logs and the payment manually")
        return web.Response(status=200)

    print("✅ ITN trusted")
    print(f"   Token: {result.payload.token}")
    print(f"   Payment ID: {result.payload.pf_payment_id}")
    print(f"   Amount: {result.payload.amount_gross}")
    print(f"   Status: {result.status.value}")

    if result.status is ITNStatus.COMPLETE:
        # In a real implementation, mark the subscription as paid here
        pass

    print(json.dumps(result.to_dict(), indent=2))
    return web.Response(status=200)


async def on_startup(app: web.Application) -> None:
    await app['payfast'].start()


async def on_cleanup(app: web.Application) -> None:
    await app['payfast'].stop()


def create_app(handler: PayfastSubscriptionHandler, cart_total: str) -> web.Application:
    """Create the ITN receiver application."""
    app = web.Application()
    app['payfast'] = handler
    app['cart_total'] = cart_total

    app.router.add_post('/notify', handle_itn)
    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)

    return app


async def main():
    parser = argparse.ArgumentParser(
        description='ITN receiver for testing PayFast subscription notifications'
    )
    parser.add_argument('--cart-total', required=True, help='Expected amount')
    parser.add_argument('--sandbox', action='store_true', help='Use the sandbox')
    parser.add_argument('--port', type=int, default=5000, help='Port (default: 5000)')
    parser.add_argument('--host', default='0.0.0.0', help='Host (default: 0.0.0.0)')

    args = parser.parse_args()
    setup_logging()

    handler = PayfastSubscriptionHandler.from_config(sandbox=args.sandbox)
    app = create_app(handler, args.cart_total)

    print(f"Listening for ITNs on http://{args.host}:{args.port}/notify")

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, args.host, args.port)
    await site.start()

    # Run forever
    await asyncio.Event().wait()


if __name__ == '__main__':
    asyncio.run(main())

"""Command line entry point.

    python -m swapintent swap --venue fusion --src-chain 42161 ...
    python -m swapintent status 0xORDERHASH --venue fusion --chain 42161
"""

import argparse
import asyncio
import logging
import sys
import time
from decimal import Decimal, InvalidOperation
from typing import Optional

from swapintent.config import Settings, get_settings
from swapintent.errors import ConfigurationError, SwapIntentError
from swapintent.models import SwapIntent
from swapintent.permit import build_erc2612_permit, build_permit2_permit, supports_permit
from swapintent.swap.executor import SwapExecutor, create_swap_executor
from swapintent.venue.factory import VenueKind, create_venue

logger = logging.getLogger(__name__)

PERMIT_LIFETIME = 3600


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="swapintent", description="Intent-based token swaps")
    commands = parser.add_subparsers(dest="command", required=True)

    venues = [kind.value for kind in VenueKind]

    swap = commands.add_parser("swap", help="Quote, sign, submit and monitor a swap")
    swap.add_argument("--venue", choices=venues, default=VenueKind.FUSION.value)
    swap.add_argument("--src-chain", type=int, required=True)
    swap.add_argument("--dst-chain", type=int, help="Defaults to --src-chain")
    swap.add_argument("--src-token", required=True)
    swap.add_argument("--dst-token", required=True)
    swap.add_argument("--amount", required=True, help="Human amount, e.g. 1.5")
    swap.add_argument("--decimals", type=int, help="Source token decimals (read on-chain if omitted)")
    swap.add_argument("--preset", help="Settlement preset (fast, medium, slow)")
    swap.add_argument("--taking-amount", type=int, help="Fixed taking amount for order-book orders")
    authorization = swap.add_mutually_exclusive_group()
    authorization.add_argument("--permit", action="store_true", help="Authorize with an ERC-2612 permit")
    authorization.add_argument("--permit2", action="store_true", help="Authorize with a Permit2 permit")

    status = commands.add_parser("status", help="Read an order's status")
    status.add_argument("order_hash")
    status.add_argument("--venue", choices=venues, default=VenueKind.FUSION.value)
    status.add_argument("--chain", type=int, required=True)

    return parser.parse_args(argv)


def to_base_units(amount: str, decimals: int) -> int:
    """Convert a human amount to smallest units."""
    try:
        value = Decimal(amount) * (Decimal(10) ** decimals)
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {amount}") from None
    if value != value.to_integral_value():
        raise ValueError(f"{amount} has more than {decimals} decimal places")
    return int(value)


async def run_swap(args: argparse.Namespace, settings: Settings) -> int:
    executor: SwapExecutor = create_swap_executor(args.venue, args.src_chain, settings=settings)
    token_client = executor.allowance_guard.token_client
    wallet = executor.signer.address

    decimals = args.decimals
    if decimals is None:
        info = await token_client.get_token_info(args.src_token, wallet)
        decimals = info.decimals
        logger.info(f"{info.symbol} balance: {info.balance} ({decimals} decimals)")
    amount = to_base_units(args.amount, decimals)

    permit = None
    if args.permit:
        if not await supports_permit(token_client, args.src_token):
            logger.error(f"{args.src_token} does not support ERC-2612 permits")
            return 1
        permit = await build_erc2612_permit(
            token_client,
            executor.signer,
            args.src_token,
            executor.spender,
            amount,
            int(time.time()) + PERMIT_LIFETIME,
        )
    elif args.permit2:
        deadline = int(time.time()) + PERMIT_LIFETIME
        permit = await build_permit2_permit(
            token_client,
            executor.signer,
            args.src_token,
            executor.spender,
            amount,
            expiration=deadline,
            sig_deadline=deadline,
        )

    intent = SwapIntent(
        src_chain_id=args.src_chain,
        dst_chain_id=args.dst_chain or args.src_chain,
        src_token=args.src_token,
        dst_token=args.dst_token,
        amount=amount,
        wallet_address=wallet,
        permit=permit,
        preset=args.preset,
        taking_amount=args.taking_amount,
        use_permit2=args.permit2,
    )

    result = await executor.execute_swap(intent)
    print(f"Order hash: {result.order_hash}")
    print(f"Outcome:    {result.outcome.value} (last status {result.final_status.value})")
    print(f"Elapsed:    {result.execution_time_seconds:.1f}s")
    return 0


async def run_status(args: argparse.Namespace, settings: Settings) -> int:
    if not settings.auth_key:
        raise ConfigurationError(["AUTH_KEY"])
    venue = create_venue(args.venue, args.chain, settings=settings)
    report = await venue.get_order_status(args.order_hash)
    print(f"{args.order_hash}: {report.status.value}")
    return 0


async def run(args: argparse.Namespace) -> int:
    settings = get_settings()
    if args.command == "swap":
        return await run_swap(args, settings)
    return await run_status(args, settings)


def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.debug(f"Settings: {settings.get_safe_dict()}")

    try:
        return asyncio.run(run(args))
    except (SwapIntentError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())

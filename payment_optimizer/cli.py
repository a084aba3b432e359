"""
cli.py - Command-Line Entry Point

Usage:
    payment-optimizer orders.json paymentmethods.json
    python -m payment_optimizer orders.json paymentmethods.json --explain -v

Prints one "<method id> <amount>" line per payment method with positive spend.
Diagnostics go to stderr; stdout carries only the result.
"""

from __future__ import annotations
import argparse
from decimal import Decimal
import logging
import sys
from typing import List, Mapping, Optional, Sequence

from .core import POINTS_ID, ZERO, PaymentError, money_str
from .optimizer import Allocation, PaymentOptimizer
from .reader import read_orders, read_payment_methods


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
HANDLER_NAME = "payment_optimizer.cli"


def configure_logging(verbose: bool = False) -> None:
    """Attach a single stderr handler to the package logger, replacing any previous one."""
    root = logging.getLogger("payment_optimizer")
    for old in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(old)
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def format_totals(totals: Mapping[str, Decimal]) -> List[str]:
    """One "<id> <amount>" line per method with positive spend, in input order."""
    return [f"{method_id} {money_str(amount)}" for method_id, amount in totals.items() if amount > ZERO]


def format_allocations(allocations: Sequence[Allocation]) -> List[str]:
    lines = []
    for a in allocations:
        charges = []
        if a.points_method_id:
            charges.append(f"{a.points_method_id}={money_str(a.points_cost)}")
        if a.card_method_id:
            charges.append(f"{a.card_method_id}={money_str(a.card_cost)}")
        lines.append(
            f"{a.order_id}: phase {a.phase} {a.method} discount={money_str(a.discount)} "
            f"{' '.join(charges) or '-'}"
        )
    return lines


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payment-optimizer",
        description="Allocate order payments across points and cards to maximize discounts.",
    )
    parser.add_argument("orders", help="Path to the orders JSON file")
    parser.add_argument("payment_methods", help="Path to the payment methods JSON file")
    parser.add_argument(
        "--points-id",
        default=POINTS_ID,
        help=f"Id of the loyalty points payment method (default: {POINTS_ID})",
    )
    parser.add_argument(
        "--explain",
        action="store_true",
        help="Print how each order was settled to stderr",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        orders = read_orders(args.orders)
        methods = read_payment_methods(args.payment_methods)
    except OSError as e:
        logger.error("Error reading input files: %s", e)
        print(f"Error reading input files: {e}", file=sys.stderr)
        return 1
    except PaymentError as e:
        logger.error("Invalid input: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not orders:
        logger.warning("No orders found in the input file.")
        print("No orders to process.")
        return 0
    if not methods:
        logger.warning("No payment methods found. Cannot process payments.")
        print("Error: No payment methods provided.", file=sys.stderr)
        return 1

    try:
        run = PaymentOptimizer(points_id=args.points_id).run(orders, methods)
    except PaymentError as e:
        logger.error("Error during processing: %s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.explain:
        for line in format_allocations(run.allocations):
            print(line, file=sys.stderr)
    for line in format_totals(run.totals):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
options.py - Candidate Payment Options for a Single Order

This module generates every viable way to pay one order against the current
wallet balances, and defines the total order used to pick the best one:
1. generate_payment_options() - All candidates for an order, in a fixed order
2. select_best_option() - The winning candidate (most discount, then most points)
3. One compute_*() function per candidate family

Candidate families, in generation order:
    FULL_POINTS               - all points, with the points instrument's own discount
    PARTIAL_POINTS_ALL_POINTS - flat 10% discount, points cover everything
    PARTIAL_POINTS_MIXED      - flat 10% discount, points plus one card
    FULL_CARD_NO_PROMO        - one card pays full value (one option per card)
    FULL_POINTS_NO_PROMO      - 0% points pay full value

Generation order matters: when two options compare equal, the first one
generated wins. Cards are always enumerated in wallet (input) order.

All functions here are pure. They read balances but never spend.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
import logging
from typing import List, Optional, Sequence, Tuple

from .core import (
    Order,
    ZERO, PARTIAL_POINTS_DISCOUNT, MINIMUM_POINTS_PAYMENT,
    InvalidArgument,
    percent_of, round_money,
)
from .wallet import Wallet, WalletEntry


logger = logging.getLogger(__name__)


class OptionType(Enum):
    """Kind of candidate payment option."""
    FULL_POINTS = "FULL_POINTS"
    PARTIAL_POINTS_ALL_POINTS = "PARTIAL_POINTS_ALL_POINTS"
    PARTIAL_POINTS_MIXED = "PARTIAL_POINTS_MIXED"
    FULL_CARD_NO_PROMO = "FULL_CARD_NO_PROMO"
    FULL_POINTS_NO_PROMO = "FULL_POINTS_NO_PROMO"


@dataclass(frozen=True, slots=True)
class PaymentOption:
    """
    One proposed way to pay an order.

    Attributes:
        order: The order this option pays
        option_type: Candidate family
        discount_applied: Discount captured by this option (>= 0)
        points_cost: Amount paid from points (>= 0)
        card_cost: Amount paid from a card (>= 0)
        points_entry: Points wallet entry, required when points_cost > 0
        card_entry: Card wallet entry, required when card_cost > 0

    points_cost + card_cost always equals order.value - discount_applied.
    """
    order: Order
    option_type: OptionType
    discount_applied: Decimal
    points_cost: Decimal
    card_cost: Decimal
    points_entry: Optional[WalletEntry] = None
    card_entry: Optional[WalletEntry] = None

    def __post_init__(self):
        if self.discount_applied < ZERO or self.points_cost < ZERO or self.card_cost < ZERO:
            raise InvalidArgument(f"Option amounts must be non-negative: {self!r}")
        if self.points_cost > ZERO and self.points_entry is None:
            raise InvalidArgument(f"Option spends points without a points entry: {self!r}")
        if self.card_cost > ZERO and self.card_entry is None:
            raise InvalidArgument(f"Option spends a card without a card entry: {self!r}")
        if self.points_cost + self.card_cost != self.order.value - self.discount_applied:
            raise InvalidArgument(f"Option costs do not add up to the discounted value: {self!r}")

    @property
    def total_cost(self) -> Decimal:
        return self.points_cost + self.card_cost

    @property
    def original_order_value(self) -> Decimal:
        return self.order.value

    def sort_key(self) -> Tuple[Decimal, Decimal]:
        """Ascending key: larger discount first, then larger points usage."""
        return (-self.discount_applied, -self.points_cost)

    def __repr__(self) -> str:
        card = self.card_entry.method_id if self.card_entry else "N/A"
        points = self.points_entry.method_id if self.points_entry else "N/A"
        return (
            f"PaymentOption({self.order.id}: {self.option_type.value}, "
            f"discount={self.discount_applied}, points={self.points_cost} ({points}), "
            f"card={self.card_cost} ({card}))"
        )


def select_best_option(options: Sequence[PaymentOption]) -> Optional[PaymentOption]:
    """
    Pick the best option: highest discount, ties broken by highest points cost.

    Among options that compare equal, the earliest in ``options`` wins.
    Returns None for an empty sequence.
    """
    if not options:
        return None
    return min(options, key=PaymentOption.sort_key)


# ============================================================================
# CANDIDATE FAMILIES
# ============================================================================

def compute_full_points_option(order: Order, points: Optional[WalletEntry]) -> Optional[PaymentOption]:
    """
    Pay the whole order with points, discounted by the points' own percent.

    Viable only if the points balance covers the discounted cost.
    """
    if points is None or order.value <= ZERO:
        return None
    discount = percent_of(order.value, points.discount_percent)
    cost = order.value - discount
    if not points.can_cover(cost):
        return None
    return PaymentOption(order, OptionType.FULL_POINTS, discount, cost, ZERO, points, None)


def minimum_points_threshold(value: Decimal) -> Decimal:
    """
    Smallest points payment that unlocks the flat partial-points discount.

    10% of the value rounded half-up to cents; if that rounds to zero for a
    positive value, one cent.
    """
    threshold = round_money(value * PARTIAL_POINTS_DISCOUNT)
    if threshold <= ZERO and value > ZERO:
        threshold = MINIMUM_POINTS_PAYMENT
    return threshold


def compute_partial_points_option(
    order: Order,
    points: Optional[WalletEntry],
    cards: Sequence[WalletEntry],
) -> Optional[PaymentOption]:
    """
    Pay at least the threshold with points and earn a flat 10% discount.

    Points cover as much of the discounted cost as they can. Any shortfall
    goes to the first card in ``cards`` able to cover it; if none can, there
    is no option.
    """
    if points is None or order.value <= ZERO:
        return None

    threshold = minimum_points_threshold(order.value)
    discount = round_money(order.value * PARTIAL_POINTS_DISCOUNT)
    cost = order.value - discount

    points_to_pay = min(points.balance, cost)
    if points_to_pay < threshold:
        return None

    shortfall = cost - points_to_pay
    if shortfall <= ZERO:
        return PaymentOption(order, OptionType.PARTIAL_POINTS_ALL_POINTS, discount, cost, ZERO, points, None)

    for card in cards:
        if card.can_cover(shortfall):
            return PaymentOption(
                order, OptionType.PARTIAL_POINTS_MIXED, discount, points_to_pay, shortfall, points, card
            )
    return None


def compute_full_card_options(order: Order, cards: Sequence[WalletEntry]) -> List[PaymentOption]:
    """One zero-discount option per card able to pay the full value."""
    if order.value <= ZERO:
        return []
    return [
        PaymentOption(order, OptionType.FULL_CARD_NO_PROMO, ZERO, ZERO, order.value, None, card)
        for card in cards
        if card.can_cover(order.value)
    ]


def compute_full_points_no_promo_option(
    order: Order,
    points: Optional[WalletEntry],
) -> Optional[PaymentOption]:
    """
    Pay the full value with points that carry no discount of their own.

    Lets idle 0% points be used when nothing better exists; any option with
    a positive discount outranks it.
    """
    if points is None or order.value <= ZERO:
        return None
    if points.discount_percent != 0 or not points.can_cover(order.value):
        return None
    return PaymentOption(order, OptionType.FULL_POINTS_NO_PROMO, ZERO, order.value, ZERO, points, None)


def generate_payment_options(order: Order, wallet: Wallet) -> List[PaymentOption]:
    """
    Generate every viable option for ``order`` against current balances.

    Args:
        order: Order to pay
        wallet: Current wallet state (read only)

    Returns:
        Options in generation order; empty for a zero-value order or when
        nothing is affordable.
    """
    if order.value <= ZERO:
        return []

    points = wallet.points
    cards = wallet.cards()
    options: List[PaymentOption] = []

    full_points = compute_full_points_option(order, points)
    if full_points is not None:
        options.append(full_points)

    partial = compute_partial_points_option(order, points, cards)
    if partial is not None:
        options.append(partial)

    options.extend(compute_full_card_options(order, cards))

    no_promo_points = compute_full_points_no_promo_option(order, points)
    if no_promo_points is not None:
        options.append(no_promo_points)

    for option in options:
        logger.debug("Order %s: candidate %r", order.id, option)
    return options

"""
optimizer.py - Two-Phase Payment Allocation

PaymentOptimizer decides, for a batch of orders, how much to charge to each
payment method so that the captured discount is as large as the greedy
policy below can make it, without overdrawing any method.

Phase 1 (global promotion pass):
    Every (order, promoted card) pair is a PromoCandidate. Candidates are
    sorted by discount descending, then cost ascending, and committed in a
    single pass when the card can pay the discounted order in full. A
    candidate that cannot be afforded is dropped for good: balances only
    decrease, so it would never become affordable later.

Phase 2 (remaining orders):
    Orders not settled in Phase 1 are visited by value descending (ties keep
    input order). Each gets its candidate options from options.py against the
    current balances; the best one is applied. An order with no option aborts
    the whole run.

Each call works on its own OptimizationRun: a fresh Wallet, zeroed totals, the
handled-order set and the allocation log. Nothing carries over between calls.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import Dict, List, Optional, Sequence, Set

from .core import (
    Order, PaymentMethod,
    POINTS_ID, ZERO,
    UnsatisfiableAllocation,
    ensure_unique_ids, money_str, percent_of,
)
from .options import PaymentOption, generate_payment_options, select_best_option
from .wallet import InstrumentKind, Wallet, WalletEntry


logger = logging.getLogger(__name__)

# Allocation.method values for settlements that are not Phase-2 options
CARD_PROMOTION = "CARD_PROMOTION"
ZERO_VALUE = "ZERO_VALUE"


@dataclass(frozen=True, slots=True)
class PromoCandidate:
    """A card promotion that could pay one order in full (Phase 1 only)."""
    order: Order
    card: WalletEntry
    discount_amount: Decimal
    cost: Decimal

    def sort_key(self):
        return (-self.discount_amount, self.cost)


@dataclass(frozen=True, slots=True)
class Allocation:
    """
    Audit record of how one order was settled.

    Attributes:
        order_id: The settled order
        phase: 1 for promotion commits, 2 for remaining-order settlements
        method: CARD_PROMOTION, ZERO_VALUE or an OptionType value
        discount: Discount captured
        points_cost: Amount charged to points
        card_cost: Amount charged to a card
        points_method_id: Points method charged, if any
        card_method_id: Card charged, if any
    """
    order_id: str
    phase: int
    method: str
    discount: Decimal
    points_cost: Decimal = ZERO
    card_cost: Decimal = ZERO
    points_method_id: Optional[str] = None
    card_method_id: Optional[str] = None

    @property
    def total_cost(self) -> Decimal:
        return self.points_cost + self.card_cost

    def __repr__(self) -> str:
        parts = [f"{self.order_id}: phase {self.phase} {self.method}", f"discount={money_str(self.discount)}"]
        if self.points_method_id:
            parts.append(f"{self.points_method_id}={money_str(self.points_cost)}")
        if self.card_method_id:
            parts.append(f"{self.card_method_id}={money_str(self.card_cost)}")
        return f"Allocation({', '.join(parts)})"


@dataclass
class OptimizationRun:
    """
    Mutable state of one optimization call.

    Owns the wallet and the spend totals. All spending goes through pay(),
    which charges the wallet entry first and only then books the amount, so
    a failed spend leaves totals unchanged.
    """
    wallet: Wallet
    orders: Sequence[Order]
    totals: Dict[str, Decimal] = field(default_factory=dict)
    handled: Set[str] = field(default_factory=set)
    allocations: List[Allocation] = field(default_factory=list)

    @classmethod
    def start(
        cls,
        orders: Sequence[Order],
        payment_methods: Sequence[PaymentMethod],
        points_id: str = POINTS_ID,
    ) -> "OptimizationRun":
        ensure_unique_ids(orders, "order")
        wallet = Wallet(payment_methods, points_id=points_id)
        totals = {method_id: ZERO for method_id in wallet.method_ids()}
        return cls(wallet=wallet, orders=tuple(orders), totals=totals)

    def is_handled(self, order: Order) -> bool:
        return order.id in self.handled

    def pay(self, entry: WalletEntry, amount: Decimal) -> None:
        entry.spend(amount)
        self.totals[entry.method_id] = self.totals[entry.method_id] + amount

    def mark_handled(self, allocation: Allocation) -> None:
        self.handled.add(allocation.order_id)
        self.allocations.append(allocation)

    def remaining_orders(self) -> List[Order]:
        """Unhandled orders, largest value first (stable for equal values)."""
        pending = [o for o in self.orders if o.id not in self.handled]
        return sorted(pending, key=lambda o: o.value, reverse=True)

    @property
    def is_complete(self) -> bool:
        return len(self.handled) == len(self.orders)

    @property
    def total_spent(self) -> Decimal:
        return sum(self.totals.values(), ZERO)

    @property
    def total_discount(self) -> Decimal:
        return sum((a.discount for a in self.allocations), ZERO)


class PaymentOptimizer:
    """
    Greedy two-phase payment allocator.

    Stateless between calls: each optimize()/run() builds its own
    OptimizationRun, so one instance may be reused for any number of batches.

    Example:
        optimizer = PaymentOptimizer()
        totals = optimizer.optimize(
            [Order("ORDER1", Decimal("100.00"), ("mZysk",))],
            [PaymentMethod("PUNKTY", 15, Decimal("100.00")),
             PaymentMethod("mZysk", 10, Decimal("180.00"))],
        )
        # {"PUNKTY": Decimal("0"), "mZysk": Decimal("90.00")}
    """

    def __init__(self, points_id: str = POINTS_ID):
        self.points_id = points_id

    def optimize(
        self,
        orders: Sequence[Order],
        payment_methods: Sequence[PaymentMethod],
    ) -> Dict[str, Decimal]:
        """
        Allocate spend for all orders.

        Returns:
            Mapping of every payment method id (input order) to the amount
            charged to it, zero entries included.

        Raises:
            InvalidArgument: On duplicate order or payment method ids
            UnsatisfiableAllocation: If some order cannot be paid
        """
        return self.run(orders, payment_methods).totals

    def run(
        self,
        orders: Sequence[Order],
        payment_methods: Sequence[PaymentMethod],
    ) -> OptimizationRun:
        """Like optimize(), but return the whole run (totals, wallet, allocations)."""
        run = OptimizationRun.start(orders, payment_methods, self.points_id)
        self.apply_card_promotions(run)
        self.settle_remaining_orders(run)
        return run

    # ========================================================================
    # PHASE 1
    # ========================================================================

    def collect_promo_candidates(self, run: OptimizationRun) -> List[PromoCandidate]:
        """Every (order, promoted card) pair, best first."""
        candidates: List[PromoCandidate] = []
        for order in run.orders:
            for promo_id in order.promotions:
                card = run.wallet.get(promo_id)
                if card is None or card.kind is not InstrumentKind.CARD:
                    continue
                discount = percent_of(order.value, card.discount_percent)
                candidates.append(PromoCandidate(order, card, discount, order.value - discount))
        candidates.sort(key=PromoCandidate.sort_key)
        return candidates

    def apply_card_promotions(self, run: OptimizationRun) -> None:
        """Phase 1: commit the best affordable card promotion per order."""
        logger.info("Starting phase 1: card promotions")
        for candidate in self.collect_promo_candidates(run):
            if run.is_handled(candidate.order):
                continue
            if not candidate.card.can_cover(candidate.cost):
                logger.debug(
                    "Phase 1: dropping promo '%s' for order '%s' (cost %s, available %s)",
                    candidate.card.method_id, candidate.order.id,
                    candidate.cost, candidate.card.balance,
                )
                continue
            logger.info(
                "Phase 1: applying promo '%s' to order '%s'. Discount: %s, Cost: %s",
                candidate.card.method_id, candidate.order.id,
                candidate.discount_amount, candidate.cost,
            )
            run.pay(candidate.card, candidate.cost)
            run.mark_handled(Allocation(
                order_id=candidate.order.id,
                phase=1,
                method=CARD_PROMOTION,
                discount=candidate.discount_amount,
                card_cost=candidate.cost,
                card_method_id=candidate.card.method_id,
            ))
        logger.info("Finished phase 1. Handled %d orders.", len(run.handled))

    # ========================================================================
    # PHASE 2
    # ========================================================================

    def settle_remaining_orders(self, run: OptimizationRun) -> None:
        """
        Phase 2: pay every order Phase 1 left open.

        Raises:
            UnsatisfiableAllocation: As soon as one order has no viable option
        """
        logger.info("Starting phase 2: remaining orders")
        for order in run.remaining_orders():
            if order.value <= ZERO:
                logger.debug("Order %s has zero value, nothing to pay", order.id)
                run.mark_handled(Allocation(order_id=order.id, phase=2, method=ZERO_VALUE, discount=ZERO))
                continue

            best = select_best_option(generate_payment_options(order, run.wallet))
            if best is None:
                logger.error(
                    "Order %s (value: %s) cannot be paid with the remaining limits %s",
                    order.id, order.value, run.wallet.balances(),
                )
                raise UnsatisfiableAllocation(
                    f"Cannot find a payment option for order {order.id} (value {order.value}). "
                    f"Remaining limits are insufficient."
                )
            self.apply_option(run, best)

        if not run.is_complete:
            missing = sorted(o.id for o in run.orders if o.id not in run.handled)
            raise UnsatisfiableAllocation(f"Orders left unpaid: {', '.join(missing)}")
        logger.info("Finished phase 2. All %d orders processed.", len(run.orders))

    def apply_option(self, run: OptimizationRun, option: PaymentOption) -> None:
        """Charge the chosen option to the wallet and record it."""
        logger.info("Order %s: chosen %r", option.order.id, option)
        if option.points_cost > ZERO:
            run.pay(option.points_entry, option.points_cost)
        if option.card_cost > ZERO:
            run.pay(option.card_entry, option.card_cost)
        run.mark_handled(Allocation(
            order_id=option.order.id,
            phase=2,
            method=option.option_type.value,
            discount=option.discount_applied,
            points_cost=option.points_cost,
            card_cost=option.card_cost,
            points_method_id=option.points_entry.method_id if option.points_cost > ZERO else None,
            card_method_id=option.card_entry.method_id if option.card_cost > ZERO else None,
        ))


def optimize_payments(
    orders: Sequence[Order],
    payment_methods: Sequence[PaymentMethod],
    points_id: str = POINTS_ID,
) -> Dict[str, Decimal]:
    """Convenience wrapper: PaymentOptimizer(points_id).optimize(...)."""
    return PaymentOptimizer(points_id).optimize(orders, payment_methods)

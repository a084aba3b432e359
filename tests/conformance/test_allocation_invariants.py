"""
Allocation Invariant Conformance Tests

INVARIANTS, for every successful run:
    Σ_methods totals[m] = Σ_orders (value(o) − discount(o))
    balance(m) = limit(m) − totals[m] ≥ 0 for every method m
    every order id is handled exactly once
    each charge a method receives is ≤ what it had left at that moment

A failed run (UnsatisfiableAllocation) returns nothing: no partial totals.

These tests use property-based testing over random batches of orders and
payment methods.
"""

from hypothesis import given, settings, note
from hypothesis import strategies as st
from decimal import Decimal
from typing import List, Tuple

from payment_optimizer import (
    Order, PaymentMethod, PaymentOptimizer, WalletEntry, UnsatisfiableAllocation,
)
from payment_optimizer.optimizer import OptimizationRun


CARD_IDS = ["mZysk", "BosBankrut", "CardA", "CardB", "Gold"]


# =============================================================================
# STRATEGIES FOR PROPERTY-BASED TESTING
# =============================================================================

def money(min_value="0.00", max_value="500.00"):
    return st.decimals(
        min_value=Decimal(min_value),
        max_value=Decimal(max_value),
        places=2,
        allow_nan=False,
        allow_infinity=False,
    )


@st.composite
def payment_methods(draw) -> List[PaymentMethod]:
    """Optional points plus one or more cards, in a random order."""
    card_ids = draw(st.lists(st.sampled_from(CARD_IDS), min_size=1, max_size=len(CARD_IDS), unique=True))
    ids = list(card_ids)
    if draw(st.booleans()):
        ids.insert(draw(st.integers(min_value=0, max_value=len(ids))), "PUNKTY")
    return [
        PaymentMethod(method_id, draw(st.integers(min_value=0, max_value=100)), draw(money(max_value="1000.00")))
        for method_id in ids
    ]


@st.composite
def order_batches(draw, method_ids: List[str]) -> List[Order]:
    count = draw(st.integers(min_value=0, max_value=8))
    promo_pool = method_ids + ["Unknown"]
    return [
        Order(
            f"ORDER{i}",
            draw(money()),
            draw(st.lists(st.sampled_from(promo_pool), max_size=3, unique=True)),
        )
        for i in range(count)
    ]


@st.composite
def batches(draw) -> Tuple[List[Order], List[PaymentMethod]]:
    methods = draw(payment_methods())
    orders = draw(order_batches([m.id for m in methods]))
    return orders, methods


class _RecordingRun(OptimizationRun):
    """OptimizationRun that checks every charge against the balance before it."""

    def pay(self, entry: WalletEntry, amount: Decimal) -> None:
        assert amount >= 0
        assert entry.balance >= amount, f"{entry.method_id} overdrawn"
        super().pay(entry, amount)
        assert entry.balance >= 0


class _RecordingOptimizer(PaymentOptimizer):

    def run(self, orders, payment_methods):
        base = OptimizationRun.start(orders, payment_methods, self.points_id)
        run = _RecordingRun(wallet=base.wallet, orders=base.orders, totals=base.totals)
        self.apply_card_promotions(run)
        self.settle_remaining_orders(run)
        return run


# =============================================================================
# PROPERTIES
# =============================================================================

class TestConservationProperties:

    @given(batches())
    @settings(max_examples=200, deadline=None)
    def test_spend_equals_value_minus_discount(self, batch):
        orders, methods = batch
        try:
            run = PaymentOptimizer().run(orders, methods)
        except UnsatisfiableAllocation:
            return
        total_value = sum((o.value for o in orders), Decimal("0"))
        note(f"allocations={run.allocations}")
        assert run.total_spent == total_value - run.total_discount
        for allocation in run.allocations:
            order = next(o for o in orders if o.id == allocation.order_id)
            assert allocation.total_cost == order.value - allocation.discount

    @given(batches())
    @settings(max_examples=200, deadline=None)
    def test_no_balance_ever_negative(self, batch):
        orders, methods = batch
        try:
            run = _RecordingOptimizer().run(orders, methods)
        except UnsatisfiableAllocation:
            return
        for method in methods:
            remaining = run.wallet.get_balance(method.id)
            assert remaining >= 0
            assert remaining == method.limit - run.totals[method.id]

    @given(batches())
    @settings(max_examples=200, deadline=None)
    def test_every_order_handled_exactly_once(self, batch):
        orders, methods = batch
        try:
            run = PaymentOptimizer().run(orders, methods)
        except UnsatisfiableAllocation:
            return
        assert run.handled == {o.id for o in orders}
        settled = [a.order_id for a in run.allocations]
        assert sorted(settled) == sorted(o.id for o in orders)

    @given(batches())
    @settings(max_examples=100, deadline=None)
    def test_totals_cover_every_method(self, batch):
        orders, methods = batch
        try:
            totals = PaymentOptimizer().optimize(orders, methods)
        except UnsatisfiableAllocation:
            return
        assert list(totals) == [m.id for m in methods]
        assert all(amount >= 0 for amount in totals.values())

    @given(money())
    @settings(max_examples=50, deadline=None)
    def test_single_order_with_ample_card_always_paid(self, value):
        orders = [Order("O", value)]
        methods = [PaymentMethod("CardA", 0, Decimal("1000.00"))]
        assert PaymentOptimizer().optimize(orders, methods) == {"CardA": value}


class TestZeroValueOrders:

    @given(payment_methods())
    @settings(max_examples=50, deadline=None)
    def test_zero_value_order_spends_nothing(self, methods):
        orders = [Order("ZERO", "0.00", [methods[0].id])]
        run = PaymentOptimizer().run(orders, methods)
        assert run.handled == {"ZERO"}
        assert all(amount == 0 for amount in run.totals.values())


class TestPhaseOneOrdering:

    def test_equal_discount_resolves_by_lower_cost(self):
        # Both candidates save 10.00; the cheaper one sorts first
        orders = [
            Order("ORDER_B", "200.00", ["Shared"]),
            Order("ORDER_A", "100.00", ["Ten"]),
        ]
        methods = [
            PaymentMethod("Shared", 5, Decimal("190.00")),
            PaymentMethod("Ten", 10, Decimal("90.00")),
        ]
        candidates = PaymentOptimizer().collect_promo_candidates(OptimizationRun.start(orders, methods))
        assert [(c.order.id, c.discount_amount, c.cost) for c in candidates] == [
            ("ORDER_A", Decimal("10.00"), Decimal("90.00")),
            ("ORDER_B", Decimal("10.00"), Decimal("190.00")),
        ]

    def test_cheaper_candidate_claims_shared_card(self):
        orders = [
            Order("BIG", "200.00", ["Shared"]),
            Order("SMALL", "100.00", ["Shared"]),
            Order("OTHER", "190.00", ["Other"]),
        ]
        methods = [
            PaymentMethod("Shared", 10, Decimal("200.00")),
            PaymentMethod("Other", 0, Decimal("1000.00")),
        ]
        run = PaymentOptimizer().run(orders, methods)
        first = run.allocations[0]
        # BIG saves 20.00 and is committed first
        assert (first.order_id, first.card_method_id, first.card_cost) == ("BIG", "Shared", Decimal("180.00"))
        # SMALL's promo no longer fits (20.00 left < 90.00) and is never retried
        small = next(a for a in run.allocations if a.order_id == "SMALL")
        assert small.phase == 2

    def test_candidates_sorted_by_discount_then_cost(self, reference_orders, reference_methods):
        run = OptimizationRun.start(reference_orders, reference_methods)
        candidates = PaymentOptimizer().collect_promo_candidates(run)
        keys = [(c.discount_amount, c.cost) for c in candidates]
        assert keys == [
            (Decimal("15.00"), Decimal("135.00")),
            (Decimal("10.00"), Decimal("90.00")),
            (Decimal("10.00"), Decimal("190.00")),
            (Decimal("7.50"), Decimal("142.50")),
        ]


class TestDeterminism:

    @given(batches())
    @settings(max_examples=100, deadline=None)
    def test_repeated_runs_agree(self, batch):
        orders, methods = batch
        optimizer = PaymentOptimizer()
        outcomes = []
        for _ in range(3):
            try:
                run = optimizer.run(orders, methods)
            except UnsatisfiableAllocation as e:
                outcomes.append(("failed", str(e)))
            else:
                outcomes.append((run.totals, run.allocations))
        assert outcomes[0] == outcomes[1] == outcomes[2]

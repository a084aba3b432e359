"""
wallet.py - Per-Run Balance Ledger for Payment Instruments

The Wallet is the only mutable state of an optimization run. It holds one
WalletEntry per payment method, in the order the methods were supplied, and
tracks each entry's remaining spendable balance.

Key responsibilities:
    - Tags each entry as POINTS or CARD once, at construction
    - Preserves input order for card enumeration (tie-breaks depend on it)
    - Validates every spend before mutating (never partially deducts)
    - Never lets a balance go negative

A Wallet is built fresh for every optimization run and discarded afterwards.
"""

from __future__ import annotations
from decimal import Decimal
from enum import Enum
from typing import Dict, Iterator, List, Optional, Sequence

from .core import (
    PaymentMethod,
    POINTS_ID, ZERO,
    InvalidArgument, InsufficientFunds, InstrumentNotRegistered,
)


class InstrumentKind(Enum):
    """Whether a wallet entry holds loyalty points or a card limit."""
    POINTS = "points"
    CARD = "card"


class WalletEntry:
    """
    Mutable balance tracker for a single payment method.

    Attributes:
        method_id: Payment method identifier
        discount_percent: Discount percentage copied from the PaymentMethod
        kind: InstrumentKind.POINTS or InstrumentKind.CARD
        balance: Remaining spendable amount (read-only property)

    Thread Safety:
        Not thread-safe. Entries are owned by a single optimization run.
    """

    __slots__ = ("method_id", "discount_percent", "kind", "_balance")

    def __init__(
        self,
        method_id: str,
        discount_percent: int,
        initial_limit: Decimal,
        kind: InstrumentKind = InstrumentKind.CARD,
    ):
        if initial_limit < ZERO:
            raise InvalidArgument(f"Initial limit cannot be negative for {method_id}")
        self.method_id = method_id
        self.discount_percent = discount_percent
        self.kind = kind
        self._balance = initial_limit

    @classmethod
    def from_payment_method(cls, method: PaymentMethod, points_id: str = POINTS_ID) -> "WalletEntry":
        kind = InstrumentKind.POINTS if method.id == points_id else InstrumentKind.CARD
        return cls(method.id, method.discount, method.limit, kind)

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def is_points(self) -> bool:
        return self.kind is InstrumentKind.POINTS

    def can_cover(self, amount: Decimal) -> bool:
        """Return True if the remaining balance is at least ``amount``."""
        return self._balance >= amount

    def spend(self, amount: Decimal) -> None:
        """
        Deduct ``amount`` from the balance.

        Both checks run before any mutation, so a rejected spend leaves the
        balance untouched.

        Raises:
            InvalidArgument: If amount is negative
            InsufficientFunds: If amount exceeds the remaining balance
        """
        if amount < ZERO:
            raise InvalidArgument("Cannot spend a negative amount.")
        if self._balance < amount:
            raise InsufficientFunds(
                f"Not enough limit for payment method {self.method_id}. "
                f"Required: {amount}, Available: {self._balance}"
            )
        self._balance = self._balance - amount

    def __repr__(self) -> str:
        return (
            f"WalletEntry(id='{self.method_id}', kind={self.kind.value}, "
            f"discountPercent={self.discount_percent}, balance={self._balance:f})"
        )


class Wallet:
    """
    Ordered ledger of WalletEntry objects for one optimization run.

    Entries keep the order of the PaymentMethod sequence they were built
    from. At most one entry is tagged POINTS (the method whose id equals
    ``points_id``).

    Example:
        wallet = Wallet([
            PaymentMethod("PUNKTY", 15, Decimal("100.00")),
            PaymentMethod("mZysk", 10, Decimal("180.00")),
        ])
        wallet.points.balance          # Decimal("100.00")
        [c.method_id for c in wallet.cards()]   # ["mZysk"]
        wallet.spend("mZysk", Decimal("90.00"))
    """

    def __init__(self, payment_methods: Sequence[PaymentMethod] = (), points_id: str = POINTS_ID):
        self.points_id = points_id
        self._entries: Dict[str, WalletEntry] = {}
        for method in payment_methods:
            self.register(method)

    def register(self, method: PaymentMethod) -> WalletEntry:
        """
        Add a payment method to the wallet.

        Raises:
            InvalidArgument: If a method with the same id is already registered
        """
        if method.id in self._entries:
            raise InvalidArgument(f"PaymentMethod {method.id} already registered")
        entry = WalletEntry.from_payment_method(method, self.points_id)
        self._entries[method.id] = entry
        return entry

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def points(self) -> Optional[WalletEntry]:
        """The points entry, or None if the customer has no points."""
        return self._entries.get(self.points_id)

    def cards(self) -> List[WalletEntry]:
        """Card entries in input order."""
        return [e for e in self._entries.values() if e.kind is InstrumentKind.CARD]

    def get(self, method_id: str) -> Optional[WalletEntry]:
        return self._entries.get(method_id)

    def get_entry(self, method_id: str) -> WalletEntry:
        if method_id not in self._entries:
            raise InstrumentNotRegistered(f"PaymentMethod {method_id} not registered")
        return self._entries[method_id]

    def get_balance(self, method_id: str) -> Decimal:
        return self.get_entry(method_id).balance

    def balances(self) -> Dict[str, Decimal]:
        """Snapshot of every balance, in input order."""
        return {method_id: e.balance for method_id, e in self._entries.items()}

    def method_ids(self) -> List[str]:
        return list(self._entries)

    def __contains__(self, method_id: object) -> bool:
        return method_id in self._entries

    def __iter__(self) -> Iterator[WalletEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def spend(self, method_id: str, amount: Decimal) -> None:
        """Deduct ``amount`` from the named entry. See WalletEntry.spend."""
        self.get_entry(method_id).spend(amount)

    def __repr__(self) -> str:
        return f"Wallet({', '.join(repr(e) for e in self._entries.values())})"

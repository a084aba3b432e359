"""
Core types and pure functions for the payment optimizer.

This module provides the foundational pieces the rest of the package builds on:
1. Decimal context configuration and money rounding helpers
2. Constants: the reserved points id and the flat partial-points discount
3. Exceptions: PaymentError and the validation / allocation error types
4. Immutable input records: Order and PaymentMethod

Order and PaymentMethod validate themselves on construction. Once built they
are read-only; the optimizer never mutates them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, getcontext
from typing import Any, Iterable, Tuple


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# All money arithmetic is exact Decimal arithmetic. Rounding only happens in
# round_money(), always half-up to MONEY_PLACES.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
_OPTIMIZER_DECIMAL_CONTEXT = getcontext()
_OPTIMIZER_DECIMAL_CONTEXT.prec = 50


# ============================================================================
# CONSTANTS
# ============================================================================

# Reserved payment method id for loyalty points.
POINTS_ID = "PUNKTY"

# Amounts are kept to cents.
MONEY_PLACES = 2
MONEY_QUANTUM = Decimal(10) ** -MONEY_PLACES

ZERO = Decimal("0")
ONE_HUNDRED = Decimal("100")

# Flat order discount unlocked by paying at least this share with points.
PARTIAL_POINTS_DISCOUNT = Decimal("0.10")

# Smallest points payment that still counts as "paying with points".
MINIMUM_POINTS_PAYMENT = Decimal("0.01")


# ============================================================================
# EXCEPTIONS
# ============================================================================

class PaymentError(Exception):
    """Base exception for all payment optimizer errors."""
    pass


class MissingValue(PaymentError, TypeError):
    """Raised when a required identifier or field is None."""
    pass


class InvalidFormat(PaymentError, ValueError):
    """Raised when a numeric literal cannot be parsed."""
    pass


class InvalidArgument(PaymentError, ValueError):
    """Raised when a value is out of range, negative or over-precise."""
    pass


class InsufficientFunds(PaymentError):
    """Raised when a spend would take a wallet entry below zero."""
    pass


class InstrumentNotRegistered(PaymentError):
    """Raised when operating on a payment method the wallet does not hold."""
    pass


class UnsatisfiableAllocation(PaymentError):
    """Raised when a remaining order cannot be paid with the current balances."""
    pass


class InputFormatError(PaymentError):
    """Raised when serialized input is not the expected JSON shape."""
    pass


# ============================================================================
# MONEY HELPERS
# ============================================================================

def round_money(value: Decimal) -> Decimal:
    """Round to cents, half-up."""
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def percent_of(value: Decimal, percent: int) -> Decimal:
    """
    Return ``percent`` percent of ``value``, rounded half-up to cents.

    Example:
        percent_of(Decimal("150.00"), 5)  # Decimal("7.50")
    """
    return round_money(value * Decimal(percent) / ONE_HUNDRED)


def _decimal_places(value: Decimal) -> int:
    exponent = value.as_tuple().exponent
    return -exponent if exponent < 0 else 0


def parse_decimal(literal: Any, what: str) -> Decimal:
    """
    Convert a literal into a finite Decimal.

    Accepts Decimal, int and str. Floats are rejected so that binary
    floating point never enters money arithmetic.

    Raises:
        MissingValue: If literal is None
        InvalidFormat: If literal is not a finite decimal number
    """
    if literal is None:
        raise MissingValue(f"{what} cannot be null")
    if isinstance(literal, bool) or isinstance(literal, float):
        raise InvalidFormat(f"{what} must be a decimal literal, got {type(literal).__name__}: {literal!r}")
    if isinstance(literal, Decimal):
        value = literal
    elif isinstance(literal, int):
        value = Decimal(literal)
    elif isinstance(literal, str):
        try:
            value = Decimal(literal.strip())
        except InvalidOperation:
            raise InvalidFormat(f"{what} is not a number: {literal}") from None
    else:
        raise InvalidFormat(f"{what} must be a decimal literal, got {type(literal).__name__}")
    if not value.is_finite():
        raise InvalidFormat(f"{what} must be finite: {literal}")
    return value


def parse_int(literal: Any, what: str) -> int:
    """
    Convert a literal into an int.

    Raises:
        MissingValue: If literal is None
        InvalidFormat: If literal is not an integer literal
    """
    if literal is None:
        raise MissingValue(f"{what} cannot be null")
    if isinstance(literal, bool):
        raise InvalidFormat(f"{what} must be an integer, got bool")
    if isinstance(literal, int):
        return literal
    if isinstance(literal, str):
        try:
            return int(literal.strip())
        except ValueError:
            raise InvalidFormat(f"{what} is not an integer: {literal}") from None
    raise InvalidFormat(f"{what} must be an integer, got {type(literal).__name__}: {literal!r}")


def _literal(value: Any) -> str:
    return value.strip() if isinstance(value, str) else str(value)


# ============================================================================
# INPUT RECORDS
# ============================================================================

@dataclass(frozen=True, slots=True)
class Order:
    """
    A purchase order to be paid.

    Attributes:
        id: Unique order identifier (non-empty).
        value: Order value; non-negative with at most two decimal places.
            Accepts Decimal, int or a numeric string; stored as Decimal.
        promotions: Payment method ids whose promotion applies to this order.
            None is treated as no promotions.

    This class is immutable (frozen=True). All fields are validated and
    normalized in __post_init__.
    """
    id: str
    value: Decimal
    promotions: Tuple[str, ...] = field(default=())

    def __post_init__(self):
        if self.id is None:
            raise MissingValue("Order ID cannot be null")
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidArgument(f"Order ID must be a non-empty string: {self.id!r}")

        value = parse_decimal(self.value, "Order value")
        literal = _literal(self.value)
        if _decimal_places(value) > MONEY_PLACES:
            raise InvalidArgument(f"Order value cannot have more than two decimal places: {literal}")
        if value < ZERO:
            raise InvalidArgument(f"Order value cannot be negative: {literal}")
        object.__setattr__(self, 'value', value)

        promotions = self.promotions
        if promotions is None:
            promotions = ()
        elif not isinstance(promotions, (list, tuple)):
            raise InvalidArgument(
                f"Order promotions must be a list of ids, got {type(promotions).__name__}: {promotions!r}"
            )
        promotions = tuple(promotions)
        for promo in promotions:
            if not isinstance(promo, str) or not promo:
                raise InvalidArgument(f"Order {self.id} has an invalid promotion id: {promo!r}")
        object.__setattr__(self, 'promotions', promotions)

    def __repr__(self) -> str:
        promos = ",".join(self.promotions) or "-"
        return f"Order({self.id}: {self.value}, promos={promos})"


@dataclass(frozen=True, slots=True)
class PaymentMethod:
    """
    A payment instrument available to the customer.

    Attributes:
        id: Unique identifier; POINTS_ID denotes loyalty points.
        discount: Discount percentage in [0, 100]. Accepts int or integer string.
        limit: Spendable balance; non-negative with at most two decimal places.
    """
    id: str
    discount: int
    limit: Decimal

    def __post_init__(self):
        if self.id is None:
            raise MissingValue("PaymentMethod ID cannot be null")
        if not isinstance(self.id, str) or not self.id.strip():
            raise InvalidArgument(f"PaymentMethod ID must be a non-empty string: {self.id!r}")

        discount = parse_int(self.discount, "PaymentMethod discount")
        if discount < 0 or discount > 100:
            raise InvalidArgument(
                f"Discount percentage must be between 0 and 100: {_literal(self.discount)}"
            )

        limit = parse_decimal(self.limit, "PaymentMethod limit")
        literal = _literal(self.limit)
        if _decimal_places(limit) > MONEY_PLACES:
            raise InvalidArgument(
                f"PaymentMethod limit cannot have more than two decimal places: {literal}"
            )
        if limit < ZERO:
            raise InvalidArgument(f"PaymentMethod limit cannot be negative: {literal}")

        object.__setattr__(self, 'discount', discount)
        object.__setattr__(self, 'limit', limit)

    def __repr__(self) -> str:
        return f"PaymentMethod({self.id}: {self.discount}%, limit={self.limit})"


def ensure_unique_ids(records: Iterable[Any], what: str) -> None:
    """
    Reject duplicate identifiers in a batch of input records.

    Raises:
        InvalidArgument: On the first repeated id
    """
    seen = set()
    for record in records:
        if record.id in seen:
            raise InvalidArgument(f"Duplicate {what} id: {record.id}")
        seen.add(record.id)


def money_str(amount: Decimal) -> str:
    """Format an amount with exactly two decimals (half-up)."""
    return f"{round_money(amount):.2f}"

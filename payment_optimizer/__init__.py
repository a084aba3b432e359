"""
payment_optimizer - Discount-Maximizing Payment Allocation

Splits a batch of orders across loyalty points and payment cards so that as
much discount as possible is captured without overdrawing any method.

Usage:
    from decimal import Decimal
    from payment_optimizer import Order, PaymentMethod, PaymentOptimizer

    orders = [
        Order("ORDER1", Decimal("100.00"), ("mZysk",)),
        Order("ORDER2", Decimal("50.00")),
    ]
    methods = [
        PaymentMethod("PUNKTY", 15, Decimal("100.00")),
        PaymentMethod("mZysk", 10, Decimal("180.00")),
    ]

    totals = PaymentOptimizer().optimize(orders, methods)
    # {"PUNKTY": Decimal("42.50"), "mZysk": Decimal("90.00")}
"""

# Core types
from .core import (
    Order,
    PaymentMethod,
    PaymentError,
    MissingValue,
    InvalidFormat,
    InvalidArgument,
    InsufficientFunds,
    InstrumentNotRegistered,
    UnsatisfiableAllocation,
    InputFormatError,
    POINTS_ID,
    PARTIAL_POINTS_DISCOUNT,
    MINIMUM_POINTS_PAYMENT,
    round_money,
    percent_of,
    money_str,
)

# Wallet
from .wallet import InstrumentKind, Wallet, WalletEntry

# Candidate options
from .options import (
    OptionType,
    PaymentOption,
    generate_payment_options,
    select_best_option,
)

# Optimizer
from .optimizer import (
    Allocation,
    OptimizationRun,
    PaymentOptimizer,
    PromoCandidate,
    optimize_payments,
)

# Input boundary
from .reader import (
    read_orders,
    read_payment_methods,
    parse_orders,
    parse_payment_methods,
)

__all__ = [
    # Core
    'Order',
    'PaymentMethod',
    'PaymentError',
    'MissingValue',
    'InvalidFormat',
    'InvalidArgument',
    'InsufficientFunds',
    'InstrumentNotRegistered',
    'UnsatisfiableAllocation',
    'InputFormatError',
    'POINTS_ID',
    'PARTIAL_POINTS_DISCOUNT',
    'MINIMUM_POINTS_PAYMENT',
    'round_money',
    'percent_of',
    'money_str',
    # Wallet
    'InstrumentKind',
    'Wallet',
    'WalletEntry',
    # Options
    'OptionType',
    'PaymentOption',
    'generate_payment_options',
    'select_best_option',
    # Optimizer
    'Allocation',
    'OptimizationRun',
    'PaymentOptimizer',
    'PromoCandidate',
    'optimize_payments',
    # Reader
    'read_orders',
    'read_payment_methods',
    'parse_orders',
    'parse_payment_methods',
]

"""
conftest.py - Shared pytest fixtures for payment optimizer tests

Provides common fixtures used across unit, functional and conformance tests:
- A fresh PaymentOptimizer
- The reference batch (four orders, PUNKTY / mZysk / BosBankrut)
- Small wallets for option-generation tests
- JSON input files written to tmp_path
"""

import json
import pytest
from decimal import Decimal
from typing import List

from payment_optimizer import (
    Order, PaymentMethod, PaymentOptimizer, Wallet,
)


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def D(value: str) -> Decimal:
    """Shorthand for Decimal literals in tests."""
    return Decimal(value)


def write_json(path, data) -> str:
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def optimizer() -> PaymentOptimizer:
    return PaymentOptimizer()


@pytest.fixture
def reference_orders() -> List[Order]:
    return [
        Order("ORDER1", "100.00", ["mZysk"]),
        Order("ORDER2", "200.00", ["BosBankrut"]),
        Order("ORDER3", "150.00", ["mZysk", "BosBankrut"]),
        Order("ORDER4", "50.00", None),
    ]


@pytest.fixture
def reference_methods() -> List[PaymentMethod]:
    return [
        PaymentMethod("PUNKTY", "15", "100.00"),
        PaymentMethod("mZysk", "10", "180.00"),
        PaymentMethod("BosBankrut", "5", "200.00"),
    ]


@pytest.fixture
def points_and_two_cards() -> Wallet:
    return Wallet([
        PaymentMethod("PUNKTY", 0, D("20.00")),
        PaymentMethod("CardA", 0, D("100.00")),
        PaymentMethod("CardB", 5, D("100.00")),
    ])


@pytest.fixture
def orders_file(tmp_path) -> str:
    return write_json(tmp_path / "orders.json", [
        {"id": "ORDER1", "value": "100.00", "promotions": ["mZysk"]},
        {"id": "ORDER2", "value": "200.00", "promotions": ["BosBankrut"]},
        {"id": "ORDER3", "value": "150.00", "promotions": ["mZysk", "BosBankrut"]},
        {"id": "ORDER4", "value": "50.00"},
    ])


@pytest.fixture
def methods_file(tmp_path) -> str:
    return write_json(tmp_path / "paymentmethods.json", [
        {"id": "PUNKTY", "discount": "15", "limit": "100.00"},
        {"id": "mZysk", "discount": "10", "limit": "180.00"},
        {"id": "BosBankrut", "discount": "5", "limit": "200.00"},
    ])
